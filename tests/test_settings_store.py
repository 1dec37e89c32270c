from salon_booking.models.setting import BookingSetting
from salon_booking.services.settings_store import (
    BUFFER_KEY,
    SLOT_STEP_KEY,
    BookingSettings,
    load_booking_settings,
    save_booking_settings,
)

from factories import DatabaseTestCase


class TestSettingsStore(DatabaseTestCase):
    """Regras de negócio guardadas na tabela settings."""

    def test_defaults_when_table_is_empty(self):
        settings = load_booking_settings(self.session)

        self.assertEqual(settings, BookingSettings(10, 5, 5, 24))
        self.assertEqual(settings.buffer_total_minutes, 15)

    def test_save_and_load(self):
        save_booking_settings(self.session, BookingSettings(15, 0, 10, 12))

        self.assertEqual(load_booking_settings(self.session), BookingSettings(15, 0, 10, 12))

    def test_save_overwrites(self):
        save_booking_settings(self.session, BookingSettings(15, 0, 10, 12))
        save_booking_settings(self.session, BookingSettings(5, 5, 15, 48))

        self.assertEqual(load_booking_settings(self.session).slot_step_minutes, 15)

    def test_malformed_values_fall_back_to_defaults(self):
        self.session.add(BookingSetting(key=BUFFER_KEY, value={"before": "lots", "after": -3}))
        self.session.add(BookingSetting(key=SLOT_STEP_KEY, value=0))
        self.session.commit()

        with self.assertLogs("salon_booking.services.settings_store", level="WARNING"):
            settings = load_booking_settings(self.session)

        self.assertEqual(settings.buffer_before_minutes, 10)
        self.assertEqual(settings.buffer_after_minutes, 5)
        self.assertEqual(settings.slot_step_minutes, 5)

    def test_numeric_strings_are_accepted(self):
        self.session.add(BookingSetting(key=BUFFER_KEY, value={"before": "20", "after": 0}))
        self.session.commit()

        settings = load_booking_settings(self.session)

        self.assertEqual(settings.buffer_before_minutes, 20)
        self.assertEqual(settings.buffer_after_minutes, 0)
