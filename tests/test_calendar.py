import unittest
from datetime import date, datetime, time

from salon_booking.models.business_hours import OpeningException, OpeningHours
from salon_booking.services.calendar import BusinessCalendar
from salon_booking.services.timewindow import BUSINESS_TIMEZONE

TZ = BUSINESS_TIMEZONE
MONDAY = date(2030, 6, 3)
SUNDAY = date(2030, 6, 9)


def weekly_hours():
    rows = [OpeningHours(weekday=d, opens_at=time(9, 0), closes_at=time(18, 0)) for d in range(6)]
    rows.append(OpeningHours(weekday=6, is_closed=True))
    return rows


class TestBusinessCalendar(unittest.TestCase):
    """Horário efetivo de cada dia."""

    def test_weekly_hours(self):
        calendar = BusinessCalendar(weekly_hours(), [], TZ)

        window = calendar.open_window(MONDAY)

        self.assertEqual(window.start, datetime(2030, 6, 3, 9, 0, tzinfo=TZ))
        self.assertEqual(window.end, datetime(2030, 6, 3, 18, 0, tzinfo=TZ))

    def test_closed_weekday(self):
        calendar = BusinessCalendar(weekly_hours(), [], TZ)
        self.assertIsNone(calendar.open_window(SUNDAY))

    def test_missing_weekday_is_closed(self):
        calendar = BusinessCalendar([], [], TZ)
        self.assertIsNone(calendar.open_window(MONDAY))

    def test_closed_exception_overrides_weekly_hours(self):
        holiday = OpeningException(day=MONDAY, is_closed=True, reason="Pfingstmontag")
        calendar = BusinessCalendar(weekly_hours(), [holiday], TZ)
        self.assertIsNone(calendar.open_window(MONDAY))

    def test_special_hours_override_weekly_hours(self):
        short_day = OpeningException(day=MONDAY, is_closed=False, opens_at=time(12, 0), closes_at=time(16, 0))
        calendar = BusinessCalendar(weekly_hours(), [short_day], TZ)

        window = calendar.open_window(MONDAY)

        self.assertEqual(window.start, datetime(2030, 6, 3, 12, 0, tzinfo=TZ))
        self.assertEqual(window.end, datetime(2030, 6, 3, 16, 0, tzinfo=TZ))

    def test_exception_opens_a_closed_weekday(self):
        sunday_event = OpeningException(day=SUNDAY, is_closed=False, opens_at=time(10, 0), closes_at=time(14, 0))
        calendar = BusinessCalendar(weekly_hours(), [sunday_event], TZ)
        self.assertIsNotNone(calendar.open_window(SUNDAY))

    def test_open_exception_without_hours_is_closed(self):
        broken = OpeningException(day=MONDAY, is_closed=False)
        calendar = BusinessCalendar(weekly_hours(), [broken], TZ)

        with self.assertLogs("salon_booking.services.calendar", level="WARNING"):
            self.assertIsNone(calendar.open_window(MONDAY))

    def test_inverted_hours_are_skipped(self):
        inverted = [OpeningHours(weekday=0, opens_at=time(18, 0), closes_at=time(9, 0))]
        calendar = BusinessCalendar(inverted, [], TZ)

        with self.assertLogs("salon_booking.services.calendar", level="WARNING"):
            self.assertIsNone(calendar.open_window(MONDAY))

    def test_window_contains(self):
        window = BusinessCalendar(weekly_hours(), [], TZ).open_window(MONDAY)

        self.assertTrue(window.contains(window.start, window.end))
        self.assertFalse(window.contains(datetime(2030, 6, 3, 8, 50, tzinfo=TZ), window.end))
