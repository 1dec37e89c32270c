import logging
from dataclasses import dataclass
from typing import Any, Dict

from sqlmodel import Session, select

from salon_booking.models.setting import BookingSetting

logger = logging.getLogger(__name__)

BUFFER_KEY = "booking.buffer_minutes"
SLOT_STEP_KEY = "booking.slot_step_minutes"
CANCELLATION_WINDOW_KEY = "booking.cancellation_window_hours"

DEFAULT_BUFFER_BEFORE = 10
DEFAULT_BUFFER_AFTER = 5
DEFAULT_SLOT_STEP_MINUTES = 5
DEFAULT_CANCELLATION_WINDOW_HOURS = 24


@dataclass(frozen=True)
class BookingSettings:
    buffer_before_minutes: int = DEFAULT_BUFFER_BEFORE
    buffer_after_minutes: int = DEFAULT_BUFFER_AFTER
    slot_step_minutes: int = DEFAULT_SLOT_STEP_MINUTES
    cancellation_window_hours: float = DEFAULT_CANCELLATION_WINDOW_HOURS

    @property
    def buffer_total_minutes(self) -> int:
        return self.buffer_before_minutes + self.buffer_after_minutes


def _as_number(key: str, raw: Any, default, cast=int, minimum=0):
    if raw is None:
        return default
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        logger.warning(f"Setting {key}={raw!r} is not a number, using default {default}")
        return default
    if value < minimum:
        logger.warning(f"Setting {key}={raw!r} is below {minimum}, using default {default}")
        return default
    return value


def load_booking_settings(session: Session) -> BookingSettings:
    rows = session.exec(
        select(BookingSetting).where(
            BookingSetting.key.in_([BUFFER_KEY, SLOT_STEP_KEY, CANCELLATION_WINDOW_KEY])
        )
    ).all()
    values: Dict[str, Any] = {row.key: row.value for row in rows}

    buffer = values.get(BUFFER_KEY) or {}
    if not isinstance(buffer, dict):
        logger.warning(f"Setting {BUFFER_KEY}={buffer!r} is not an object, using defaults")
        buffer = {}

    return BookingSettings(
        buffer_before_minutes=_as_number(f"{BUFFER_KEY}.before", buffer.get("before"), DEFAULT_BUFFER_BEFORE),
        buffer_after_minutes=_as_number(f"{BUFFER_KEY}.after", buffer.get("after"), DEFAULT_BUFFER_AFTER),
        slot_step_minutes=_as_number(
            SLOT_STEP_KEY, values.get(SLOT_STEP_KEY), DEFAULT_SLOT_STEP_MINUTES, minimum=1
        ),
        cancellation_window_hours=_as_number(
            CANCELLATION_WINDOW_KEY,
            values.get(CANCELLATION_WINDOW_KEY),
            DEFAULT_CANCELLATION_WINDOW_HOURS,
            cast=float,
        ),
    )


def save_booking_settings(session: Session, settings: BookingSettings) -> BookingSettings:
    rows = {
        BUFFER_KEY: {"before": settings.buffer_before_minutes, "after": settings.buffer_after_minutes},
        SLOT_STEP_KEY: settings.slot_step_minutes,
        CANCELLATION_WINDOW_KEY: settings.cancellation_window_hours,
    }
    for key, value in rows.items():
        existing = session.get(BookingSetting, key)
        if existing:
            existing.value = value
            session.add(existing)
        else:
            session.add(BookingSetting(key=key, value=value))
    session.commit()
    return settings
