from fastapi import APIRouter, Depends
from sqlmodel import Session

from salon_booking.core.security import Actor, get_schedule_admin
from salon_booking.database import get_session
from salon_booking.schemas import BookingSettingsIO
from salon_booking.services.settings_store import (
    BookingSettings,
    load_booking_settings,
    save_booking_settings,
)

router = APIRouter(prefix="/booking-settings", tags=["booking-settings"])


def _to_schema(settings: BookingSettings) -> BookingSettingsIO:
    return BookingSettingsIO(
        buffer_before_minutes=settings.buffer_before_minutes,
        buffer_after_minutes=settings.buffer_after_minutes,
        slot_step_minutes=settings.slot_step_minutes,
        cancellation_window_hours=settings.cancellation_window_hours,
    )


@router.get("", response_model=BookingSettingsIO)
def read_booking_settings(
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    return _to_schema(load_booking_settings(session))


@router.put("", response_model=BookingSettingsIO)
def update_booking_settings(
    payload: BookingSettingsIO,
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    saved = save_booking_settings(
        session,
        BookingSettings(
            buffer_before_minutes=payload.buffer_before_minutes,
            buffer_after_minutes=payload.buffer_after_minutes,
            slot_step_minutes=payload.slot_step_minutes,
            cancellation_window_hours=payload.cancellation_window_hours,
        ),
    )
    return _to_schema(saved)
