from datetime import date

from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from salon_booking.core.errors import InvalidInput, NotFound
from salon_booking.core.security import Actor, get_schedule_admin
from salon_booking.database import get_session
from salon_booking.models.business_hours import OpeningException, OpeningHours
from salon_booking.schemas import OpeningExceptionIn, OpeningHoursIn

router = APIRouter(tags=["opening-hours"])


def _validate_hours(is_closed: bool, opens_at, closes_at) -> None:
    if is_closed:
        return
    if opens_at is None or closes_at is None:
        raise InvalidInput("opensAt and closesAt are required when isClosed=false")
    if closes_at <= opens_at:
        raise InvalidInput("closesAt must be after opensAt")


# =========================
# HORÁRIO SEMANAL
# =========================
@router.get("/opening-hours")
def list_opening_hours(
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    return session.exec(select(OpeningHours).order_by(OpeningHours.weekday)).all()


@router.get("/opening-hours/{weekday}")
def get_opening_hours(
    weekday: int,
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    row = session.exec(select(OpeningHours).where(OpeningHours.weekday == weekday)).first()
    if row is None:
        raise NotFound("No opening hours for this weekday.")
    return row


@router.put("/opening-hours/{weekday}")
def upsert_opening_hours(
    weekday: int,
    payload: OpeningHoursIn,
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    """
    weekday: 0=segunda ... 6=domingo
    """
    if weekday < 0 or weekday > 6:
        raise InvalidInput("weekday must be 0..6")

    _validate_hours(payload.is_closed, payload.opens_at, payload.closes_at)

    row = session.exec(select(OpeningHours).where(OpeningHours.weekday == weekday)).first()
    if row is None:
        row = OpeningHours(weekday=weekday)

    row.is_closed = payload.is_closed
    row.opens_at = None if payload.is_closed else payload.opens_at
    row.closes_at = None if payload.is_closed else payload.closes_at

    session.add(row)
    session.commit()
    session.refresh(row)
    return row


# =========================
# EXCEÇÕES (feriados, horário especial)
# =========================
@router.get("/opening-exceptions")
def list_opening_exceptions(
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    return session.exec(select(OpeningException).order_by(OpeningException.day)).all()


@router.get("/opening-exceptions/{day}")
def get_opening_exception(
    day: date,
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    row = session.exec(select(OpeningException).where(OpeningException.day == day)).first()
    if row is None:
        raise NotFound("Opening exception not found.")
    return row


@router.put("/opening-exceptions/{day}")
def upsert_opening_exception(
    day: date,
    payload: OpeningExceptionIn,
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    _validate_hours(payload.is_closed, payload.opens_at, payload.closes_at)

    row = session.exec(select(OpeningException).where(OpeningException.day == day)).first()
    if row is None:
        row = OpeningException(day=day)

    row.is_closed = payload.is_closed
    row.opens_at = None if payload.is_closed else payload.opens_at
    row.closes_at = None if payload.is_closed else payload.closes_at
    row.reason = payload.reason

    session.add(row)
    session.commit()
    session.refresh(row)
    return row


@router.delete("/opening-exceptions/{day}", status_code=status.HTTP_204_NO_CONTENT)
def delete_opening_exception(
    day: date,
    session: Session = Depends(get_session),
    admin: Actor = Depends(get_schedule_admin),
):
    row = session.exec(select(OpeningException).where(OpeningException.day == day)).first()
    if row is None:
        raise NotFound("Opening exception not found.")

    session.delete(row)
    session.commit()
