import logging
from datetime import date, datetime
from typing import Dict, Iterable, NamedTuple, Optional
from zoneinfo import ZoneInfo

from sqlmodel import Session, select

from salon_booking.models.business_hours import OpeningException, OpeningHours
from salon_booking.services.timewindow import BUSINESS_TIMEZONE, combine_date_and_time

logger = logging.getLogger(__name__)


class OpenWindow(NamedTuple):
    start: datetime
    end: datetime

    def contains(self, start: datetime, end: datetime) -> bool:
        return start >= self.start and end <= self.end


class BusinessCalendar:
    """Horário efetivo por dia: exceção da data > horário semanal."""

    def __init__(
        self,
        weekly: Iterable[OpeningHours],
        exceptions: Iterable[OpeningException],
        tz: ZoneInfo = BUSINESS_TIMEZONE,
    ):
        self.tz = tz
        self._weekly: Dict[int, OpeningHours] = {row.weekday: row for row in weekly}
        self._exceptions: Dict[date, OpeningException] = {row.day: row for row in exceptions}

    @classmethod
    def load(
        cls,
        session: Session,
        first_day: date,
        last_day: date,
        tz: ZoneInfo = BUSINESS_TIMEZONE,
    ) -> "BusinessCalendar":
        weekly = session.exec(select(OpeningHours)).all()
        exceptions = session.exec(
            select(OpeningException).where(
                OpeningException.day >= first_day,
                OpeningException.day <= last_day,
            )
        ).all()
        return cls(weekly, exceptions, tz)

    def open_window(self, day: date) -> Optional[OpenWindow]:
        exception = self._exceptions.get(day)
        if exception is not None:
            if exception.is_closed:
                return None
            if exception.opens_at is None or exception.closes_at is None:
                # exceção "aberta" sem horário: não dá para derivar janela
                logger.warning(f"Opening exception for {day} is open but has no hours, treating as closed")
                return None
            opens_at, closes_at = exception.opens_at, exception.closes_at
        else:
            hours = self._weekly.get(day.weekday())
            if not hours or hours.is_closed or hours.opens_at is None or hours.closes_at is None:
                return None
            opens_at, closes_at = hours.opens_at, hours.closes_at

        start = combine_date_and_time(day, opens_at, self.tz)
        end = combine_date_and_time(day, closes_at, self.tz)
        if end <= start:
            logger.warning(f"Opening hours for {day} close before they open ({opens_at}-{closes_at}), skipping day")
            return None
        return OpenWindow(start, end)
