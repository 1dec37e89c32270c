"""Utilitários de tempo do salão.

Tudo que sai daqui é ``datetime`` com fuso. Aritmética em minutos é feita em
UTC (``shift_minutes``) para que a troca de horário de verão não encurte nem
alongue um atendimento.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from salon_booking.core.errors import InvalidFormat, InvalidInput

BUSINESS_TIMEZONE = ZoneInfo("Europe/Zurich")

_RANGE_PATTERN = re.compile(r"^[\[(](.*),(.*)[)\]]$")
_TIME_OF_DAY_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_local_datetime(value: str, tz: ZoneInfo = BUSINESS_TIMEZONE) -> datetime:
    """ISO-8601 -> datetime no fuso do salão. Sem offset = horário local."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (TypeError, ValueError, AttributeError):
        raise InvalidInput(f"Invalid ISO date: {value}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def to_range_literal(start: datetime, end: datetime) -> str:
    return f"[{start.astimezone(timezone.utc).isoformat()},{end.astimezone(timezone.utc).isoformat()})"


def parse_range_literal(text: str, tz: ZoneInfo = BUSINESS_TIMEZONE) -> Tuple[datetime, datetime]:
    match = _RANGE_PATTERN.match(text.strip())
    if not match:
        raise InvalidFormat(f"Invalid range format: {text}")

    bounds = []
    for raw in match.groups():
        raw = raw.strip().strip('"')
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise InvalidFormat(f"Invalid range bounds: {text}")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        bounds.append(parsed.astimezone(tz))

    return bounds[0], bounds[1]


def combine_date_and_time(
    day: date,
    time_of_day: Optional[Union[time, str]],
    tz: ZoneInfo = BUSINESS_TIMEZONE,
) -> Optional[datetime]:
    if time_of_day is None:
        return None

    if isinstance(time_of_day, str):
        match = _TIME_OF_DAY_PATTERN.match(time_of_day.strip())
        if not match:
            raise InvalidInput(f"Invalid time of day: {time_of_day}")
        hours, minutes, seconds = (int(part or 0) for part in match.groups())
        try:
            time_of_day = time(hours, minutes, seconds)
        except ValueError:
            raise InvalidInput(f"Invalid time of day: {time_of_day}")

    return datetime.combine(day, time_of_day.replace(microsecond=0, tzinfo=None), tzinfo=tz)


def align_up_to_step(ts: datetime, step_minutes: int) -> datetime:
    if step_minutes <= 0:
        raise InvalidInput("Slot step must be a positive number of minutes")

    normalized = ts.replace(second=0, microsecond=0)
    remainder = normalized.minute % step_minutes
    if remainder == 0:
        return normalized
    return shift_minutes(normalized, step_minutes - remainder)


def shift_minutes(ts: datetime, minutes: int) -> datetime:
    return (ts.astimezone(timezone.utc) + timedelta(minutes=minutes)).astimezone(ts.tzinfo)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Retorna True se [a_start, a_end) sobrepõe [b_start, b_end)."""
    return a_start < b_end and a_end > b_start
