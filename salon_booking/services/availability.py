"""Cálculo de horários livres por profissional.

Os buffers são aplicados dos dois lados: nos agendamentos existentes (janela
ocupada) e no candidato. Assim dois atendimentos vizinhos ficam sempre
separados por pelo menos ``before + after`` minutos, sem que o buffer vire
um horário reservável.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlmodel import Session, select

from salon_booking.core.errors import Conflict, InvalidRange, NotFound, RangeTooLarge
from salon_booking.models.appointment import INACTIVE_STATUSES, Appointment
from salon_booking.models.types import utcnow
from salon_booking.services.calendar import BusinessCalendar
from salon_booking.services.catalog import get_bookable_service, list_offerings
from salon_booking.services.settings_store import BookingSettings, load_booking_settings
from salon_booking.services.timewindow import (
    BUSINESS_TIMEZONE,
    align_up_to_step,
    overlaps,
    shift_minutes,
)

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 31

Interval = Tuple[datetime, datetime]


@dataclass
class Slot:
    start: datetime
    end: datetime
    duration_minutes: int


@dataclass
class StaffAvailability:
    staff_id: uuid.UUID
    staff_name: str
    color_hex: Optional[str] = None
    slots: List[Slot] = field(default_factory=list)


@dataclass
class AvailabilityResult:
    service_id: uuid.UUID
    from_: datetime
    to: datetime
    staff: List[StaffAvailability]


def _truncate_to_minute(ts: datetime) -> datetime:
    return ts.replace(second=0, microsecond=0)


def _days(first: date, last: date):
    day = first
    while day <= last:
        yield day
        day += timedelta(days=1)


def build_busy_intervals(
    session: Session,
    staff_ids: List[uuid.UUID],
    range_start: datetime,
    range_end: datetime,
    settings: BookingSettings,
) -> Dict[uuid.UUID, List[Interval]]:
    """Agendamentos ativos que tocam o período, já expandidos pelos buffers."""
    if not staff_ids:
        return {}

    # margem dos dois buffers: um atendimento logo antes/depois do período
    # ainda bloqueia candidatos na borda
    margin = settings.buffer_total_minutes
    appointments = session.exec(
        select(Appointment).where(
            Appointment.staff_id.in_(staff_ids),
            Appointment.status.not_in(INACTIVE_STATUSES),
            Appointment.start_at < shift_minutes(range_end, margin),
            Appointment.end_at > shift_minutes(range_start, -margin),
        )
    ).all()

    busy: Dict[uuid.UUID, List[Interval]] = {}
    for appt in appointments:
        busy.setdefault(appt.staff_id, []).append(
            (
                shift_minutes(appt.start_at, -settings.buffer_before_minutes),
                shift_minutes(appt.end_at, settings.buffer_after_minutes),
            )
        )
    return busy


def get_availability(
    session: Session,
    service_id: uuid.UUID,
    from_: datetime,
    to: datetime,
    staff_id: Optional[uuid.UUID] = None,
    now: Optional[datetime] = None,
    tz: ZoneInfo = BUSINESS_TIMEZONE,
) -> AvailabilityResult:
    requested_from = from_.astimezone(tz)
    requested_to = to.astimezone(tz)
    # grade e janelas em minutos cheios; o filtro final usa os limites pedidos
    from_ = _truncate_to_minute(requested_from)
    to = _truncate_to_minute(requested_to)
    now = now or utcnow()

    if to <= from_:
        raise InvalidRange("The end of the range must be after the start.")

    if to - from_ > timedelta(days=MAX_RANGE_DAYS):
        raise RangeTooLarge(f"Requested range is too large. Please limit to {MAX_RANGE_DAYS} days.")

    service = get_bookable_service(session, service_id)

    offerings = list_offerings(session, service, staff_id=staff_id)
    if not offerings:
        raise NotFound("No active staff offers this service.")

    offerings = [offering for offering in offerings if offering.staff.is_active]
    if not offerings:
        raise Conflict("All staff for this service are inactive.")

    settings = load_booking_settings(session)
    calendar = BusinessCalendar.load(session, from_.date(), to.date(), tz)
    busy_by_staff = build_busy_intervals(
        session, [offering.staff.id for offering in offerings], from_, to, settings
    )

    availability = [
        StaffAvailability(
            staff_id=offering.staff.id,
            staff_name=offering.staff.display_name,
            color_hex=offering.staff.color_hex,
        )
        for offering in offerings
    ]

    for day in _days(from_.date(), to.date()):
        window = calendar.open_window(day)
        if window is None:
            continue

        window_start = max(window.start, from_)
        window_end = min(window.end, to)
        if window_end <= window_start:
            continue

        day_start_aligned = align_up_to_step(window_start, settings.slot_step_minutes)

        for offering, entry in zip(offerings, availability):
            duration = offering.duration_minutes
            if duration <= 0:
                logger.warning(f"Staff {entry.staff_id} has a non-positive duration for service {service.id}")
                continue

            busy = [
                interval
                for interval in busy_by_staff.get(entry.staff_id, [])
                if overlaps(interval[0], interval[1], window.start, window.end)
            ]

            start = day_start_aligned
            while shift_minutes(start, duration) <= window_end:
                end = shift_minutes(start, duration)
                candidate_start = shift_minutes(start, -settings.buffer_before_minutes)
                candidate_end = shift_minutes(end, settings.buffer_after_minutes)

                if (
                    start >= now
                    and window.contains(candidate_start, candidate_end)
                    and not any(overlaps(candidate_start, candidate_end, b_start, b_end) for b_start, b_end in busy)
                ):
                    entry.slots.append(Slot(start=start, end=end, duration_minutes=duration))

                start = shift_minutes(start, settings.slot_step_minutes)

    for entry in availability:
        entry.slots = sorted(
            (slot for slot in entry.slots if slot.start >= requested_from and slot.end <= requested_to),
            key=lambda slot: slot.start,
        )
    staff = [entry for entry in availability if entry.slots]

    logger.info(
        f"Availability for service {service.id} {from_.isoformat()}..{to.isoformat()}: "
        f"{sum(len(entry.slots) for entry in staff)} slots across {len(staff)} staff"
    )
    return AvailabilityResult(service_id=service.id, from_=from_, to=to, staff=staff)
