"""Consultas de catálogo: serviço, equipe e quem oferece o quê."""

import uuid
from dataclasses import dataclass
from typing import List, Optional

from sqlmodel import Session, select

from salon_booking.core.errors import Conflict, NotFound
from salon_booking.models.service import Service, StaffService
from salon_booking.models.staff import Staff


@dataclass(frozen=True)
class StaffOffering:
    staff: Staff
    duration_minutes: int
    price_cents: int


def get_bookable_service(session: Session, service_id: uuid.UUID) -> Service:
    service = session.get(Service, service_id)
    if not service or not service.active:
        raise NotFound("Service not found.")
    if not service.is_online_bookable:
        raise Conflict("Service cannot be booked online.")
    return service


def list_offerings(
    session: Session,
    service: Service,
    staff_id: Optional[uuid.UUID] = None,
) -> List[StaffOffering]:
    """Equipe que faz o serviço, em ordem estável (nome, id)."""
    statement = (
        select(StaffService, Staff)
        .join(Staff, Staff.id == StaffService.staff_id)
        .where(StaffService.service_id == service.id)
        .order_by(Staff.display_name, Staff.id)
    )
    if staff_id is not None:
        statement = statement.where(StaffService.staff_id == staff_id)

    offerings = []
    for link, staff in session.exec(statement).all():
        offerings.append(
            StaffOffering(
                staff=staff,
                duration_minutes=(
                    link.duration_minutes if link.duration_minutes is not None else service.duration_minutes
                ),
                price_cents=link.price_cents if link.price_cents is not None else service.price_cents,
            )
        )
    return offerings
