from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from salon_booking.database import get_session
from salon_booking.models.service import Service
from salon_booking.schemas import ServiceOut


router = APIRouter(
    prefix="/services",
    tags=["services"]
)


# catálogo público: só o que pode ser agendado online
@router.get("", response_model=List[ServiceOut])
def list_bookable_services(
    session: Session = Depends(get_session),
):
    services = session.exec(
        select(Service)
        .where(Service.active == True, Service.is_online_bookable == True)  # noqa: E712
        .order_by(Service.name)
    ).all()

    return [
        ServiceOut(
            id=s.id,
            name=s.name,
            duration_minutes=s.duration_minutes,
            price_cents=s.price_cents,
            currency=s.currency,
        )
        for s in services
    ]
