"""Dados de demonstração: equipe, serviços, horário semanal e configurações.

Uso: python -m salon_booking.scripts.seed
"""

import logging
from datetime import time

from sqlmodel import Session, select

from salon_booking.core.config import Settings
from salon_booking.core.security import Role, issue_staff_token
from salon_booking.database import Database
from salon_booking.models.business_hours import OpeningHours
from salon_booking.models.service import Service, StaffService
from salon_booking.models.staff import Staff
from salon_booking.services.settings_store import BookingSettings, save_booking_settings

logger = logging.getLogger(__name__)


STAFF = [
    dict(display_name="Anna", color_hex="#E07A5F"),
    dict(display_name="Luca", color_hex="#3D405B"),
]

# (nome, duração, preço em centavos, online)
SERVICES = [
    ("Damenhaarschnitt", 60, 8900, True),
    ("Herrenhaarschnitt", 30, 4900, True),
    ("Föhnen", 30, 3900, True),
    ("Coloration mit Beratung", 120, 16900, False),
]

# seg-sex 09-18, sáb 09-16, domingo fechado
WEEKLY_HOURS = {
    0: (time(9, 0), time(18, 0)),
    1: (time(9, 0), time(18, 0)),
    2: (time(9, 0), time(18, 0)),
    3: (time(9, 0), time(18, 0)),
    4: (time(9, 0), time(18, 0)),
    5: (time(9, 0), time(16, 0)),
    6: None,
}


def seed(session: Session) -> None:
    staff_rows = []
    for data in STAFF:
        row = session.exec(select(Staff).where(Staff.display_name == data["display_name"])).first()
        if not row:
            row = Staff(**data)
            session.add(row)
        staff_rows.append(row)

    service_rows = []
    for name, duration, price_cents, online in SERVICES:
        row = session.exec(select(Service).where(Service.name == name)).first()
        if not row:
            row = Service(
                name=name,
                duration_minutes=duration,
                price_cents=price_cents,
                is_online_bookable=online,
            )
            session.add(row)
        service_rows.append(row)

    session.flush()

    for staff in staff_rows:
        for service in service_rows:
            link = session.exec(
                select(StaffService).where(
                    StaffService.staff_id == staff.id,
                    StaffService.service_id == service.id,
                )
            ).first()
            if not link:
                session.add(StaffService(staff_id=staff.id, service_id=service.id))

    for weekday, hours in WEEKLY_HOURS.items():
        row = session.exec(select(OpeningHours).where(OpeningHours.weekday == weekday)).first()
        if not row:
            row = OpeningHours(weekday=weekday)
        row.is_closed = hours is None
        row.opens_at = hours[0] if hours else None
        row.closes_at = hours[1] if hours else None
        session.add(row)

    # commita tudo junto com as configurações padrão
    save_booking_settings(session, BookingSettings())


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    settings = Settings.from_env()
    database = Database(settings.database_url)
    database.create_db_and_tables()

    with database.session() as session:
        seed(session)

    logger.info("Seed concluído!")
    logger.info(f"Equipe: {', '.join(s['display_name'] for s in STAFF)}")
    logger.info(f"Serviços: {', '.join(s[0] for s in SERVICES)}")
    logger.info("Horários: seg-sex 09-18, sáb 09-16, domingo fechado")
    logger.info(
        f"Token de gestão ({settings.access_token_expire_minutes} min): "
        f"{issue_staff_token(settings, 'seed-owner', [Role.OWNER])}"
    )


if __name__ == "__main__":
    main()
