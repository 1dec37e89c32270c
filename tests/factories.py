"""Banco SQLite temporário e dados mínimos de salão para os testes."""

import os
import tempfile
import unittest
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Optional

from sqlmodel import Session

from salon_booking.database import Database
from salon_booking.models.appointment import Appointment, AppointmentStatus
from salon_booking.models.business_hours import OpeningHours
from salon_booking.models.customer import Customer
from salon_booking.models.service import Service, StaffService
from salon_booking.models.staff import Staff
from salon_booking.schemas import BookingCreate
from salon_booking.services.settings_store import BookingSettings, save_booking_settings
from salon_booking.services.timewindow import BUSINESS_TIMEZONE

TZ = BUSINESS_TIMEZONE

# 2030-06-03 é uma segunda-feira
MONDAY = datetime(2030, 6, 3, tzinfo=TZ).date()
NOW = datetime(2030, 1, 1, tzinfo=timezone.utc)


def local(hour: int, minute: int = 0, day=MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=TZ)


@dataclass
class Salon:
    staff: Staff
    service: Service


def seed_salon(
    session: Session,
    duration_minutes: int = 60,
    opens_at: time = time(9, 0),
    closes_at: time = time(18, 0),
    settings: Optional[BookingSettings] = None,
) -> Salon:
    """Uma profissional, um serviço e todos os dias abertos no mesmo horário."""
    staff = Staff(display_name="Anna", color_hex="#E07A5F")
    service = Service(name="Damenhaarschnitt", duration_minutes=duration_minutes, price_cents=8900)
    session.add(staff)
    session.add(service)
    session.flush()

    session.add(StaffService(staff_id=staff.id, service_id=service.id))
    for weekday in range(7):
        session.add(OpeningHours(weekday=weekday, opens_at=opens_at, closes_at=closes_at))

    save_booking_settings(session, settings or BookingSettings())
    return Salon(staff=staff, service=service)


def add_staff(session: Session, salon: Salon, name: str, duration_minutes: Optional[int] = None) -> Staff:
    staff = Staff(display_name=name)
    session.add(staff)
    session.flush()
    session.add(StaffService(staff_id=staff.id, service_id=salon.service.id, duration_minutes=duration_minutes))
    session.commit()
    return staff


def add_appointment(
    session: Session,
    salon: Salon,
    start: datetime,
    end: datetime,
    status: str = AppointmentStatus.CONFIRMED.value,
) -> Appointment:
    customer = Customer(email=f"walkin-{start.isoformat()}@example.com", first_name="Walk", last_name="In")
    session.add(customer)
    session.flush()

    appointment = Appointment(
        customer_id=customer.id,
        staff_id=salon.staff.id,
        service_id=salon.service.id,
        status=status,
        start_at=start,
        end_at=end,
        price_cents=salon.service.price_cents,
        currency=salon.service.currency,
    )
    session.add(appointment)
    session.commit()
    return appointment


def booking_payload(
    salon: Salon,
    start: datetime,
    key: str = "key-00000001",
    email: str = "lea@example.com",
    marketing_opt_in: Optional[bool] = None,
    phone: Optional[str] = None,
    staff_id=None,
) -> BookingCreate:
    return BookingCreate(
        idempotency_key=key,
        service_id=salon.service.id,
        staff_id=staff_id,
        start=start.isoformat(),
        customer={
            "email": email,
            "firstName": "Lea",
            "lastName": "Muster",
            "phone": phone,
            "marketingOptIn": marketing_opt_in,
        },
    )


class DatabaseTestCase(unittest.TestCase):
    """Cada teste ganha um arquivo SQLite novo."""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.db_url = f"sqlite:///{os.path.join(self._tmpdir.name, 'booking.db')}"
        self.database = Database(self.db_url)
        self.database.create_db_and_tables()
        self.session = Session(self.database.engine, expire_on_commit=False)

    def tearDown(self):
        self.session.close()
        self.database.dispose()
        self._tmpdir.cleanup()

    def new_session(self) -> Session:
        return Session(self.database.engine, expire_on_commit=False)
