import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, Index
from sqlmodel import SQLModel, Field

from salon_booking.models.types import UTCDateTime, utcnow
from salon_booking.services.timewindow import to_range_literal


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# status que liberam o horário
INACTIVE_STATUSES = (AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value)


class AppointmentEventType(str, Enum):
    CREATED = "created"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_staff_range", "staff_id", "start_at", "end_at"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    customer_id: uuid.UUID = Field(foreign_key="customers.id", index=True)
    staff_id: uuid.UUID = Field(foreign_key="staff.id", index=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", index=True)

    # um agendamento por chave, independente do profissional
    idempotency_key: Optional[str] = Field(default=None, unique=True, index=True, max_length=64)

    # STATUS DO AGENDAMENTO
    status: str = Field(default=AppointmentStatus.PENDING.value, index=True)

    # intervalo semiaberto [start_at, end_at) em UTC
    start_at: datetime = Field(sa_column=Column(UTCDateTime(), nullable=False))
    end_at: datetime = Field(sa_column=Column(UTCDateTime(), nullable=False))

    # SNAPSHOT FINANCEIRO
    price_cents: int
    currency: str

    notes: Optional[str] = None

    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = Field(default=None, sa_column=Column(UTCDateTime(), nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))

    @property
    def slot(self) -> str:
        return to_range_literal(self.start_at, self.end_at)


class AppointmentEvent(SQLModel, table=True):
    """Histórico append-only; o evento ``created`` também registra a idempotency key."""

    __tablename__ = "appointment_events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    appointment_id: uuid.UUID = Field(foreign_key="appointments.id", index=True)
    event_type: str = Field(index=True)
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))
