"""Schemas da API de booking (JSON em camelCase)."""

import uuid
from datetime import datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =========================
# ENTRADA
# =========================

class CustomerInput(CamelModel):
    email: EmailStr
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: Optional[str] = Field(default=None, min_length=5, max_length=32)
    marketing_opt_in: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=1024)


class BookingCreate(CamelModel):
    idempotency_key: str = Field(min_length=8, max_length=64)
    service_id: uuid.UUID
    staff_id: Optional[uuid.UUID] = None
    start: str
    customer: CustomerInput
    notes: Optional[str] = Field(default=None, max_length=1024)
    locale: str = "de-CH"


class BookingCancel(CamelModel):
    appointment_id: uuid.UUID
    reason: str = Field(min_length=3, max_length=512)


class RescheduleRequest(CamelModel):
    appointment_id: uuid.UUID
    requested_start: str
    notes: Optional[str] = Field(default=None, max_length=1024)


# =========================
# SAÍDA
# =========================

class SlotOut(CamelModel):
    start: datetime
    end: datetime
    duration_minutes: int


class StaffAvailabilityOut(CamelModel):
    staff_id: uuid.UUID
    staff_name: str
    color_hex: Optional[str] = None
    slots: List[SlotOut]


class AvailabilityOut(CamelModel):
    service_id: uuid.UUID
    from_: datetime = Field(alias="from")
    to: datetime
    staff: List[StaffAvailabilityOut]


class AppointmentSummary(CamelModel):
    id: uuid.UUID
    status: str
    staff_id: uuid.UUID
    staff_name: str
    service_id: uuid.UUID
    service_name: str
    customer_id: uuid.UUID
    start: datetime
    end: datetime
    slot: str
    price_cents: int
    currency: str
    notes: Optional[str] = None


class BookingOut(AppointmentSummary):
    was_duplicate: bool = False


class RescheduleAccepted(CamelModel):
    status: str = "accepted"
    appointment_id: uuid.UUID


# =========================
# ADMIN: HORÁRIOS E CONFIGURAÇÕES
# =========================

class OpeningHoursIn(CamelModel):
    is_closed: bool = False
    opens_at: Optional[time] = None
    closes_at: Optional[time] = None


class OpeningExceptionIn(CamelModel):
    is_closed: bool = True
    opens_at: Optional[time] = None
    closes_at: Optional[time] = None
    reason: Optional[str] = Field(default=None, max_length=200)


class BookingSettingsIO(CamelModel):
    buffer_before_minutes: int = Field(ge=0)
    buffer_after_minutes: int = Field(ge=0)
    slot_step_minutes: int = Field(ge=1, le=240)
    cancellation_window_hours: float = Field(ge=0)


class ServiceOut(CamelModel):
    id: uuid.UUID
    name: str
    duration_minutes: int
    price_cents: int
    currency: str
