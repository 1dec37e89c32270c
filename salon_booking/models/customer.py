import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Column
from sqlmodel import SQLModel, Field

from salon_booking.models.types import UTCDateTime, utcnow


class Customer(SQLModel, table=True):
    __tablename__ = "customers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    email: str = Field(index=True, unique=True)
    first_name: str
    last_name: str
    phone: Optional[str] = None

    # uma vez true, só volta a false por revogação explícita
    marketing_opt_in: bool = False

    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))
