import uuid
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Service(SQLModel, table=True):
    __tablename__ = "services"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str
    duration_minutes: int
    price_cents: int
    currency: str = "CHF"

    active: bool = Field(default=True, index=True)

    # serviços só no balcão (ex.: coloração com consulta) ficam fora do booking online
    is_online_bookable: bool = Field(default=True, index=True)


class StaffService(SQLModel, table=True):
    """Quem faz qual serviço, com duração/preço próprios opcionais."""

    __tablename__ = "staff_services"
    __table_args__ = (UniqueConstraint("staff_id", "service_id", name="uq_staff_service"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    staff_id: uuid.UUID = Field(foreign_key="staff.id", index=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", index=True)

    duration_minutes: Optional[int] = None
    price_cents: Optional[int] = None
