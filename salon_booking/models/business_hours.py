import uuid
from datetime import date, time
from typing import Optional

from sqlmodel import SQLModel, Field


class OpeningHours(SQLModel, table=True):
    __tablename__ = "opening_hours"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # 0=segunda ... 6=domingo
    weekday: int = Field(index=True, unique=True)

    is_closed: bool = False

    opens_at: Optional[time] = None
    closes_at: Optional[time] = None


class OpeningException(SQLModel, table=True):
    """Feriado ou horário especial: substitui o horário semanal só nesse dia."""

    __tablename__ = "opening_exceptions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    day: date = Field(index=True, unique=True)

    is_closed: bool = True

    opens_at: Optional[time] = None
    closes_at: Optional[time] = None

    reason: Optional[str] = Field(default=None, max_length=200)
