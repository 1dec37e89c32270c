import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from salon_booking.models.types import UTCDateTime, utcnow


class Notification(SQLModel, table=True):
    """Outbox: gravado na mesma transação do agendamento, enviado por fora."""

    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    channel: str = "email"  # email | sms | webhook | push
    recipient: str = Field(index=True)
    subject: str
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    status: str = Field(default="pending", index=True)
    # pending | queued | sent | failed

    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))
