import uuid
from typing import Optional

from sqlmodel import SQLModel, Field


class Staff(SQLModel, table=True):
    __tablename__ = "staff"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    display_name: str
    is_active: bool = Field(default=True, index=True)

    # só para exibição no calendário
    color_hex: Optional[str] = None
