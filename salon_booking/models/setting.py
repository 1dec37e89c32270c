from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class BookingSetting(SQLModel, table=True):
    __tablename__ = "settings"

    key: str = Field(primary_key=True, max_length=100)
    value: Any = Field(sa_column=Column(JSON, nullable=False))
    description: Optional[str] = None
