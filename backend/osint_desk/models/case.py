import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from osint_desk.models.columns import JSONType


class Case(SQLModel, table=True):
    __tablename__ = "cases"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    title: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    status: str = Field(default="active", index=True)  # active/monitoring/archived
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSONType, nullable=False))
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    version: int = Field(default=1)
    idempotency_key: Optional[str] = Field(default=None, unique=True, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
