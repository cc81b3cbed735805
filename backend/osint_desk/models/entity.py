import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from osint_desk.models.columns import JSONType


class Entity(SQLModel, table=True):
    __tablename__ = "entities"
    __table_args__ = (UniqueConstraint("case_id", "type", "label_key", name="uq_entities_case_type_label"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    case_id: uuid.UUID = Field(index=True)

    type: str = Field(index=True)  # person/phone/email/username/wallet/vehicle/imei/domain/ip/organization
    label: str = Field(index=True, max_length=255)
    label_key: str = Field(index=True)  # casefolded label, backs the uniqueness rule
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    risk_level: str = Field(default="unknown", index=True)  # unknown/low/medium/high/critical
    confidence_score: int = Field(default=0)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSONType, nullable=False))
    source_attribution: Optional[str] = None
    data: Any = Field(default_factory=dict, sa_column=Column(JSONType, nullable=False))

    version: int = Field(default=1)
    idempotency_key: Optional[str] = Field(default=None, unique=True, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
