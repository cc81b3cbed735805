import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


class EntityRelationship(SQLModel, table=True):
    __tablename__ = "entity_relationships"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    source_entity_id: uuid.UUID = Field(index=True)
    target_entity_id: uuid.UUID = Field(index=True)

    relationship_type: str = Field(index=True)  # owns/associated/contacted/linked/...
    strength: int = Field(default=50)
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    idempotency_key: Optional[str] = Field(default=None, unique=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
