import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from osint_desk.models.columns import JSONType


class TimelineEvent(SQLModel, table=True):
    __tablename__ = "timeline_events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    case_id: uuid.UUID = Field(index=True)
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    event_type: str = Field(index=True)  # case_created/entity_added/relationship_added/...
    message: str
    details: Any = Field(default_factory=dict, sa_column=Column(JSONType, nullable=False))
