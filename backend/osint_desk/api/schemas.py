import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from osint_desk.core.clock import isoformat_z


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TimestampedOut(ApiModel):
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, dt: datetime) -> str:
        return isoformat_z(dt)


class CaseOut(TimestampedOut):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    status: str
    tags: list[str] = []
    notes: Optional[str] = None
    version: int
    updated_at: datetime
    entity_count: int = 0
    search_count: int = 0

    @field_serializer("updated_at")
    def serialize_updated_at(self, dt: datetime) -> str:
        return isoformat_z(dt)


class EntityOut(TimestampedOut):
    id: uuid.UUID
    case_id: uuid.UUID
    type: str
    label: str
    notes: Optional[str] = None
    risk_level: str
    confidence_score: int
    tags: list[str] = []
    source_attribution: Optional[str] = None
    data: dict[str, Any] = {}
    version: int


class RelationshipOut(TimestampedOut):
    id: uuid.UUID
    source_entity_id: uuid.UUID
    target_entity_id: uuid.UUID
    relationship_type: str
    strength: int
    notes: Optional[str] = None


class SearchHistoryOut(TimestampedOut):
    id: int
    search_type: str
    search_query: str
    result_count: int
    status: str
    case_id: Optional[uuid.UUID] = None


class TimelineEventOut(ApiModel):
    id: uuid.UUID
    case_id: uuid.UUID
    ts: datetime
    event_type: str
    message: str
    details: dict[str, Any] = {}

    @field_serializer("ts")
    def serialize_ts(self, dt: datetime) -> str:
        return isoformat_z(dt)
