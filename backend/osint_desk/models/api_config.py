import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


class ApiConfig(SQLModel, table=True):
    __tablename__ = "api_configs"
    __table_args__ = (UniqueConstraint("category", "provider_name", name="uq_api_configs_category_provider"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    category: str = Field(index=True)  # search type served
    provider_name: str = Field(index=True)

    api_key: str  # secret, never returned by the API
    base_url: Optional[str] = None
    quota_limit: Optional[int] = None

    requests_today: int = Field(default=0)
    usage_date: Optional[str] = None  # UTC calendar day requests_today belongs to
    is_active: bool = Field(default=True, index=True)
    last_sync: Optional[datetime] = None
    error_log: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
