import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class SearchHistory(SQLModel, table=True):
    __tablename__ = "search_history"

    # integer key: breaks ties between rows stamped in the same instant
    id: Optional[int] = Field(default=None, primary_key=True)

    search_type: str = Field(index=True)
    search_query: str
    result_count: int = Field(default=0)
    status: str = Field(default="ok", index=True)  # ok/partial/no_active_provider/error
    case_id: Optional[uuid.UUID] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
