"""Append-only log of searches; feeds the history page, recency lists and stats."""

import uuid
from collections.abc import Iterator
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from osint_desk.core.clock import as_utc, utcnow
from osint_desk.core.errors import ValidationError
from osint_desk.models.enums import SearchStatus, SearchType, values
from osint_desk.models.search_history import SearchHistory
from osint_desk.services.validators import check_choice, check_range

DATE_RANGES = ("today", "week", "month", "all")


def start_of_today(now: Optional[datetime] = None) -> datetime:
    now = as_utc(now) or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def range_start(date_range: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    now = as_utc(now) or utcnow()
    if date_range in (None, "", "all"):
        return None
    if date_range == "today":
        return start_of_today(now)
    if date_range == "week":
        return now - timedelta(days=7)
    if date_range == "month":
        return now - timedelta(days=30)
    raise ValidationError(f"date_range must be one of: {', '.join(DATE_RANGES)}", field="date_range")


def record_search(
    session: Session,
    *,
    search_type: str,
    search_query: str,
    result_count: int,
    status: str = SearchStatus.OK.value,
    case_id: Optional[uuid.UUID] = None,
) -> SearchHistory:
    check_choice(search_type, "search_type", values(SearchType))
    check_choice(status, "status", values(SearchStatus))
    check_range(result_count, "result_count", 0, 1_000_000)

    # never behind the newest row, even if the wall clock steps back
    now = utcnow()
    last = session.exec(
        select(SearchHistory.created_at).order_by(SearchHistory.created_at.desc()).limit(1)
    ).first()
    if last is not None and as_utc(last) > now:
        now = as_utc(last)

    row = SearchHistory(
        search_type=search_type,
        search_query=search_query,
        result_count=result_count,
        status=status,
        case_id=case_id,
        created_at=now,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def iter_recent(
    session: Session,
    *,
    limit: int,
    search_type: Optional[str] = None,
    date_range: Optional[str] = None,
    text: Optional[str] = None,
    case_id: Optional[uuid.UUID] = None,
) -> Iterator[SearchHistory]:
    q = select(SearchHistory).order_by(SearchHistory.created_at.desc(), SearchHistory.id.desc())
    if search_type:
        q = q.where(SearchHistory.search_type == check_choice(search_type, "type", values(SearchType)))
    since = range_start(date_range)
    if since is not None:
        q = q.where(SearchHistory.created_at >= since)
    if text and text.strip():
        q = q.where(func.lower(SearchHistory.search_query).like(f"%{text.strip().lower()}%"))
    if case_id is not None:
        q = q.where(SearchHistory.case_id == case_id)

    yield from session.exec(q.limit(limit))


def list_recent(session: Session, limit: int, **filters) -> list[SearchHistory]:
    return list(iter_recent(session, limit=limit, **filters))


def count_since(session: Session, since: Optional[datetime] = None) -> int:
    q = select(func.count(SearchHistory.id))
    if since is not None:
        q = q.where(SearchHistory.created_at >= since)
    return session.exec(q).one()
