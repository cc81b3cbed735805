import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from osint_desk.api.schemas import ApiModel, SearchHistoryOut
from osint_desk.core.config import settings
from osint_desk.db.session import get_session
from osint_desk.services import search_history
from osint_desk.services.search import run_search

router = APIRouter(tags=["search"])


class SearchRequest(ApiModel):
    type: str
    query: str
    case_id: Optional[uuid.UUID] = None


class SearchError(ApiModel):
    provider: str
    message: str


class SearchResponse(ApiModel):
    results: list[dict[str, Any]]
    status: str
    message: str
    errors: list[SearchError] = []
    search_id: int


@router.post("/search", response_model=SearchResponse)
def search(body: SearchRequest, session: Session = Depends(get_session)):
    return run_search(session, search_type=body.type, query=body.query, case_id=body.case_id)


@router.get("/search-history", response_model=list[SearchHistoryOut])
def list_search_history(
    session: Session = Depends(get_session),
    limit: Optional[int] = Query(default=None, ge=1),
    type: Optional[str] = Query(default=None),
    date_range: Optional[str] = Query(default=None, alias="range", description="today, week, month or all"),
    q: Optional[str] = Query(default=None),
    case_id: Optional[uuid.UUID] = Query(default=None, alias="caseId"),
):
    limit = min(limit or settings.search_history_default_limit, settings.search_history_max_limit)
    return search_history.list_recent(
        session,
        limit,
        search_type=type,
        date_range=date_range,
        text=q,
        case_id=case_id,
    )
