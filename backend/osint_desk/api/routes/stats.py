from fastapi import APIRouter, Depends
from sqlmodel import Session

from osint_desk.api.schemas import CaseOut
from osint_desk.db.session import get_session
from osint_desk.services.stats import dashboard_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("")
def stats(session: Session = Depends(get_session)):
    s = dashboard_stats(session)
    counters = s["counters"]
    return {
        "totalCases": s["total_cases"],
        "activeCases": s["active_cases"],
        "totalEntities": s["total_entities"],
        "totalRelationships": s["total_relationships"],
        "totalSearches": s["total_searches"],
        "searchesToday": s["searches_today"],
        "activeAlerts": s["active_alerts"],
        "byStatus": s["by_status"],
        "byRiskLevel": s["by_risk_level"],
        "latestCases": [
            CaseOut.model_validate({**c.model_dump(), **counters[c.id]}).model_dump(mode="json", by_alias=True)
            for c in s["latest_cases"]
        ],
    }
