from typing import Any

from sqlalchemy import func
from sqlmodel import Session, select

from osint_desk.models.case import Case
from osint_desk.models.entity import Entity
from osint_desk.models.enums import CaseStatus, RiskLevel
from osint_desk.models.relationship import EntityRelationship
from osint_desk.services import cases as case_repo
from osint_desk.services import search_history

ALERT_RISK_LEVELS = (RiskLevel.HIGH.value, RiskLevel.CRITICAL.value)
LATEST_CASES = 10


def dashboard_stats(session: Session) -> dict[str, Any]:
    by_status: dict[str, int] = {}
    for status, n in session.exec(select(Case.status, func.count(Case.id)).group_by(Case.status)).all():
        by_status[status] = n

    by_risk: dict[str, int] = {}
    for risk, n in session.exec(
        select(Entity.risk_level, func.count(Entity.id)).group_by(Entity.risk_level)
    ).all():
        by_risk[risk] = n

    # high/critical entities in cases that are still open
    active_alerts = session.exec(
        select(func.count(Entity.id))
        .join(Case, Case.id == Entity.case_id)
        .where(Entity.risk_level.in_(ALERT_RISK_LEVELS), Case.status != CaseStatus.ARCHIVED.value)
    ).one()

    latest = case_repo.list_cases(session, limit=LATEST_CASES)

    return {
        "total_cases": sum(by_status.values()),
        "active_cases": by_status.get(CaseStatus.ACTIVE.value, 0),
        "total_entities": sum(by_risk.values()),
        "total_relationships": session.exec(select(func.count(EntityRelationship.id))).one(),
        "total_searches": search_history.count_since(session),
        "searches_today": search_history.count_since(session, search_history.start_of_today()),
        "active_alerts": active_alerts,
        "by_status": by_status,
        "by_risk_level": by_risk,
        "latest_cases": latest,
        "counters": case_repo.case_counters(session, [c.id for c in latest]),
    }
