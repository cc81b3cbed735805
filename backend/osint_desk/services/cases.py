"""Case repository: the investigation container and its aggregate counters."""

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import delete, func, or_
from sqlmodel import Session, select

from osint_desk.core.clock import utcnow
from osint_desk.core.errors import ConflictError, NotFoundError
from osint_desk.metrics.prometheus import cases_created_total
from osint_desk.models.case import Case
from osint_desk.models.entity import Entity
from osint_desk.models.enums import CaseStatus, TimelineEventType, values
from osint_desk.models.relationship import EntityRelationship
from osint_desk.models.search_history import SearchHistory
from osint_desk.models.timeline import TimelineEvent
from osint_desk.services import timeline
from osint_desk.services.validators import (
    check_choice,
    clean_tags,
    optional_text,
    reject_unknown,
    require_text,
)

logger = logging.getLogger(__name__)

TITLE_MAX = 100
DESCRIPTION_MAX = 500

UPDATABLE_FIELDS = ("title", "description", "status", "tags", "notes")


def _validate(fields: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "title" in fields:
        out["title"] = require_text(fields["title"], "title", TITLE_MAX)
    if "description" in fields:
        out["description"] = optional_text(fields["description"], "description", DESCRIPTION_MAX)
    if "status" in fields:
        out["status"] = check_choice(fields["status"], "status", values(CaseStatus))
    if "tags" in fields:
        out["tags"] = clean_tags(fields["tags"])
    if "notes" in fields:
        out["notes"] = optional_text(fields["notes"], "notes")
    return out


def create_case(
    session: Session,
    *,
    title: str,
    description: Optional[str] = None,
    status: str = CaseStatus.ACTIVE.value,
    tags: Optional[list[str]] = None,
    notes: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> Case:
    if idempotency_key:
        existing = session.exec(select(Case).where(Case.idempotency_key == idempotency_key)).first()
        if existing:
            return existing

    clean = _validate(
        {"title": title, "description": description, "status": status, "tags": tags, "notes": notes}
    )
    now = utcnow()
    case = Case(**clean, idempotency_key=idempotency_key, created_at=now, updated_at=now)
    session.add(case)
    timeline.record_event(
        session,
        case.id,
        TimelineEventType.CASE_CREATED.value,
        f"case created: {case.title}",
        {"status": case.status},
    )
    session.commit()
    session.refresh(case)

    cases_created_total.inc()
    logger.info("Created case %s (%s)", case.id, case.status)
    return case


def get_case(session: Session, case_id: uuid.UUID) -> Case:
    case = session.get(Case, case_id)
    if not case:
        raise NotFoundError("Case", case_id)
    return case


def list_cases(
    session: Session,
    *,
    status: Optional[str] = None,
    text: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Case]:
    q = select(Case).order_by(Case.created_at.desc(), Case.id)
    if status:
        q = q.where(Case.status == check_choice(status, "status", values(CaseStatus)))
    if text and text.strip():
        pattern = f"%{text.strip().lower()}%"
        q = q.where(
            or_(
                func.lower(Case.title).like(pattern),
                func.lower(func.coalesce(Case.description, "")).like(pattern),
            )
        )
    if limit:
        q = q.limit(limit)
    return list(session.exec(q).all())


def update_case(
    session: Session,
    case_id: uuid.UUID,
    fields: dict[str, Any],
    *,
    expected_version: Optional[int] = None,
) -> Case:
    case = get_case(session, case_id)
    reject_unknown(fields, UPDATABLE_FIELDS)
    if expected_version is not None and expected_version != case.version:
        raise ConflictError(
            f"Case {case_id} was modified (version {case.version}, expected {expected_version})"
        )

    clean = _validate(fields)
    changed = sorted(k for k, v in clean.items() if getattr(case, k) != v)
    for field, value in clean.items():
        setattr(case, field, value)

    case.version += 1
    case.updated_at = utcnow()
    session.add(case)
    if changed:
        timeline.record_event(
            session,
            case.id,
            TimelineEventType.CASE_UPDATED.value,
            f"case updated: {', '.join(changed)}",
            {"fields": changed, "status": case.status},
        )
    session.commit()
    session.refresh(case)
    return case


def delete_case(session: Session, case_id: uuid.UUID) -> dict[str, int]:
    """Delete a case together with its entities, their relationships and its timeline.

    Search history is an audit log and is left untouched.
    """
    case = get_case(session, case_id)

    entity_ids = list(session.exec(select(Entity.id).where(Entity.case_id == case_id)).all())
    removed_relationships = 0
    if entity_ids:
        result = session.exec(
            delete(EntityRelationship).where(
                or_(
                    EntityRelationship.source_entity_id.in_(entity_ids),
                    EntityRelationship.target_entity_id.in_(entity_ids),
                )
            )
        )
        removed_relationships = result.rowcount or 0
        session.exec(delete(Entity).where(Entity.case_id == case_id))
    session.exec(delete(TimelineEvent).where(TimelineEvent.case_id == case_id))
    session.delete(case)
    session.commit()

    logger.info(
        "Deleted case %s with %d entities and %d relationships",
        case_id,
        len(entity_ids),
        removed_relationships,
    )
    return {"entities": len(entity_ids), "relationships": removed_relationships}


def case_counters(session: Session, case_ids: list[uuid.UUID]) -> dict[uuid.UUID, dict[str, int]]:
    counters = {cid: {"entity_count": 0, "search_count": 0} for cid in case_ids}
    if not case_ids:
        return counters

    entity_rows = session.exec(
        select(Entity.case_id, func.count(Entity.id))
        .where(Entity.case_id.in_(case_ids))
        .group_by(Entity.case_id)
    ).all()
    for cid, n in entity_rows:
        counters[cid]["entity_count"] = n

    search_rows = session.exec(
        select(SearchHistory.case_id, func.count(SearchHistory.id))
        .where(SearchHistory.case_id.in_(case_ids))
        .group_by(SearchHistory.case_id)
    ).all()
    for cid, n in search_rows:
        counters[cid]["search_count"] = n

    return counters
