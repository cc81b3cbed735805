import uuid
from typing import Any, Optional

from sqlmodel import Session, select

from osint_desk.core.clock import utcnow
from osint_desk.models.timeline import TimelineEvent


def record_event(
    session: Session,
    case_id: uuid.UUID,
    event_type: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> TimelineEvent:
    # added to the caller's transaction; the caller commits
    ev = TimelineEvent(
        case_id=case_id,
        ts=utcnow(),
        event_type=event_type,
        message=message,
        details=details or {},
    )
    session.add(ev)
    return ev


def list_events(session: Session, case_id: uuid.UUID) -> list[TimelineEvent]:
    return list(
        session.exec(
            select(TimelineEvent).where(TimelineEvent.case_id == case_id).order_by(TimelineEvent.ts)
        ).all()
    )
