"""Entity repository, scoped by case."""

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import delete, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from osint_desk.core.clock import utcnow
from osint_desk.core.errors import ConflictError, NotFoundError
from osint_desk.metrics.prometheus import entities_created_total
from osint_desk.models.entity import Entity
from osint_desk.models.enums import EntityType, RiskLevel, TimelineEventType, values
from osint_desk.models.relationship import EntityRelationship
from osint_desk.services import timeline
from osint_desk.services.cases import get_case
from osint_desk.services.validators import (
    check_choice,
    check_range,
    clean_data,
    clean_tags,
    optional_text,
    reject_unknown,
    require_text,
)

logger = logging.getLogger(__name__)

LABEL_MAX = 255
SOURCE_MAX = 255

UPDATABLE_FIELDS = (
    "type",
    "label",
    "notes",
    "risk_level",
    "confidence_score",
    "tags",
    "source_attribution",
    "data",
)


def _validate(fields: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "type" in fields:
        out["type"] = check_choice(fields["type"], "type", values(EntityType))
    if "label" in fields:
        out["label"] = require_text(fields["label"], "label", LABEL_MAX)
    if "notes" in fields:
        out["notes"] = optional_text(fields["notes"], "notes")
    if "risk_level" in fields:
        out["risk_level"] = check_choice(fields["risk_level"], "risk_level", values(RiskLevel))
    if "confidence_score" in fields:
        out["confidence_score"] = check_range(fields["confidence_score"], "confidence_score", 0, 100)
    if "tags" in fields:
        out["tags"] = clean_tags(fields["tags"])
    if "source_attribution" in fields:
        out["source_attribution"] = optional_text(
            fields["source_attribution"], "source_attribution", SOURCE_MAX
        )
    if "data" in fields:
        out["data"] = clean_data(fields["data"])
    return out


def label_key(label: str) -> str:
    return label.casefold()


def _find_duplicate(
    session: Session,
    case_id: uuid.UUID,
    type_: str,
    label: str,
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[Entity]:
    q = select(Entity).where(
        Entity.case_id == case_id,
        Entity.type == type_,
        Entity.label_key == label_key(label),
    )
    if exclude_id is not None:
        q = q.where(Entity.id != exclude_id)
    return session.exec(q).first()


def _commit_unique(session: Session, entity: Entity) -> None:
    # the unique constraint catches what the duplicate lookup misses under concurrent writes
    what = f"{entity.type} '{entity.label}'"
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError(f"{what} already exists in this case") from None


def create_entity(
    session: Session,
    *,
    case_id: uuid.UUID,
    type: str,
    label: str,
    risk_level: str = RiskLevel.UNKNOWN.value,
    notes: Optional[str] = None,
    confidence_score: int = 0,
    tags: Optional[list[str]] = None,
    source_attribution: Optional[str] = None,
    data: Optional[dict[str, Any]] = None,
    idempotency_key: Optional[str] = None,
) -> Entity:
    if idempotency_key:
        existing = session.exec(select(Entity).where(Entity.idempotency_key == idempotency_key)).first()
        if existing:
            return existing

    case = get_case(session, case_id)
    clean = _validate(
        {
            "type": type,
            "label": label,
            "risk_level": risk_level,
            "notes": notes,
            "confidence_score": confidence_score,
            "tags": tags,
            "source_attribution": source_attribution,
            "data": data,
        }
    )
    if _find_duplicate(session, case.id, clean["type"], clean["label"]):
        raise ConflictError(f"{clean['type']} '{clean['label']}' already exists in this case")

    now = utcnow()
    entity = Entity(
        case_id=case.id,
        **clean,
        label_key=label_key(clean["label"]),
        idempotency_key=idempotency_key,
        created_at=now,
        updated_at=now,
    )
    session.add(entity)
    timeline.record_event(
        session,
        case.id,
        TimelineEventType.ENTITY_ADDED.value,
        f"{entity.type} added: {entity.label}",
        {"entity_id": str(entity.id), "risk_level": entity.risk_level},
    )
    _commit_unique(session, entity)
    session.refresh(entity)

    entities_created_total.labels(type=entity.type).inc()
    logger.info("Added %s entity %s to case %s", entity.type, entity.id, case.id)
    return entity


def get_entity(session: Session, entity_id: uuid.UUID) -> Entity:
    entity = session.get(Entity, entity_id)
    if not entity:
        raise NotFoundError("Entity", entity_id)
    return entity


def list_entities_by_case(
    session: Session,
    case_id: uuid.UUID,
    *,
    type: Optional[str] = None,
    risk_level: Optional[str] = None,
) -> list[Entity]:
    get_case(session, case_id)
    q = select(Entity).where(Entity.case_id == case_id).order_by(Entity.created_at, Entity.id)
    if type:
        q = q.where(Entity.type == check_choice(type, "type", values(EntityType)))
    if risk_level:
        q = q.where(Entity.risk_level == check_choice(risk_level, "risk_level", values(RiskLevel)))
    return list(session.exec(q).all())


def update_entity(
    session: Session,
    entity_id: uuid.UUID,
    fields: dict[str, Any],
    *,
    expected_version: Optional[int] = None,
) -> Entity:
    entity = get_entity(session, entity_id)
    reject_unknown(fields, UPDATABLE_FIELDS)
    if expected_version is not None and expected_version != entity.version:
        raise ConflictError(
            f"Entity {entity_id} was modified (version {entity.version}, expected {expected_version})"
        )

    clean = _validate(fields)
    new_type = clean.get("type", entity.type)
    new_label = clean.get("label", entity.label)
    if (new_type, label_key(new_label)) != (entity.type, entity.label_key):
        if _find_duplicate(session, entity.case_id, new_type, new_label, exclude_id=entity.id):
            raise ConflictError(f"{new_type} '{new_label}' already exists in this case")

    changed = sorted(k for k, v in clean.items() if getattr(entity, k) != v)
    for field, value in clean.items():
        setattr(entity, field, value)
    entity.label_key = label_key(entity.label)
    entity.version += 1
    entity.updated_at = utcnow()
    session.add(entity)
    if changed:
        timeline.record_event(
            session,
            entity.case_id,
            TimelineEventType.ENTITY_UPDATED.value,
            f"{entity.type} updated: {entity.label}",
            {"entity_id": str(entity.id), "fields": changed},
        )
    _commit_unique(session, entity)
    session.refresh(entity)
    return entity


def delete_entity(session: Session, entity_id: uuid.UUID) -> int:
    """Delete an entity and every relationship touching it; returns how many relationships went."""
    entity = get_entity(session, entity_id)
    result = session.exec(
        delete(EntityRelationship).where(
            or_(
                EntityRelationship.source_entity_id == entity_id,
                EntityRelationship.target_entity_id == entity_id,
            )
        )
    )
    removed = result.rowcount or 0
    timeline.record_event(
        session,
        entity.case_id,
        TimelineEventType.ENTITY_REMOVED.value,
        f"{entity.type} removed: {entity.label}",
        {"entity_id": str(entity.id), "relationships_removed": removed},
    )
    session.delete(entity)
    session.commit()

    logger.info("Deleted entity %s and %d relationships", entity_id, removed)
    return removed
