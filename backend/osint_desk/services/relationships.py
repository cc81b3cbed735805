"""Relationship repository.

A relationship carries no case id of its own: case membership is always
derived from its two endpoints, and both endpoints must sit in the same case.
"""

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.orm import aliased
from sqlmodel import Session, select

from osint_desk.core.clock import utcnow
from osint_desk.core.errors import ConflictError, NotFoundError, ValidationError
from osint_desk.models.entity import Entity
from osint_desk.models.enums import RelationshipType, TimelineEventType, values
from osint_desk.models.relationship import EntityRelationship
from osint_desk.services import timeline
from osint_desk.services.cases import get_case
from osint_desk.services.entities import get_entity, list_entities_by_case
from osint_desk.services.validators import check_choice, check_range, optional_text

logger = logging.getLogger(__name__)


def create_relationship(
    session: Session,
    *,
    source_entity_id: uuid.UUID,
    target_entity_id: uuid.UUID,
    relationship_type: str,
    strength: int = 50,
    notes: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> EntityRelationship:
    if idempotency_key:
        existing = session.exec(
            select(EntityRelationship).where(EntityRelationship.idempotency_key == idempotency_key)
        ).first()
        if existing:
            return existing

    source = get_entity(session, source_entity_id)
    target = get_entity(session, target_entity_id)

    relationship_type = check_choice(relationship_type, "relationship_type", values(RelationshipType))
    strength = check_range(strength, "strength", 0, 100)
    notes = optional_text(notes, "notes")
    if source.id == target.id:
        raise ValidationError("an entity cannot be related to itself", field="target_entity_id")
    if source.case_id != target.case_id:
        raise ConflictError("relationship endpoints belong to different cases")

    rel = EntityRelationship(
        source_entity_id=source.id,
        target_entity_id=target.id,
        relationship_type=relationship_type,
        strength=strength,
        notes=notes,
        idempotency_key=idempotency_key,
        created_at=utcnow(),
    )
    session.add(rel)
    timeline.record_event(
        session,
        source.case_id,
        TimelineEventType.RELATIONSHIP_ADDED.value,
        f"{source.label} {relationship_type} {target.label}",
        {"relationship_id": str(rel.id), "strength": strength},
    )
    session.commit()
    session.refresh(rel)

    logger.info("Linked %s -[%s]-> %s", source.id, relationship_type, target.id)
    return rel


def get_relationship(session: Session, relationship_id: uuid.UUID) -> EntityRelationship:
    rel = session.get(EntityRelationship, relationship_id)
    if not rel:
        raise NotFoundError("Relationship", relationship_id)
    return rel


def list_relationships_by_case(session: Session, case_id: uuid.UUID) -> list[EntityRelationship]:
    get_case(session, case_id)
    src = aliased(Entity)
    tgt = aliased(Entity)
    q = (
        select(EntityRelationship)
        .join(src, src.id == EntityRelationship.source_entity_id)
        .join(tgt, tgt.id == EntityRelationship.target_entity_id)
        .where(src.case_id == case_id, tgt.case_id == case_id)
        .order_by(EntityRelationship.created_at, EntityRelationship.id)
    )
    return list(session.exec(q).all())


def list_relationships_for_entity(session: Session, entity_id: uuid.UUID) -> list[EntityRelationship]:
    get_entity(session, entity_id)
    q = (
        select(EntityRelationship)
        .where(
            or_(
                EntityRelationship.source_entity_id == entity_id,
                EntityRelationship.target_entity_id == entity_id,
            )
        )
        .order_by(EntityRelationship.created_at, EntityRelationship.id)
    )
    return list(session.exec(q).all())


def delete_relationship(session: Session, relationship_id: uuid.UUID) -> None:
    rel = get_relationship(session, relationship_id)
    source = session.get(Entity, rel.source_entity_id)
    if source is not None:
        timeline.record_event(
            session,
            source.case_id,
            TimelineEventType.RELATIONSHIP_REMOVED.value,
            f"relationship removed: {rel.relationship_type}",
            {"relationship_id": str(rel.id)},
        )
    session.delete(rel)
    session.commit()


def case_graph(session: Session, case_id: uuid.UUID) -> dict[str, list[dict[str, Any]]]:
    entities = list_entities_by_case(session, case_id)
    relationships = list_relationships_by_case(session, case_id)
    return {
        "nodes": [
            {
                "id": str(e.id),
                "label": e.label,
                "type": e.type,
                "risk_level": e.risk_level,
                "confidence_score": e.confidence_score,
            }
            for e in entities
        ],
        "edges": [
            {
                "id": str(r.id),
                "source": str(r.source_entity_id),
                "target": str(r.target_entity_id),
                "relationship_type": r.relationship_type,
                "strength": r.strength,
            }
            for r in relationships
        ],
    }
