import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Response
from sqlmodel import Session

from osint_desk.api.schemas import ApiModel, EntityOut, RelationshipOut
from osint_desk.db.session import get_session
from osint_desk.services import entities as entity_repo
from osint_desk.services import relationships as relationship_repo

router = APIRouter(prefix="/entities", tags=["entities"])


class EntityCreate(ApiModel):
    case_id: uuid.UUID
    type: str
    label: str
    notes: Optional[str] = None
    risk_level: str = "unknown"
    confidence_score: int = 0
    tags: list[str] = []
    source_attribution: Optional[str] = None
    data: dict[str, Any] = {}


class EntityUpdate(ApiModel):
    type: Optional[str] = None
    label: Optional[str] = None
    notes: Optional[str] = None
    risk_level: Optional[str] = None
    confidence_score: Optional[int] = None
    tags: Optional[list[str]] = None
    source_attribution: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    version: Optional[int] = None


@router.post("", response_model=EntityOut, status_code=201)
def create_entity(
    body: EntityCreate,
    session: Session = Depends(get_session),
    idempotency_key: Optional[str] = Header(default=None),
):
    return entity_repo.create_entity(session, **body.model_dump(), idempotency_key=idempotency_key)


@router.get("/{entity_id}", response_model=EntityOut)
def get_entity(entity_id: uuid.UUID, session: Session = Depends(get_session)):
    return entity_repo.get_entity(session, entity_id)


@router.patch("/{entity_id}", response_model=EntityOut)
def update_entity(entity_id: uuid.UUID, body: EntityUpdate, session: Session = Depends(get_session)):
    fields = body.model_dump(exclude_unset=True)
    version = fields.pop("version", None)
    return entity_repo.update_entity(session, entity_id, fields, expected_version=version)


@router.delete("/{entity_id}", status_code=204)
def delete_entity(entity_id: uuid.UUID, session: Session = Depends(get_session)):
    entity_repo.delete_entity(session, entity_id)
    return Response(status_code=204)


@router.get("/{entity_id}/relationships", response_model=list[RelationshipOut])
def entity_relationships(entity_id: uuid.UUID, session: Session = Depends(get_session)):
    return relationship_repo.list_relationships_for_entity(session, entity_id)
