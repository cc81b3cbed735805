import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, Response
from sqlmodel import Session

from osint_desk.api.schemas import ApiModel, RelationshipOut
from osint_desk.db.session import get_session
from osint_desk.services import relationships as relationship_repo

router = APIRouter(prefix="/relationships", tags=["relationships"])


class RelationshipCreate(ApiModel):
    source_entity_id: uuid.UUID
    target_entity_id: uuid.UUID
    relationship_type: str = "associated"
    strength: int = 50
    notes: Optional[str] = None


@router.post("", response_model=RelationshipOut, status_code=201)
def create_relationship(
    body: RelationshipCreate,
    session: Session = Depends(get_session),
    idempotency_key: Optional[str] = Header(default=None),
):
    return relationship_repo.create_relationship(
        session, **body.model_dump(), idempotency_key=idempotency_key
    )


@router.get("/{relationship_id}", response_model=RelationshipOut)
def get_relationship(relationship_id: uuid.UUID, session: Session = Depends(get_session)):
    return relationship_repo.get_relationship(session, relationship_id)


@router.delete("/{relationship_id}", status_code=204)
def delete_relationship(relationship_id: uuid.UUID, session: Session = Depends(get_session)):
    relationship_repo.delete_relationship(session, relationship_id)
    return Response(status_code=204)
