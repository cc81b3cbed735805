import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response
from sqlmodel import Session

from osint_desk.api.deps import require_admin_key
from osint_desk.api.schemas import ApiModel, CaseOut, EntityOut, RelationshipOut, TimelineEventOut
from osint_desk.db.session import get_session
from osint_desk.models.case import Case
from osint_desk.services import cases as case_repo
from osint_desk.services import entities as entity_repo
from osint_desk.services import relationships as relationship_repo
from osint_desk.services import reporting, timeline

router = APIRouter(prefix="/cases", tags=["cases"])


class CaseCreate(ApiModel):
    title: str
    description: Optional[str] = None
    status: str = "active"
    tags: list[str] = []
    notes: Optional[str] = None


class CaseUpdate(ApiModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[list[str]] = None
    notes: Optional[str] = None
    version: Optional[int] = None


def _case_out(session: Session, case: Case) -> CaseOut:
    counters = case_repo.case_counters(session, [case.id])[case.id]
    return CaseOut.model_validate({**case.model_dump(), **counters})


@router.get("", response_model=list[CaseOut])
def list_cases(
    session: Session = Depends(get_session),
    status: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None),
    limit: int = Query(default=200, ge=1, le=1000),
):
    cases = case_repo.list_cases(session, status=status, text=q, limit=limit)
    counters = case_repo.case_counters(session, [c.id for c in cases])
    return [CaseOut.model_validate({**c.model_dump(), **counters[c.id]}) for c in cases]


@router.post("", response_model=CaseOut, status_code=201)
def create_case(
    body: CaseCreate,
    session: Session = Depends(get_session),
    idempotency_key: Optional[str] = Header(default=None),
):
    case = case_repo.create_case(session, **body.model_dump(), idempotency_key=idempotency_key)
    return _case_out(session, case)


@router.get("/{case_id}", response_model=CaseOut)
def get_case(case_id: uuid.UUID, session: Session = Depends(get_session)):
    return _case_out(session, case_repo.get_case(session, case_id))


@router.patch("/{case_id}", response_model=CaseOut)
def update_case(case_id: uuid.UUID, body: CaseUpdate, session: Session = Depends(get_session)):
    fields = body.model_dump(exclude_unset=True)
    version = fields.pop("version", None)
    case = case_repo.update_case(session, case_id, fields, expected_version=version)
    return _case_out(session, case)


@router.delete("/{case_id}", status_code=204, dependencies=[Depends(require_admin_key)])
def delete_case(case_id: uuid.UUID, session: Session = Depends(get_session)):
    case_repo.delete_case(session, case_id)
    return Response(status_code=204)


@router.get("/{case_id}/entities", response_model=list[EntityOut])
def list_case_entities(
    case_id: uuid.UUID,
    session: Session = Depends(get_session),
    type: Optional[str] = Query(default=None),
    risk_level: Optional[str] = Query(default=None, alias="riskLevel"),
):
    return entity_repo.list_entities_by_case(session, case_id, type=type, risk_level=risk_level)


@router.get("/{case_id}/relationships", response_model=list[RelationshipOut])
def list_case_relationships(case_id: uuid.UUID, session: Session = Depends(get_session)):
    return relationship_repo.list_relationships_by_case(session, case_id)


@router.get("/{case_id}/graph")
def case_graph(case_id: uuid.UUID, session: Session = Depends(get_session)):
    graph = relationship_repo.case_graph(session, case_id)
    return {
        "nodes": [
            {
                "id": n["id"],
                "label": n["label"],
                "type": n["type"],
                "riskLevel": n["risk_level"],
                "confidenceScore": n["confidence_score"],
            }
            for n in graph["nodes"]
        ],
        "edges": [
            {
                "id": e["id"],
                "source": e["source"],
                "target": e["target"],
                "relationshipType": e["relationship_type"],
                "strength": e["strength"],
            }
            for e in graph["edges"]
        ],
    }


@router.get("/{case_id}/timeline", response_model=list[TimelineEventOut])
def case_timeline(case_id: uuid.UUID, session: Session = Depends(get_session)):
    case_repo.get_case(session, case_id)
    return timeline.list_events(session, case_id)


@router.get("/{case_id}/export")
def export_case(
    case_id: uuid.UUID,
    session: Session = Depends(get_session),
    format: str = Query(default="json"),
):
    content, media_type, filename = reporting.export_case(session, case_id, format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
