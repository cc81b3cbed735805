import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from osint_desk.api.deps import require_admin_key
from osint_desk.api.schemas import ApiModel
from osint_desk.core.clock import isoformat_z
from osint_desk.db.session import get_session
from osint_desk.models.api_config import ApiConfig
from osint_desk.services import api_configs as config_repo

router = APIRouter(prefix="/api-configs", tags=["api-configs"])


class ApiConfigCreate(ApiModel):
    category: str
    provider_name: str
    api_key: str
    base_url: Optional[str] = None
    quota_limit: Optional[int] = None


class ApiConfigUpdate(ApiModel):
    is_active: Optional[bool] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    quota_limit: Optional[int] = None


class ApiConfigOut(ApiModel):
    id: uuid.UUID
    category: str
    provider_name: str
    api_key_hint: str
    base_url: Optional[str] = None
    quota_limit: Optional[int] = None
    requests_today: int
    is_active: bool
    last_sync: Optional[str] = None
    error_log: Optional[str] = None
    created_at: str


def _out(config: ApiConfig) -> ApiConfigOut:
    return ApiConfigOut(
        id=config.id,
        category=config.category,
        provider_name=config.provider_name,
        api_key_hint=config_repo.key_hint(config.api_key),
        base_url=config.base_url,
        quota_limit=config.quota_limit,
        requests_today=config_repo.current_requests(config),
        is_active=config.is_active,
        last_sync=isoformat_z(config.last_sync) or None,
        error_log=config.error_log,
        created_at=isoformat_z(config.created_at),
    )


@router.get("", response_model=list[ApiConfigOut])
def list_configs(
    session: Session = Depends(get_session),
    category: Optional[str] = Query(default=None),
):
    return [_out(c) for c in config_repo.list_configs(session, category=category)]


@router.post("", response_model=ApiConfigOut, status_code=201, dependencies=[Depends(require_admin_key)])
def upsert_config(body: ApiConfigCreate, session: Session = Depends(get_session)):
    return _out(config_repo.upsert_config(session, **body.model_dump()))


@router.get("/{config_id}", response_model=ApiConfigOut)
def get_config(config_id: uuid.UUID, session: Session = Depends(get_session)):
    return _out(config_repo.get_config(session, config_id))


@router.patch("/{config_id}", response_model=ApiConfigOut, dependencies=[Depends(require_admin_key)])
def update_config(config_id: uuid.UUID, body: ApiConfigUpdate, session: Session = Depends(get_session)):
    return _out(config_repo.update_config(session, config_id, body.model_dump(exclude_unset=True)))


@router.delete("/{config_id}", status_code=204, dependencies=[Depends(require_admin_key)])
def delete_config(config_id: uuid.UUID, session: Session = Depends(get_session)):
    config_repo.delete_config(session, config_id)
    return Response(status_code=204)


@router.post("/{config_id}/test", dependencies=[Depends(require_admin_key)])
def test_config(config_id: uuid.UUID, session: Session = Depends(get_session)):
    outcome = config_repo.test_connection(session, config_id)
    return {"id": str(config_id), **outcome}
