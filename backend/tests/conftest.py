import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import osint_desk.models  # noqa: F401
from osint_desk.core.config import settings
from osint_desk.db import session as session_mod
from osint_desk.db.session import get_session
from osint_desk.main import app


@pytest.fixture()
def engine():
    # SQLite in-memory for unit tests; one shared connection so every session sees the same DB
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture()
def client(engine, monkeypatch):
    def override_get_session():
        with Session(engine) as s:
            yield s

    # Override dependency and engine reference
    app.dependency_overrides[get_session] = override_get_session
    monkeypatch.setattr(session_mod, "engine", engine, raising=False)

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def admin_headers():
    return {"X-Admin-Key": settings.admin_api_key}


@pytest.fixture()
def make_case(client):
    def _make(title="Fraud Ring A", **extra):
        r = client.post("/api/cases", json={"title": title, **extra})
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture()
def make_entity(client):
    def _make(case_id, type="person", label="John Doe", **extra):
        r = client.post("/api/entities", json={"caseId": case_id, "type": type, "label": label, **extra})
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture()
def mock_http(monkeypatch):
    """Route every httpx.Client the providers open through a handler."""
    real_client = httpx.Client

    def install(handler):
        def factory(*args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            return real_client(*args, **kwargs)

        monkeypatch.setattr(httpx, "Client", factory)

    return install
