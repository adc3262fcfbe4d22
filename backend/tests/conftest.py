import copy
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("ENVIRONMENT", "test")

from app.core.config import get_settings  # noqa: E402

VALID_SERVICE = {
    "machine_name": "bd_maintenance",
    "name": "DB Maint",
    "form": {
        "type": "object",
        "properties": {"x": {"type": "string"}},
        "required": ["x"],
    },
    "category": "DB",
    "ca_info": {"sa_category": "DB.Maint", "sa_type": "CR"},
    "published": True,
}


def valid_service_payload(**overrides) -> dict:
    payload = copy.deepcopy(VALID_SERVICE)
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def _reset_settings_cache(monkeypatch):
    # Tests mutate env vars; never leak a cached Settings instance across tests.
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("SCHEDULER_URL", raising=False)
    monkeypatch.delenv("HELPDESK_JOB_API_URL", raising=False)
    monkeypatch.delenv("REQUEST_STATUSES", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine():
    from app.models.helpdesk import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_local(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_local):
    session = session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def scheduler_override():
    """Holder for the scheduler the API should use; ``None`` means not configured."""
    return {"client": None}


@pytest.fixture
def client(session_local, scheduler_override):
    from app.api.v1.requests import get_scheduler
    from app.core.dependencies import get_db
    from app.main import app

    def override_get_db():
        session = session_local()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheduler] = lambda: scheduler_override["client"]
    test_client = TestClient(app)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def service_payload():
    return valid_service_payload


@pytest.fixture
def make_service(client):
    def _make(**overrides):
        resp = client.post("/api/v1/services", json=valid_service_payload(**overrides))
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _make
