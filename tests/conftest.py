import os
import pathlib
import sys

import pytest

# Must be set before app.main is imported: no startup DDL on the file DB, no background jobs
os.environ["ENABLE_CREATE_ALL"] = "0"
os.environ["ENABLE_SCHEDULER"] = "0"
os.environ["DATABASE_URL"] = "sqlite://"

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.session import get_db
from app.main import app
from app.models import Base


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class ComplianceApi:
    """Thin helper around the single POST endpoint."""

    def __init__(self, client: TestClient, user_id: str):
        self.client = client
        self.user_id = user_id

    def post(self, action: str, data=None):
        body = {"userId": self.user_id, "action": action}
        if data is not None:
            body["data"] = data
        return self.client.post("/api/compliance", json=body)

    def do(self, action: str, data=None):
        resp = self.post(action, data)
        assert resp.status_code == 200, resp.text
        payload = resp.json()
        assert payload["success"] is True
        return payload["data"]

    def overview(self):
        resp = self.client.get("/api/compliance", params={"userId": self.user_id})
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]


@pytest.fixture
def api(client):
    return ComplianceApi(client, "9b2f4c1e-0000-4000-8000-000000000001")
