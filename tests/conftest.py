import os
import uuid

# must be set before inventory_desk builds its default app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["SECRET_KEY"] = "test_secret"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from inventory_desk.main import app

PASSWORD = "Passw0rd123"


def _login(client, staff_id: str, password: str) -> dict:
    r = client.post("/api/auth/login", json={"staffId": staff_id, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session():
    with Session(app.state.engine) as s:
        yield s


@pytest.fixture(scope="session")
def admin_token(client):
    return _login(client, "admin", "admin123")["token"]


@pytest.fixture
def make_staff(client):
    """Register a fresh staff account and return ``(user, token)``."""

    def _make(prefix: str = "staff"):
        staff_id = f"{prefix}-{uuid.uuid4().hex[:8]}"
        r = client.post("/api/auth/register", json={"staffId": staff_id, "password": PASSWORD})
        assert r.status_code == 201, r.text
        data = _login(client, staff_id, PASSWORD)
        return data["user"], data["token"]

    return _make
