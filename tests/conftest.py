import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone

# Settings are read at import time, so the environment is prepared first.
_tmp = tempfile.mkdtemp(prefix="fliq-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmp, "fliq.db")
os.environ["EMAIL_ENABLED"] = "false"
os.environ["UPLOAD_LOCAL_DIR"] = os.path.join(_tmp, "uploads")
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_dummy"

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from fastapi.testclient import TestClient

import fliq.models  # noqa: F401
from fliq.db.session import Base, SessionLocal, engine
from fliq.main import app
from fliq.seed import ensure_user

PASSWORD = "secret-pass-1"


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def next_week() -> str:
    return (datetime.now(timezone.utc).date() + timedelta(days=7)).isoformat()


def signup(client, email: str, role: str = "client", name: str = "Test User", city: str = "Lagos") -> str:
    r = client.post("/api/v1/auth/signup", json={
        "email": email, "password": PASSWORD, "confirmPassword": PASSWORD,
        "name": name, "role": role, "city": city,
    })
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


@pytest.fixture
def admin_token(client):
    session = SessionLocal()
    try:
        ensure_user(session, "admin@fliq.test", "admin-pass-1", "admin", "Admin")
    finally:
        session.close()
    r = client.post("/api/v1/auth/login", json={"email": "admin@fliq.test", "password": "admin-pass-1"})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


@pytest.fixture
def client_token(client):
    return signup(client, "ada@fliq.test", "client", "Ada Client")


@pytest.fixture
def provider_token(client):
    return signup(client, "tunde@fliq.test", "provider", "Tunde Guard")


def onboard(client, token: str, documents=("/media/verification_documents/x/id.pdf",), base_price: int = 5000) -> dict:
    r = client.post("/api/v1/provider/onboarding", headers=auth(token), json={
        "category": "security", "bio": "Close protection", "basePrice": base_price, "documents": list(documents),
    })
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture
def verified_provider(client, provider_token, admin_token):
    """An approved security provider with one hourly/daily service."""
    profile = onboard(client, provider_token)
    r = client.post(f"/api/v1/admin/verifications/{profile['id']}/approve", headers=auth(admin_token))
    assert r.status_code == 200, r.text
    r = client.post("/api/v1/provider/services", headers=auth(provider_token), json={"services": [{
        "title": "Event security", "price_hour": 5000, "price_day": 40000, "min_booking_hours": 2,
    }]})
    assert r.status_code == 200, r.text
    return {"provider": r.json()["items"][0]["providerId"], "service": r.json()["items"][0]["id"],
            "token": provider_token}
