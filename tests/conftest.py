import os
import sys
from datetime import datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("PAYMENT_REMINDER_AUTO_ENABLED", "false")
os.environ.setdefault("SPACES_CDN_URL", "https://cdn.example.com")
os.environ.setdefault("SPACES_NAME", "test-bucket")

import clientdesk.main as main  # noqa: E402  (import after env vars are set)
from clientdesk.database import Base, SessionLocal, engine  # noqa: E402
from clientdesk.models.user import User  # noqa: E402
from clientdesk.services import email_service  # noqa: E402
from clientdesk.services.auth_service import hash_password  # noqa: E402

ADMIN_PASSWORD = "admin-pass"
CLIENT_PASSWORD = "client-pass"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def sent_emails(monkeypatch):
    """Capture outgoing email instead of talking to an SMTP relay."""
    outbox = []

    def _fake_send(to_email, subject, html_message):
        outbox.append({"to": to_email, "subject": subject, "html": html_message})

    monkeypatch.setattr(email_service, "send_email", _fake_send)
    return outbox


@pytest.fixture()
def client(monkeypatch, sent_emails):
    """Provide a TestClient with startup tasks patched out for isolation."""
    monkeypatch.setattr(main, "run_seed", lambda: None)

    async def _noop_async(*args, **kwargs):
        return None

    monkeypatch.setattr(main.payment_reminder_scheduler, "start", _noop_async)
    monkeypatch.setattr(main.payment_reminder_scheduler, "stop", _noop_async)

    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_user(session, **overrides) -> User:
    password = overrides.pop("password", None)
    now = datetime.utcnow()
    values = {
        "role": "client",
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "status": "active",
        "join_date": now,
        "created_at": now,
        "updated_at": now,
        "last_reminder_sent": {},
    }
    values.update(overrides)
    user = User(**values)
    if password:
        user.password_hash = hash_password(password)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def login(client, email: str, password: str) -> dict:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.json()
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_user(db):
    return create_user(
        db,
        role="admin",
        first_name="Ada",
        last_name="Admin",
        email="admin@example.com",
        password=ADMIN_PASSWORD,
    )


@pytest.fixture()
def client_user(db):
    return create_user(db, email="client@example.com", password=CLIENT_PASSWORD)


@pytest.fixture()
def admin_headers(client, admin_user):
    return login(client, admin_user.email, ADMIN_PASSWORD)


@pytest.fixture()
def client_headers(client, client_user):
    return login(client, client_user.email, CLIENT_PASSWORD)


@pytest.fixture()
def make_user(db):
    def _make(**overrides):
        return create_user(db, **overrides)
    return _make


@pytest.fixture()
def login_as(client):
    def _login(email: str, password: str) -> dict:
        return login(client, email, password)
    return _login
