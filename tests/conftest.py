"""Shared fixtures: in-memory SQLite per test, minimum bcrypt cost, captured mail."""
import os

# Must be set before app modules build settings and the default engine
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""
os.environ["TERMS_ENABLED"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.config import BCRYPT_MIN_COST, get_settings  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services import accounts  # noqa: E402

get_settings.cache_clear()

COST = BCRYPT_MIN_COST
PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing mail instead of calling Mailgun."""
    sent = []

    def fake_send_email(to_email, subject, html_content, text_content=None):
        sent.append({"to": to_email, "subject": subject, "html": html_content, "text": text_content})
        return True

    monkeypatch.setattr("app.services.notifications.send_email", fake_send_email)
    return sent


@pytest.fixture
def make_local_user(db):
    """Persist a local account; pass verified=True to activate it."""

    def _make(email="alice@example.com", name="Alice Doe", password=PASSWORD, verified=False) -> User:
        user = accounts.register_user(db, name=name, email=email, password=password, cost=COST)
        if verified:
            accounts.activate(db, user)
        return user

    return _make
