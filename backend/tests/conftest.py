"""Shared pytest fixtures for backend tests."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from quizboard.db import models  # noqa: F401  (registers tables)
from quizboard.db.session import Base, get_db
from quizboard.main import app
from quizboard.services.errors import SubmissionRaceLostError
from quizboard.services.repository import QuizRepository
from quizboard.services.session_manager import SessionManager


# Use an in-memory SQLite database for testing with static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool to keep connection alive
    echo=False,
)
TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Create all tables once at startup
Base.metadata.create_all(bind=engine)


class FakeClock:
    """Manually advanced clock pair: UTC wall time plus a monotonic reading."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self.ticks = 1000.0

    def __call__(self) -> datetime:
        return self.now

    def monotonic(self) -> float:
        return self.ticks

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)
        self.ticks += seconds

    def step_wall(self, seconds: float) -> None:
        """Move only the wall clock, as an NTP correction would."""
        self.now += timedelta(seconds=seconds)


class FakeStore:
    """In-memory stand-in for ``QuizRepository`` in state machine tests."""

    def __init__(self, quiz_record=None, submitted: bool = False):
        self.quiz_record = quiz_record
        self.submitted = submitted
        self.inserted = []
        self.fail_with: Exception | None = None

    def has_submission(self, quiz_id, user_id) -> bool:
        return self.submitted

    def get_active_quiz(self, quiz_id):
        record = self.quiz_record
        if record is None or not record.is_active:
            return None
        return record

    def insert_submission(self, draft):
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc
        if self.submitted:
            raise SubmissionRaceLostError("You have already submitted this quiz.")
        self.submitted = True
        self.inserted.append(draft)
        return SimpleNamespace(id=uuid.uuid4(), submitted_at=datetime.now(timezone.utc))


def make_quiz_record(points=(10, 10, 5), time_limit=None, is_active=True, correct=0):
    """A ``Quiz``-shaped object with one question per entry in *points*."""
    questions = [
        {
            "question": f"Question {i + 1}?",
            "options": ["a", "b", "c", "d"],
            "correct_answer": correct,
            "points": p,
        }
        for i, p in enumerate(points)
    ]
    return SimpleNamespace(
        id=uuid.uuid4(),
        title="Sample quiz",
        description=None,
        questions=questions,
        total_points=sum(points),
        time_limit=time_limit,
        is_active=is_active,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="function")
def db():
    """Get a fresh DB session for each test."""
    session = TestSession()
    try:
        yield session
    finally:
        session.rollback()  # Rollback changes after each test
        session.close()


@pytest.fixture(scope="function")
def session_manager(clock: FakeClock) -> SessionManager:
    return SessionManager(max_sessions=100, clock=clock, monotonic=clock.monotonic)


@pytest.fixture(scope="function")
def client(db: Session, session_manager: SessionManager):
    """FastAPI test client with overridden DB dependency and a fake-clock session registry."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_manager = session_manager

    # Remove TrustedHostMiddleware for tests to allow 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ── API helpers ────────────────────────────────────────────────────────────────


def register_and_login(client: TestClient, full_name: str | None = None) -> str:
    """Create a student profile and return its JWT token."""
    email, _ = _register(client, full_name)
    return _login(client, email)


def register_admin(client: TestClient, db: Session) -> str:
    """Create a profile, promote it the way promote_admin.py does, and log in."""
    email, _ = _register(client, None, prefix="admin")
    assert QuizRepository(db).promote_to_admin(email) is not None
    return _login(client, email)


def _register(client: TestClient, full_name: str | None, prefix: str = "student") -> tuple[str, dict]:
    uid = str(uuid.uuid4())[:8]
    email = f"{prefix}_{uid}@ex.com"
    resp = client.post(
        "/api/users/register",
        json={
            "email": email,
            "password": "testpwd1",
            "full_name": full_name or f"Test {prefix.title()} {uid}",
        },
    )
    assert resp.status_code == 201, resp.text
    return email, resp.json()


def _login(client: TestClient, email: str) -> str:
    resp = client.post("/api/users/login", json={"email": email, "password": "testpwd1"})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def quiz_payload(points=(10, 10, 5), time_limit=None, title="General knowledge") -> dict:
    return {
        "title": title,
        "description": "A short quiz",
        "time_limit": time_limit,
        "questions": [
            {
                "question": f"Question {i + 1}?",
                "options": ["first", "second", "third"],
                "correct_answer": i % 3,
                "points": p,
            }
            for i, p in enumerate(points)
        ],
    }
