"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Every test gets its own user id, so rows never leak between tests even
though the tables are created once per session.
"""
import uuid
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lifelog.core.clock import FixedClock, get_clock
from lifelog.core.errors import ExternalCallFailedError
from lifelog.db.base import Base, get_db
from lifelog.main import app
from lifelog.models import ReflectionQuestion
from lifelog.services.boundaries import day_of_year
from lifelog.services.notifications import NotificationHub, get_notification_hub
from lifelog.services.summarizer import get_summarizer
from lifelog.services.summary_generator import GenerationTracker, get_generation_tracker

SQLITE_URL = "sqlite:///./test_lifelog.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday
DEFAULT_TODAY = date(2025, 3, 10)


class FakeSummarizer:
    """Records every call; fails on demand."""

    def __init__(self):
        self.calls = []
        self.fail = False

    async def summarize(self, kind, window_description, records):
        self.calls.append((kind, window_description, [r.id for r in records]))
        if self.fail:
            raise ExternalCallFailedError("provider down", provider="fake")
        return f"summary #{len(self.calls)} of {window_description} ({len(records)} records)"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def session_factory():
    return TestingSessionLocal


@pytest.fixture()
def user_id():
    return f"user-{uuid.uuid4().hex[:12]}"


@pytest.fixture()
def clock():
    return FixedClock(DEFAULT_TODAY)


@pytest.fixture()
def summarizer():
    return FakeSummarizer()


@pytest.fixture()
def tracker():
    return GenerationTracker()


@pytest.fixture()
def hub(clock):
    return NotificationHub(
        session_factory=TestingSessionLocal,
        clock=clock,
        interval_seconds=3600,
    )


@pytest.fixture()
def ensure_question(db):
    """Get-or-create the reflection question for a day's day-of-year."""
    def _ensure(day: date, text: str = "What made you smile today?") -> ReflectionQuestion:
        doy = day_of_year(day)
        question = db.query(ReflectionQuestion).filter(ReflectionQuestion.day_of_year == doy).first()
        if question is None:
            question = ReflectionQuestion(day_of_year=doy, question_text=text)
            db.add(question)
            db.commit()
            db.refresh(question)
        return question
    return _ensure


@pytest.fixture()
def client(db, clock, summarizer, tracker, hub):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_summarizer] = lambda: summarizer
    app.dependency_overrides[get_generation_tracker] = lambda: tracker
    app.dependency_overrides[get_notification_hub] = lambda: hub
    with TestClient(app) as c:
        yield c
        c.portal.call(hub.shutdown)
    app.dependency_overrides.clear()
