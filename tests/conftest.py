"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown (in-memory SQLite)
- FastAPI test client with db, clock and notifier overridden
- A frozen clock and a recording notifier
- User, candidate, interview and booking link factories
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.deps import get_clock, get_notifier
from app.core.exceptions import ExternalServiceError
from app.core.security import create_access_token
from app.crud import booking_link as booking_link_crud
from app.models.candidate import Candidate, CandidateStatus
from app.models.interview import Interview, InterviewStatus, InterviewType
from app.models.user import User, UserRole
from main import app


SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday 4 March 2024, noon. London is on GMT so local time equals UTC.
FROZEN_NOW = datetime(2024, 3, 4, 12, 0)


class RecordingNotifier:
    """Stand-in for the messaging collaborator."""

    def __init__(self):
        self.calls = []
        self.fail = False

    def __call__(self, candidate_id, template_type, custom_data=None):
        if self.fail:
            raise ExternalServiceError("broker unavailable")
        self.calls.append((candidate_id, template_type, custom_data))


@pytest.fixture
def db_session():
    """
    Fresh schema and session for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def now():
    return FROZEN_NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db_session, clock, notifier):
    """
    FastAPI test client with overridden database, clock and notifier.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make(role=UserRole.RECRUITER, email=None, is_active=True):
        user = User(
            email=email or f"{role.value}@example.com",
            full_name=role.value.replace("_", " ").title(),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def recruiter(make_user):
    return make_user(UserRole.RECRUITER)


@pytest.fixture
def super_admin(make_user):
    return make_user(UserRole.SUPER_ADMIN)


@pytest.fixture
def viewer(make_user):
    return make_user(UserRole.VIEWER)


def auth_headers(user):
    token = create_access_token({"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_candidate(db_session):
    counter = {"n": 0}

    def _make(status=CandidateStatus.NEW, email=None, phone=None, **fields):
        counter["n"] += 1
        candidate = Candidate(
            first_name=fields.pop("first_name", "Alex"),
            last_name=fields.pop("last_name", f"Taylor{counter['n']}"),
            email=email or f"alex{counter['n']}@example.com",
            phone=phone,
            job_title=fields.pop("job_title", "Barista"),
            branch_name=fields.pop("branch_name", "Soho"),
            status=status,
            **fields,
        )
        db_session.add(candidate)
        db_session.commit()
        db_session.refresh(candidate)
        return candidate
    return _make


@pytest.fixture
def make_interview(db_session, now):
    def _make(
        candidate,
        type=InterviewType.INTERVIEW,
        status=InterviewStatus.SCHEDULED,
        scheduled_date=None,
        duration=30,
        feedback=None,
        **fields,
    ):
        interview = Interview(
            candidate_id=candidate.id,
            candidate_name=candidate.full_name,
            job_title=candidate.job_title,
            branch_name=fields.pop("branch_name", candidate.branch_name),
            type=type,
            status=status,
            scheduled_date=scheduled_date or now + timedelta(days=2),
            duration=duration,
            feedback=feedback,
            **fields,
        )
        db_session.add(interview)
        db_session.commit()
        db_session.refresh(interview)
        return interview
    return _make


@pytest.fixture
def make_booking_link(db_session, now):
    def _make(candidate, type=InterviewType.INTERVIEW, expires_at=None, max_uses=1):
        return booking_link_crud.create(
            db_session,
            candidate=candidate,
            type=type,
            expires_at=expires_at or now + timedelta(days=7),
            max_uses=max_uses,
        )
    return _make


def submitted_feedback(recommendation="hire", rating=4, submitted_at="2024-03-01T10:00:00"):
    return {
        "rating": rating,
        "recommendation": recommendation,
        "submitted_at": submitted_at,
        "submitted_by": "interviewer-1",
    }
