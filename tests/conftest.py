"""
conftest.py — Shared Test Fixtures for ARHub

Provides an in-memory SQLite database, a FastAPI TestClient bound to it,
and factory fixtures for tiers, analysts, briefings and conversations.

Business Rules:
- All tests run against an isolated in-memory DB (no prod data risk)
- Each test function gets fresh tables and an empty briefings-due cache
- NOW is a fixed Friday noon UTC so cadence and slot math is deterministic

Called by: all test files via pytest autodiscovery
Depends on: arhub.models (Base), arhub.database (get_db)
"""

import os
os.environ["TESTING"] = "1"  # Must be set before importing arhub modules

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from arhub.models import (
    Analyst,
    Base,
    Briefing,
    BriefingAnalyst,
    SchedulingConversation,
)
from arhub.services import briefing_due_service
from arhub.services.tier_service import seed_default_tiers

# Friday, Oct 16 2026, 12:00 UTC
NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)

# ── In-memory SQLite engine ──────────────────────────────────────────

TEST_DB_URL = "sqlite://"

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    briefing_due_service.clear_cache()
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        briefing_due_service.clear_cache()


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def default_tiers(db_session: Session):
    """Very High 60d, High 90d, Medium 120d, Low never."""
    return seed_default_tiers(db_session)


@pytest.fixture()
def make_analyst(db_session: Session):
    """Factory: make_analyst("Ada", "Lovelace", influence="HIGH")."""
    counter = {"n": 0}

    def _make(first="Ada", last="Lovelace", influence="HIGH", status="ACTIVE",
              email=None, company="Gartner", **extra) -> Analyst:
        counter["n"] += 1
        analyst = Analyst(
            first_name=first,
            last_name=last,
            email=email or f"{first.lower()}.{last.lower()}{counter['n']}@analyst.example",
            company=company,
            influence=influence,
            status=status,
            **extra,
        )
        db_session.add(analyst)
        db_session.commit()
        db_session.refresh(analyst)
        return analyst

    return _make


@pytest.fixture()
def make_briefing(db_session: Session):
    """Factory: completed briefing N days before NOW, linked to the analyst.

    make_briefing(analyst, days_ago=30)
    make_briefing(analyst, days_ago=-7, status="SCHEDULED")   # 7 days ahead
    make_briefing(None, days_ago=10, attendee_emails=[...])   # unlinked
    """

    def _make(analyst, days_ago=30, status="COMPLETED", link=True,
              attendee_emails=None, completed=True) -> Briefing:
        at = NOW - timedelta(days=days_ago)
        briefing = Briefing(
            title=f"Briefing {status.lower()}",
            scheduled_at=at,
            completed_at=at if status == "COMPLETED" and completed else None,
            duration_minutes=60,
            status=status,
            attendee_emails=attendee_emails if attendee_emails is not None else [],
        )
        db_session.add(briefing)
        db_session.flush()
        if analyst is not None and link:
            db_session.add(
                BriefingAnalyst(briefing_id=briefing.id, analyst_id=analyst.id, role="PRIMARY")
            )
        db_session.commit()
        db_session.refresh(briefing)
        return briefing

    return _make


@pytest.fixture()
def make_conversation(db_session: Session):
    def _make(analyst, status="INITIATED", subject=None) -> SchedulingConversation:
        conv = SchedulingConversation(
            analyst_id=analyst.id,
            subject=subject or f"ARHub Briefing - {analyst.first_name} {analyst.last_name}",
            suggested_times=["Monday, Oct 19, 10:00 AM ET"],
            status=status,
        )
        db_session.add(conv)
        db_session.commit()
        db_session.refresh(conv)
        return conv

    return _make


@pytest.fixture()
def client(db_session: Session) -> TestClient:
    """FastAPI TestClient with get_db overridden to use the test session."""
    from arhub.database import get_db
    from arhub.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
