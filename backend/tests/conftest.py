"""Pytest configuration for backend tests."""
import sys
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from shelfscope.database import Base, get_db
# Import the models module so every table is registered with Base.metadata before create_all()
import shelfscope.models  # noqa: F401
from shelfscope.core.auth import get_current_user_id
from shelfscope.main import app
from shelfscope.schemas.preferences import PreferenceInput
from shelfscope.schemas.report import CategoryAnalysis, Narrative, Report
from shelfscope.services.derived import (
    growth_potential,
    reading_directions,
    reading_dna,
    reading_style,
    report_statistics,
)
from shelfscope.services.narrative import AugmentationResult, fallback_narrative
from shelfscope.services.persona import resolve_persona
from shelfscope.services.personality import levelize, radar_chart, score
from shelfscope.services.report_service import ReportService, new_report_id

# In-memory SQLite unless a real test database is given
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")

TEST_USER_ID = "5f0c2a9e-7d43-4d1b-9a57-1d2e3f4a5b6c"

SAMPLE_PREFERENCES = {
    "genres": ["novel", "philosophy", "science"],
    "difficulty": "challenging",
    "moods": ["philosophical", "dark"],
    "emotions": ["inspiration", "tension"],
    "themes": ["growth", "fantasy"],
    "narrative_styles": ["metaphorical"],
    "purposes": ["learning"],
    "length": "long",
    "pace": "slow",
}


@pytest.fixture(scope="session")
def engine():
    """Test engine with all tables created once per session."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        test_engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        test_engine = create_engine(TEST_DATABASE_URL, pool_pre_ping=True)

    if not Base.metadata.tables:
        raise RuntimeError(
            "No tables registered in Base.metadata. "
            "Did you import shelfscope.models? All model classes must be imported before create_all()."
        )

    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    """
    Session factory for code that opens its own sessions (ReportService, event logging).

    Every table is emptied after the test for isolation.
    """
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="function")
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def user_id() -> str:
    return TEST_USER_ID


@pytest.fixture
def sample_preferences() -> dict:
    return dict(SAMPLE_PREFERENCES)


class FakeAugmenter:
    """Stands in for NarrativeAugmenter; returns fixed generated text and records calls."""

    def __init__(self, summary: str = "You read to understand the world."):
        self.summary = summary
        self.calls: List[tuple] = []

    async def augment(self, profile, persona, preferences) -> AugmentationResult:
        self.calls.append((profile, persona, preferences))
        return AugmentationResult(
            narrative=Narrative(
                summary=self.summary,
                closing="Keep reading.",
                category_analysis=CategoryAnalysis(
                    purposes="You read to learn.",
                    style="You take your time.",
                    atmosphere="You like thoughtful moods.",
                    content="You like big ideas.",
                ),
                source="generated",
            )
        )


@pytest.fixture
def fake_augmenter() -> FakeAugmenter:
    return FakeAugmenter()


@pytest.fixture
def report_service(fake_augmenter, session_factory) -> ReportService:
    return ReportService(augmenter=fake_augmenter, session_factory=session_factory)


@pytest.fixture
def client(db: Session, report_service: ReportService):
    """TestClient authenticated as TEST_USER_ID, backed by the test database."""
    from fastapi.testclient import TestClient

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
    app.state.report_service = report_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.report_service = None


@pytest.fixture
def make_report():
    """Build a complete Report from preferences without the service or a database."""

    def _make(user_id: str = TEST_USER_ID, preferences: Optional[dict] = None, version: str = "1.0.0") -> Report:
        prefs = PreferenceInput.model_validate(preferences if preferences is not None else SAMPLE_PREFERENCES)
        vector = score(prefs)
        profile = levelize(vector)
        return Report(
            id=new_report_id(),
            user_id=user_id,
            created_at=datetime.now(timezone.utc),
            version=version,
            score_vector=vector,
            profile=profile,
            radar_chart=radar_chart(vector),
            persona=resolve_persona(vector, profile),
            reading_dna=reading_dna(prefs, vector),
            reading_style=reading_style(vector),
            reading_directions=reading_directions(prefs, vector),
            growth_potential=growth_potential(prefs),
            statistics=report_statistics(prefs),
            selected_books=[],
            narrative=fallback_narrative(),
        )

    return _make
