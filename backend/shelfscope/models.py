from sqlalchemy import Column, String, Integer, Text, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
import uuid
from datetime import datetime, timezone
import sqlalchemy as sa
from shelfscope.database import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite for local runs and tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _uuid_str() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadingPreferences(Base):
    """
    Onboarding answers for a user, one row per user.
    Multi-select answers are stored as JSON lists, single-select answers as strings.
    """
    __tablename__ = "reading_preferences"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    user_id = Column(String, unique=True, index=True, nullable=False)  # Supabase user id (JWT sub)
    genres = Column(JSONType, nullable=False, default=list)
    difficulty = Column(String, nullable=True)
    moods = Column(JSONType, nullable=True)
    emotions = Column(JSONType, nullable=True)
    themes = Column(JSONType, nullable=True)
    narrative_styles = Column(JSONType, nullable=True)
    purposes = Column(JSONType, nullable=True)
    length = Column(String, nullable=True)
    pace = Column(String, nullable=True)
    selected_book_ids = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class Book(Base):
    __tablename__ = "books"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    external_id = Column(String, nullable=True, index=True)
    title = Column(String, nullable=False)
    author_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    cover_image_url = Column(String, nullable=True)
    page_count = Column(Integer, nullable=True)
    categories = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class OnboardingReport(Base):
    """
    Latest personality report per user.
    The full report is an opaque JSON blob; the envelope columns exist for querying.
    Regeneration replaces the row (no history is kept).
    """
    __tablename__ = "onboarding_reports"

    id = Column(String, primary_key=True)
    user_id = Column(String, unique=True, index=True, nullable=False)
    version = Column(String, nullable=False)
    report_data = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    created_at = Column(DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True)
    user_id = Column(String, nullable=True, index=True)
    event_name = Column(String, nullable=False, index=True)
    properties = Column(JSONType, nullable=True)
    request_id = Column(String, nullable=True)
