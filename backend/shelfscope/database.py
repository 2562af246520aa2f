from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from shelfscope.core.config import settings
import logging
import os
import time

logger = logging.getLogger(__name__)

logger.info("SHELFSCOPE DATABASE_URL = %s", settings.get_masked_database_url())


def make_engine(url: str):
    """Create an engine for `url`; SQLite needs cross-thread access for FastAPI's threadpool."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using them
        echo=False,  # Keep echo off - we'll log slow queries separately
        connect_args=connect_args,
    )


engine = make_engine(settings.DATABASE_URL)

# Add slow query logging (DEBUG mode only)
if settings.DEBUG:
    SLOW_QUERY_THRESHOLD_MS = 200.0

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        """Store query start time before execution."""
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        """Log slow queries after execution."""
        if hasattr(context, "_query_start_time"):
            elapsed_ms = (time.perf_counter() - context._query_start_time) * 1000
            if elapsed_ms >= SLOW_QUERY_THRESHOLD_MS:
                statement_first_line = statement.split("\n")[0].strip()[:100]
                logger.warning(
                    f"SLOW_QUERY: {elapsed_ms:.2f}ms - {statement_first_line}"
                )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """
    Dev convenience: ensure the report tables exist.
    In production, prefer running Alembic migrations instead.

    WARNING: create_all() will NOT add missing columns to existing tables.
    Use Alembic migrations for schema changes.
    """
    target = bind if bind is not None else engine
    alembic_versions_path = os.path.join(os.path.dirname(__file__), "..", "alembic", "versions")
    if bind is None and os.path.exists(alembic_versions_path) and os.listdir(alembic_versions_path):
        if not target.url.get_backend_name().startswith("sqlite"):
            logger.info("Alembic migrations detected. Skipping create_all(); run 'alembic upgrade head'.")
            return

    # Import all models to ensure they're registered with Base.metadata
    from shelfscope import models  # noqa: F401

    Base.metadata.create_all(bind=target)
