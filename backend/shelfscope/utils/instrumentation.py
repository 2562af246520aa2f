"""
Server-side event logging.

Events go to the `event_logs` table (for querying) and to the structured log (for
immediate visibility). Logging an event must never break the request that emits it.
"""
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from shelfscope.database import SessionLocal
from shelfscope.models import EventLog

logger = logging.getLogger(__name__)


def log_event_best_effort(
    event_name: str,
    user_id: Optional[str] = None,
    properties: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
    session_factory: Optional[Callable[[], Session]] = None,
) -> bool:
    """
    Write an event in its own session and commit it independently of the caller.

    Args:
        event_name: e.g. "report_generated", "preferences_saved"
        user_id: Supabase user id, if known
        properties: JSON-serialisable event properties
        request_id: optional id for correlating events
        session_factory: session factory to use (defaults to SessionLocal)

    Returns True when the event was stored. Never raises; failures are logged as warnings.
    """
    db = None
    try:
        db = (session_factory or SessionLocal)()
        db.add(
            EventLog(
                event_name=event_name,
                user_id=user_id,
                properties=properties,
                request_id=request_id,
            )
        )
        db.commit()

        logger.info(
            "event_logged",
            extra={
                "event_name": event_name,
                "user_id": user_id,
                "request_id": request_id,
                "properties": properties,
            },
        )
        return True
    except (OperationalError, ProgrammingError) as e:
        error_str = str(e).lower()
        if "no such table" in error_str or "does not exist" in error_str:
            logger.warning(
                "event_logs table missing - run alembic upgrade head. "
                "Event logging disabled until migration is applied."
            )
        else:
            logger.warning(
                "Failed to log event (database error): event_name=%s, user_id=%s, error=%s",
                event_name,
                user_id,
                e,
                exc_info=True,
            )
        if db:
            db.rollback()
        return False
    except Exception as e:
        # Never break the request path - log warning and continue
        logger.warning(
            "Failed to log event: event_name=%s, user_id=%s, error=%s",
            event_name,
            user_id,
            e,
            exc_info=True,
        )
        if db:
            db.rollback()
        return False
    finally:
        if db:
            db.close()
