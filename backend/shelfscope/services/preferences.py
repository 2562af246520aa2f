"""Onboarding answers, one `reading_preferences` row per user."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from shelfscope.models import ReadingPreferences
from shelfscope.schemas.preferences import PreferenceInput

logger = logging.getLogger(__name__)

_PREFERENCE_FIELDS = (
    "genres",
    "difficulty",
    "moods",
    "emotions",
    "themes",
    "narrative_styles",
    "purposes",
    "length",
    "pace",
)


def to_preference_input(row: ReadingPreferences) -> PreferenceInput:
    return PreferenceInput.model_validate({field: getattr(row, field) for field in _PREFERENCE_FIELDS})


class PreferenceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_record(self, user_id: str) -> Optional[ReadingPreferences]:
        return self.db.query(ReadingPreferences).filter(ReadingPreferences.user_id == user_id).first()

    def get(self, user_id: str) -> Optional[PreferenceInput]:
        row = self.get_record(user_id)
        if row is None:
            return None
        return to_preference_input(row)

    def upsert(
        self,
        user_id: str,
        preferences: PreferenceInput,
        selected_book_ids: Optional[List[str]] = None,
    ) -> ReadingPreferences:
        """Create or overwrite the user's answers. `selected_book_ids=None` keeps the stored list."""
        values = preferences.model_dump(include=set(_PREFERENCE_FIELDS))

        row = self.get_record(user_id)
        if row is None:
            row = ReadingPreferences(user_id=user_id, **values)
            self.db.add(row)
        else:
            for key, value in values.items():
                setattr(row, key, value)
            row.updated_at = datetime.now(timezone.utc)

        if selected_book_ids is not None:
            row.selected_book_ids = list(selected_book_ids)

        self.db.commit()
        self.db.refresh(row)
        logger.info("[PREFERENCES] saved: user_id=%s, genres=%d", user_id, len(preferences.genres))
        return row
