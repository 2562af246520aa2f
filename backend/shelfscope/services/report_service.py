"""
Report generation: preferences -> scores -> profile -> persona -> derived sections
-> narrative -> persisted Report.

Everything up to the narrative is pure and deterministic. The narrative call runs as
an asyncio task while the derived sections and selected books are computed; its
failure degrades the report but never aborts it. A failed write is logged and the
report is still returned.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from shelfscope.database import SessionLocal
from shelfscope.schemas.preferences import PreferenceInput
from shelfscope.schemas.report import Report, SelectedBook
from shelfscope.services.book_lookup import BookLookup
from shelfscope.services.derived import (
    growth_potential,
    reading_directions,
    reading_dna,
    reading_style,
    report_statistics,
)
from shelfscope.services.errors import NotFoundError, ValidationError
from shelfscope.services.narrative import AugmentationResult, NarrativeAugmenter
from shelfscope.services.persona import resolve_persona
from shelfscope.services.personality import levelize, radar_chart, score
from shelfscope.services.preferences import PreferenceRepository, to_preference_input
from shelfscope.services.report_store import PersistenceResult, ReportStore
from shelfscope.utils.instrumentation import log_event_best_effort
from shelfscope.utils.timing import log_elapsed, now_ms, time_operation

logger = logging.getLogger(__name__)


def new_report_id() -> str:
    return f"rep_{uuid.uuid4().hex}"


def validate_preferences(preferences: PreferenceInput, min_genres: int = 1) -> None:
    """Raise ValidationError unless at least `min_genres` distinct genres are selected."""
    genres = {genre.strip() for genre in preferences.genres if genre and genre.strip()}
    if len(genres) < min_genres:
        raise ValidationError(
            f"Select at least {min_genres} genre{'s' if min_genres != 1 else ''} to generate a report"
        )


@dataclass(frozen=True)
class GenerationResult:
    report: Report
    augmentation: AugmentationResult
    persistence: PersistenceResult


class ReportService:
    """
    Builds, stores and reads personality reports.

    Opens short-lived sessions from `session_factory` so no database session is held
    open while the narrative call is in flight.
    """

    def __init__(
        self,
        augmenter: NarrativeAugmenter,
        session_factory: Callable[[], Session] = SessionLocal,
        report_version: str = "1.0.0",
        min_genres: int = 1,
    ):
        self.augmenter = augmenter
        self.session_factory = session_factory
        self.report_version = report_version
        self.min_genres = min_genres

    def _load_preferences(self, user_id: str) -> Tuple[PreferenceInput, List[str]]:
        db = self.session_factory()
        try:
            row = PreferenceRepository(db).get_record(user_id)
            if row is None:
                raise NotFoundError("Complete onboarding first")
            return to_preference_input(row), list(row.selected_book_ids or [])
        finally:
            db.close()

    def _lookup_books(self, ids: Optional[Sequence[str]]) -> List[SelectedBook]:
        if not ids:
            return []
        db = self.session_factory()
        try:
            return BookLookup(db).find_many(ids)
        finally:
            db.close()

    def _persist(self, report: Report) -> PersistenceResult:
        db = self.session_factory()
        try:
            return ReportStore(db).upsert(report)
        finally:
            db.close()

    async def generate(
        self,
        user_id: str,
        preferences: Optional[PreferenceInput] = None,
        selected_book_ids: Optional[Sequence[str]] = None,
    ) -> GenerationResult:
        """
        Generate and store a fresh report, returning it with the narrative and persistence outcomes.

        Raises NotFoundError when no preferences are passed and none are stored, and
        ValidationError when the preferences are insufficient. Both are raised before any
        computation. If this coroutine is cancelled the narrative task is cancelled too and
        nothing is stored.
        """
        start = now_ms()

        if preferences is None:
            preferences, stored_book_ids = self._load_preferences(user_id)
            if selected_book_ids is None:
                selected_book_ids = stored_book_ids
        validate_preferences(preferences, self.min_genres)

        vector = score(preferences)
        profile = levelize(vector)
        persona = resolve_persona(vector, profile)
        t = log_elapsed(start, "[REPORT] scoring + persona")

        narrative_task = asyncio.create_task(self.augmenter.augment(profile, persona, preferences))
        try:
            with time_operation("[REPORT] derived sections"):
                dna = reading_dna(preferences, vector)
                style = reading_style(vector)
                directions = reading_directions(preferences, vector)
                growth = growth_potential(preferences)
                statistics = report_statistics(preferences)
                radar = radar_chart(vector)
            # Blocking read, kept off the event loop
            selected_books = await asyncio.to_thread(self._lookup_books, selected_book_ids)
            augmentation = await narrative_task
        finally:
            if not narrative_task.done():
                narrative_task.cancel()
        t = log_elapsed(t, "[REPORT] narrative + sections")

        if augmentation.degraded:
            logger.warning(
                "[REPORT] narrative degraded, using fallback text: user_id=%s, error=%s",
                user_id,
                augmentation.error,
            )

        report = Report(
            id=new_report_id(),
            user_id=user_id,
            created_at=datetime.now(timezone.utc),
            version=self.report_version,
            score_vector=vector,
            profile=profile,
            radar_chart=radar,
            persona=persona,
            reading_dna=dna,
            reading_style=style,
            reading_directions=directions,
            growth_potential=growth,
            statistics=statistics,
            selected_books=selected_books,
            narrative=augmentation.narrative,
        )

        persistence = self._persist(report)
        if not persistence.stored:
            logger.warning(
                "[REPORT] report not persisted, returning it anyway: user_id=%s, report_id=%s, error=%s",
                user_id,
                report.id,
                persistence.error,
            )

        log_event_best_effort(
            event_name="report_generated",
            user_id=user_id,
            properties={
                "report_id": report.id,
                "persona": persona.title,
                "narrative_degraded": augmentation.degraded,
                "stored": persistence.stored,
                "selected_books": len(selected_books),
            },
            session_factory=self.session_factory,
        )
        log_elapsed(start, "[REPORT] total", log_fn=logger.info)

        return GenerationResult(report=report, augmentation=augmentation, persistence=persistence)

    async def generate_report(
        self,
        user_id: str,
        preferences: Optional[PreferenceInput] = None,
        selected_book_ids: Optional[Sequence[str]] = None,
    ) -> Report:
        result = await self.generate(user_id, preferences=preferences, selected_book_ids=selected_book_ids)
        return result.report

    def get_report(self, user_id: str) -> Report:
        db = self.session_factory()
        try:
            report = ReportStore(db).get(user_id)
        finally:
            db.close()
        if report is None:
            raise NotFoundError("No report found. Generate one first.", code="report_not_found")
        return report

    def delete_report(self, user_id: str) -> bool:
        db = self.session_factory()
        try:
            return ReportStore(db).delete(user_id)
        finally:
            db.close()


def build_report_service(settings, session_factory: Callable[[], Session] = SessionLocal) -> ReportService:
    """Wire a ReportService from settings; called once at application startup."""
    return ReportService(
        augmenter=NarrativeAugmenter.from_settings(settings),
        session_factory=session_factory,
        report_version=settings.REPORT_VERSION,
        min_genres=settings.MIN_GENRES,
    )
