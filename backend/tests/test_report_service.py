"""Tests for report generation end to end (service level, SQLite-backed)."""
import asyncio
import threading

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from shelfscope.models import Book, EventLog, OnboardingReport, ReadingPreferences
from shelfscope.schemas.preferences import PreferenceInput
from shelfscope.schemas.report import SelectedBook
from shelfscope.services.book_lookup import BookLookup
from shelfscope.services import report_service as report_service_module
from shelfscope.services.errors import NotFoundError, ValidationError
from shelfscope.services.narrative import FALLBACK_CLOSING, FALLBACK_SUMMARY, NarrativeAugmenter
from shelfscope.services.personality import score
from shelfscope.services.preferences import PreferenceRepository
from shelfscope.services.report_service import ReportService, validate_preferences
from shelfscope.services.report_store import PersistenceResult, ReportStore

DETERMINISTIC_FIELDS = (
    "score_vector",
    "profile",
    "radar_chart",
    "persona",
    "reading_dna",
    "reading_style",
    "reading_directions",
    "growth_potential",
    "statistics",
    "selected_books",
)


@pytest.fixture
def saved_preferences(db: Session, user_id, sample_preferences):
    return PreferenceRepository(db).upsert(user_id, PreferenceInput.model_validate(sample_preferences))


def test_generate_from_stored_preferences(db, report_service, fake_augmenter, saved_preferences, user_id):
    result = asyncio.run(report_service.generate(user_id))
    report = result.report

    assert report.id.startswith("rep_")
    assert report.user_id == user_id
    assert report.version == "1.0.0"
    assert report.created_at.tzinfo is not None
    assert report.score_vector.openness == 71
    assert report.persona.title == "Intellectual Seeker"
    assert len(report.profile) == 5
    assert report.narrative.source == "generated"
    assert result.augmentation.degraded is False
    assert result.persistence.stored is True
    assert len(fake_augmenter.calls) == 1

    assert ReportStore(db).get(user_id) == report
    assert report_service.get_report(user_id) == report


def test_always_failing_augmenter_still_produces_report(db, session_factory, saved_preferences, user_id):
    service = ReportService(augmenter=NarrativeAugmenter(client=None), session_factory=session_factory)
    result = asyncio.run(service.generate(user_id))

    assert result.augmentation.degraded is True
    assert result.report.narrative.source == "fallback"
    assert result.report.narrative.summary == FALLBACK_SUMMARY
    assert result.report.narrative.closing == FALLBACK_CLOSING
    assert result.persistence.stored is True
    assert ReportStore(db).get(user_id).id == result.report.id


def test_missing_preferences_raises_not_found(db, report_service, fake_augmenter, user_id):
    with pytest.raises(NotFoundError) as exc_info:
        asyncio.run(report_service.generate_report(user_id))

    assert exc_info.value.code == "onboarding_incomplete"
    assert fake_augmenter.calls == []
    assert db.query(OnboardingReport).count() == 0


def test_insufficient_preferences_raise_before_any_work(db, report_service, fake_augmenter, user_id):
    PreferenceRepository(db).upsert(user_id, PreferenceInput.model_validate({"moods": ["bright"]}))

    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(report_service.generate_report(user_id))

    assert exc_info.value.code == "invalid_preferences"
    assert fake_augmenter.calls == []
    assert db.query(OnboardingReport).count() == 0


def test_validate_preferences_counts_distinct_non_blank_genres():
    validate_preferences(PreferenceInput(genres=["novel"]), min_genres=1)
    with pytest.raises(ValidationError):
        validate_preferences(PreferenceInput(genres=["novel", "novel", " "]), min_genres=2)


def test_explicit_preferences_bypass_the_store(db, report_service, user_id):
    prefs = PreferenceInput.model_validate({"genres": ["history"], "difficulty": "challenging", "themes": ["fantasy"]})
    report = asyncio.run(report_service.generate_report(user_id, preferences=prefs))

    assert report.score_vector.openness == 56
    assert report.score_vector.agreeableness == 49
    assert report.persona.title == "Balanced Reader"


def test_regeneration_is_idempotent_for_deterministic_fields(db, report_service, saved_preferences, user_id):
    first = asyncio.run(report_service.generate_report(user_id))
    second = asyncio.run(report_service.generate_report(user_id))

    for field in DETERMINISTIC_FIELDS:
        assert getattr(first, field) == getattr(second, field), field
    assert first.id != second.id

    rows = db.query(OnboardingReport).filter(OnboardingReport.user_id == user_id).all()
    assert len(rows) == 1
    assert rows[0].id == second.id


def test_selected_books_are_resolved_in_order(db, report_service, saved_preferences, user_id):
    db.add_all(
        [
            Book(id="book-1", external_id="ol:1", title="Meditations", author_name="Marcus Aurelius"),
            Book(id="book-2", title="Sapiens", author_name="Yuval Noah Harari", cover_image_url="https://img/2.jpg"),
        ]
    )
    db.commit()

    report = asyncio.run(
        report_service.generate_report(user_id, selected_book_ids=["book-2", "missing", "ol:1"])
    )

    assert [book.id for book in report.selected_books] == ["book-2", "book-1"]
    assert report.selected_books[0].cover_image == "https://img/2.jpg"
    assert report.selected_books[1].author == "Marcus Aurelius"


def test_stored_selected_book_ids_are_used_by_default(db, report_service, user_id, sample_preferences):
    db.add(Book(id="book-9", title="Dune", author_name="Frank Herbert"))
    db.commit()
    PreferenceRepository(db).upsert(
        user_id, PreferenceInput.model_validate(sample_preferences), selected_book_ids=["book-9"]
    )

    report = asyncio.run(report_service.generate_report(user_id))
    assert [book.title for book in report.selected_books] == ["Dune"]


def test_stored_row_with_mistyped_values_still_generates(db, report_service, user_id):
    db.add(
        ReadingPreferences(
            user_id=user_id,
            genres=["novel", 42],
            difficulty="challenging",
            moods=["bright", 7],
            themes={"fantasy": True},
            pace=3,
        )
    )
    db.commit()

    result = asyncio.run(report_service.generate(user_id))

    assert result.persistence.stored is True
    assert result.report.score_vector == score({"genres": ["novel"], "difficulty": "challenging", "moods": ["bright"]})


def test_book_lookup_failure_omits_selected_books(db, report_service, saved_preferences, user_id, monkeypatch):
    db.add(Book(id="book-1", title="Meditations", author_name="Marcus Aurelius"))
    db.commit()

    real_query = Session.query

    def query_without_books(self, *entities, **kwargs):
        if entities and entities[0] is Book:
            raise OperationalError("SELECT books", {}, Exception("books table unavailable"))
        return real_query(self, *entities, **kwargs)

    monkeypatch.setattr(Session, "query", query_without_books)
    result = asyncio.run(report_service.generate(user_id, selected_book_ids=["book-1"]))
    monkeypatch.undo()

    assert result.report.selected_books == []
    assert result.persistence.stored is True
    assert ReportStore(db).get(user_id).id == result.report.id


def test_book_lookup_overlaps_the_narrative(session_factory, fake_augmenter, saved_preferences, user_id, monkeypatch):
    narrative_started = threading.Event()

    class SignallingAugmenter:
        async def augment(self, profile, persona, preferences):
            narrative_started.set()
            return await fake_augmenter.augment(profile, persona, preferences)

    def lookup_after_narrative_starts(self, ids):
        # Only reachable while the event loop is free to run the narrative
        if not narrative_started.wait(timeout=5):
            return []
        return [SelectedBook(id="book-1", title="Meditations", author="Marcus Aurelius")]

    monkeypatch.setattr(BookLookup, "find_many", lookup_after_narrative_starts)
    service = ReportService(augmenter=SignallingAugmenter(), session_factory=session_factory)

    result = asyncio.run(service.generate(user_id, selected_book_ids=["book-1"]))
    assert [book.id for book in result.report.selected_books] == ["book-1"]


def test_persistence_failure_still_returns_report(db, report_service, saved_preferences, user_id, monkeypatch):
    monkeypatch.setattr(
        ReportStore, "upsert", lambda self, report: PersistenceResult(stored=False, error="OperationalError: disk full")
    )

    result = asyncio.run(report_service.generate(user_id))

    assert result.persistence.stored is False
    assert result.report.persona.title == "Intellectual Seeker"
    assert db.query(OnboardingReport).count() == 0


def test_report_generated_event_is_logged(db, report_service, saved_preferences, user_id):
    report = asyncio.run(report_service.generate_report(user_id))

    events = db.query(EventLog).filter(EventLog.event_name == "report_generated").all()
    assert len(events) == 1
    assert events[0].user_id == user_id
    assert events[0].properties["report_id"] == report.id
    assert events[0].properties["narrative_degraded"] is False


def test_event_logging_failure_does_not_break_generation(db, report_service, saved_preferences, user_id, monkeypatch):
    def unavailable_session():
        raise RuntimeError("database unavailable")

    real_log_event = report_service_module.log_event_best_effort

    def log_without_database(*args, **kwargs):
        kwargs["session_factory"] = unavailable_session
        return real_log_event(*args, **kwargs)

    monkeypatch.setattr(report_service_module, "log_event_best_effort", log_without_database)

    result = asyncio.run(report_service.generate(user_id))
    assert result.persistence.stored is True
    assert db.query(EventLog).count() == 0


def test_cancellation_stores_nothing(db, session_factory, saved_preferences, user_id):
    class HangingAugmenter:
        def __init__(self):
            self.started = None
            self.cancelled = False

        async def augment(self, profile, persona, preferences):
            self.started.set()
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                self.cancelled = True
                raise

    augmenter = HangingAugmenter()
    service = ReportService(augmenter=augmenter, session_factory=session_factory)

    async def run():
        augmenter.started = asyncio.Event()
        task = asyncio.create_task(service.generate_report(user_id))
        await augmenter.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        # Let the cancelled narrative task finish unwinding
        await asyncio.sleep(0)

    asyncio.run(run())

    assert augmenter.cancelled is True
    assert db.query(OnboardingReport).count() == 0


def test_get_report_missing_raises(report_service):
    with pytest.raises(NotFoundError) as exc_info:
        report_service.get_report("nobody")
    assert exc_info.value.code == "report_not_found"


def test_delete_report(report_service, saved_preferences, user_id):
    asyncio.run(report_service.generate_report(user_id))
    assert report_service.delete_report(user_id) is True
    with pytest.raises(NotFoundError):
        report_service.get_report(user_id)
