"""Tests for report persistence (one row per user, full replace)."""
from datetime import datetime, timezone
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from shelfscope.models import OnboardingReport
from shelfscope.services.report_store import ReportStore


def test_upsert_then_get_round_trips(db: Session, make_report):
    report = make_report()
    result = ReportStore(db).upsert(report)

    assert result.stored is True
    assert result.error is None
    assert ReportStore(db).get(report.user_id) == report


def test_second_upsert_replaces_first(db: Session, make_report, user_id):
    store = ReportStore(db)
    first = make_report(preferences={"genres": ["novel"], "moods": ["bright"]})
    second = make_report(preferences={"genres": ["history"], "themes": ["history"]}, version="1.1.0")

    store.upsert(first)
    store.upsert(second)

    rows = db.query(OnboardingReport).filter(OnboardingReport.user_id == user_id).all()
    assert len(rows) == 1
    assert rows[0].id == second.id
    assert rows[0].version == "1.1.0"

    stored = store.get(user_id)
    assert stored == second
    assert stored.score_vector != first.score_vector


def test_get_missing_returns_none(db: Session):
    assert ReportStore(db).get("nobody") is None


def test_get_unreadable_blob_returns_none(db: Session):
    db.add(
        OnboardingReport(
            id="rep_legacy",
            user_id="legacy-user",
            version="0.1.0",
            report_data={"userId": "legacy-user", "readingDNA": []},
            created_at=datetime.now(timezone.utc),
        )
    )
    db.commit()

    assert ReportStore(db).get("legacy-user") is None


def test_delete(db: Session, make_report, user_id):
    store = ReportStore(db)
    store.upsert(make_report())

    assert store.delete(user_id) is True
    assert store.get(user_id) is None
    assert store.delete(user_id) is False


def test_reports_are_per_user(db: Session, make_report):
    store = ReportStore(db)
    mine = make_report(user_id="user-a")
    theirs = make_report(user_id="user-b")
    store.upsert(mine)
    store.upsert(theirs)

    assert store.get("user-a").id == mine.id
    assert store.get("user-b").id == theirs.id


def test_database_failure_is_reported_not_raised(make_report):
    db = MagicMock()
    db.query.return_value.filter.return_value.first.return_value = None
    db.commit.side_effect = OperationalError("INSERT INTO onboarding_reports", {}, Exception("disk I/O error"))

    result = ReportStore(db).upsert(make_report())

    assert result.stored is False
    assert "OperationalError" in result.error
    db.rollback.assert_called()
