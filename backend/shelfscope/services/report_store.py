"""
Report persistence: one row per user in `onboarding_reports`.

Regeneration fully replaces the stored report (blob and envelope). There is no history
and no merging with the previous version.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shelfscope.models import OnboardingReport
from shelfscope.schemas.report import Report

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistenceResult:
    stored: bool
    error: Optional[str] = None


class ReportStore:
    def __init__(self, db: Session):
        self.db = db

    def _find(self, user_id: str) -> Optional[OnboardingReport]:
        return self.db.query(OnboardingReport).filter(OnboardingReport.user_id == user_id).first()

    def _write(self, report: Report) -> None:
        data = report.model_dump(mode="json")
        row = self._find(report.user_id)
        if row is None:
            row = OnboardingReport(user_id=report.user_id)
            self.db.add(row)
        row.id = report.id
        row.version = report.version
        row.report_data = data
        row.created_at = report.created_at
        row.updated_at = datetime.now(timezone.utc)
        self.db.commit()

    def upsert(self, report: Report) -> PersistenceResult:
        """
        Insert or fully replace the stored report for `report.user_id`.

        Last writer wins. A racing insert for the same user surfaces as IntegrityError and
        is retried once as an update. Never raises for database errors.
        """
        try:
            try:
                self._write(report)
            except IntegrityError:
                self.db.rollback()
                logger.debug("[STORE] concurrent insert for user_id=%s, retrying as update", report.user_id)
                self._write(report)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                "[STORE] failed to persist report: user_id=%s, report_id=%s, error=%s",
                report.user_id,
                report.id,
                e,
                exc_info=True,
            )
            return PersistenceResult(stored=False, error=f"{type(e).__name__}: {e}")

        logger.info("[STORE] report saved: user_id=%s, report_id=%s", report.user_id, report.id)
        return PersistenceResult(stored=True)

    def get(self, user_id: str) -> Optional[Report]:
        row = self._find(user_id)
        if row is None:
            return None
        try:
            return Report.model_validate(row.report_data)
        except SchemaValidationError as e:
            logger.warning(
                "[STORE] stored report for user_id=%s (version %s) no longer validates: %s",
                user_id,
                row.version,
                e,
            )
            return None

    def delete(self, user_id: str) -> bool:
        """Remove the user's report, e.g. on account deletion. Returns False if there was none."""
        deleted = self.db.query(OnboardingReport).filter(OnboardingReport.user_id == user_id).delete()
        self.db.commit()
        return deleted > 0
