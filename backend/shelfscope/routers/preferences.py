from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from shelfscope.core.auth import get_current_user_id
from shelfscope.core.config import settings
from shelfscope.database import get_db
from shelfscope.routers.reports import get_report_service
from shelfscope.schemas.preferences import PreferenceInput, PreferencesPayload, PreferencesResponse
from shelfscope.services.errors import ValidationError
from shelfscope.services.preferences import PreferenceRepository, to_preference_input
from shelfscope.services.report_service import ReportService, validate_preferences
from shelfscope.utils.instrumentation import log_event_best_effort

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/onboarding", tags=["onboarding"])


def _to_response(row) -> PreferencesResponse:
    return PreferencesResponse(
        user_id=row.user_id,
        preferences=to_preference_input(row),
        selected_book_ids=list(row.selected_book_ids or []),
        updated_at=row.updated_at,
    )


@router.post("/preferences", response_model=PreferencesResponse, status_code=status.HTTP_201_CREATED)
async def save_preferences(
    payload: PreferencesPayload,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    service: ReportService = Depends(get_report_service),
):
    """Create or replace the authenticated user's onboarding answers."""
    if settings.DEBUG:
        logger.info(
            "[DEBUG POST /api/onboarding/preferences] "
            f"user_id={user_id}, genres={payload.genres}, difficulty={payload.difficulty}"
        )

    preferences = PreferenceInput.model_validate(payload.model_dump(exclude={"selected_book_ids"}))
    try:
        validate_preferences(preferences, service.min_genres)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())

    try:
        row = PreferenceRepository(db).upsert(user_id, preferences, payload.selected_book_ids)
    except Exception as e:
        db.rollback()
        logger.exception(
            f"[POST /api/onboarding/preferences ERROR] user_id={user_id}, error_type={type(e).__name__}, error={e}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "detail": "internal_error",
                "error_type": type(e).__name__,
                "error": str(e) or "An unexpected error occurred",
            },
        )

    log_event_best_effort(
        event_name="preferences_saved",
        user_id=user_id,
        properties={
            "genres": len(preferences.genres),
            "selected_books": len(row.selected_book_ids or []),
        },
        session_factory=service.session_factory,
    )
    return _to_response(row)


@router.get("/preferences", response_model=PreferencesResponse)
def get_preferences(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    row = PreferenceRepository(db).get_record(user_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "onboarding_incomplete", "message": "Complete onboarding first"},
        )
    return _to_response(row)
