from fastapi import APIRouter, Depends, HTTPException, Request, status
from typing import Optional
import logging

from shelfscope.core.auth import get_current_user_id
from shelfscope.core.config import settings
from shelfscope.schemas.report import GenerateReportRequest, Report
from shelfscope.services.errors import NotFoundError, ValidationError
from shelfscope.services.report_service import ReportService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/onboarding", tags=["onboarding"])


def get_report_service(request: Request) -> ReportService:
    """The ReportService built at startup (see main.on_startup)."""
    return request.app.state.report_service


def _internal_error(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "detail": "internal_error",
            "error_type": type(e).__name__,
            "error": str(e) or "An unexpected error occurred",
        },
    )


@router.post("/report", response_model=Report, status_code=status.HTTP_201_CREATED)
async def generate_report(
    payload: Optional[GenerateReportRequest] = None,
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service),
):
    """
    Generate (or regenerate) the personality report from the user's stored preferences.

    The previous report, if any, is replaced.
    """
    if settings.DEBUG:
        logger.info(f"[DEBUG POST /api/onboarding/report] user_id={user_id}")

    selected_book_ids = payload.selected_book_ids if payload else None
    try:
        return await service.generate_report(user_id, selected_book_ids=selected_book_ids)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_detail())
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())
    except Exception as e:
        logger.exception(
            f"[POST /api/onboarding/report ERROR] user_id={user_id}, error_type={type(e).__name__}, error={e}"
        )
        raise _internal_error(e)


@router.get("/report", response_model=Report)
def get_report(
    user_id: str = Depends(get_current_user_id),
    service: ReportService = Depends(get_report_service),
):
    """Return the stored report for the authenticated user."""
    try:
        return service.get_report(user_id)
    except NotFoundError as e:
        if settings.DEBUG:
            logger.warning(f"[DEBUG GET /api/onboarding/report] user_id={user_id} - report not found (404)")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_detail())
    except Exception as e:
        logger.exception(
            f"[GET /api/onboarding/report ERROR] user_id={user_id}, error_type={type(e).__name__}, error={e}"
        )
        raise _internal_error(e)
