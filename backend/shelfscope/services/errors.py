"""Domain errors raised by the report service and mapped to HTTP responses by the routers."""
from typing import Dict, Optional


class ReportError(Exception):
    code = "report_error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_detail(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(ReportError):
    """Preferences are present but do not meet the minimum needed to build a report."""
    code = "invalid_preferences"


class NotFoundError(ReportError):
    code = "onboarding_incomplete"
