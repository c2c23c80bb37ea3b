"""
Domain error taxonomy.

Every error carries the HTTP status it maps to, so endpoints can let it
propagate and the handler registered in main.py renders it.

- ValidationError: bad input shape (e.g. reschedule without a future date)
- PreconditionError: entity not in the state the action requires
- PermissionDeniedError: capability check failed
- NotFoundError: referenced id missing
- ConflictError: transition not legal from the current state
- ExternalServiceError: messaging / booking-page collaborator failure
"""

from typing import Optional


class RecruitmentError(Exception):
    """Base class for all errors raised by the recruitment core."""
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(RecruitmentError):
    status_code = 400
    default_detail = "Invalid input"


class PermissionDeniedError(RecruitmentError):
    status_code = 403
    default_detail = "Not authorized to perform this action"


class NotFoundError(RecruitmentError):
    status_code = 404
    default_detail = "Not found"


class ConflictError(RecruitmentError):
    status_code = 409
    default_detail = "Transition not allowed from the current state"


class PreconditionError(RecruitmentError):
    status_code = 412
    default_detail = "Precondition failed"


class ExternalServiceError(RecruitmentError):
    status_code = 502
    default_detail = "External service failure"
