"""
Domain errors for the examination and certification engine.

Every error is an ``HTTPException`` carrying a stable ``error_code`` so the
global exception handler can render it without knowing the domain.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class ExamEngineError(HTTPException):
    """Base class for all engine errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be processed."
    error_code = "EXAM_ENGINE_ERROR"

    def __init__(self, detail: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)
        self.details = details or {}


class NotFoundError(ExamEngineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "The requested resource was not found."
    error_code = "NOT_FOUND"


class ExamNotConfigured(NotFoundError):
    default_detail = "No exam is configured for this course."
    error_code = "EXAM_NOT_CONFIGURED"


class ValidationError(ExamEngineError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Validation failed."
    error_code = "VALIDATION_ERROR"


class PurchaseRequired(ExamEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You must purchase this course before taking its exam."
    error_code = "PURCHASE_REQUIRED"


class AttemptLimitExceeded(ExamEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Maximum number of exam attempts reached for this course."
    error_code = "ATTEMPT_LIMIT_EXCEEDED"


class ExamAlreadyPassed(ExamEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You have already passed this exam."
    error_code = "EXAM_ALREADY_PASSED"


class AttemptNotActive(ExamEngineError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This exam attempt is not in progress."
    error_code = "ATTEMPT_NOT_ACTIVE"


class Unauthorized(ExamEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to act on this resource."
    error_code = "UNAUTHORIZED"


class CertificateConflict(ExamEngineError):
    """Raised by persistence when an active certificate already exists.

    Never surfaced to callers: the issuer resolves it by returning the
    certificate that won the race.
    """

    status_code = status.HTTP_409_CONFLICT
    default_detail = "An active certificate already exists for this user and course."
    error_code = "CERTIFICATE_CONFLICT"
