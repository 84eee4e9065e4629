"""Domain errors for the lead and request lifecycle.

Each error carries a stable ``code`` and the HTTP status the API layer
renders it with. Services raise these; ``main.py`` turns them into JSON.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    INVALID_SUBMISSION = "invalid_submission"
    MALFORMED_INTAKE_PAYLOAD = "malformed_intake_payload"
    CONVERSION_FAILED = "conversion_failed"
    QUOTA_EXCEEDED = "quota_exceeded"
    STALE_STAGE_TRANSITION = "stale_stage_transition"
    INVALID_TRANSITION = "invalid_transition"
    NOT_FOUND = "not_found"
    AI_UNAVAILABLE = "ai_unavailable"


class LeadflowError(Exception):
    """Base exception for lifecycle errors."""

    code: ErrorCode = ErrorCode.INVALID_SUBMISSION
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": True,
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidSubmission(LeadflowError):
    """A required identity field (name or email) is missing or unusable."""

    code = ErrorCode.INVALID_SUBMISSION
    status_code = 422


class MalformedIntakePayload(LeadflowError):
    """The assistant message holds no parseable final JSON object yet.

    Callers treat this as "conversation still in progress".
    """

    code = ErrorCode.MALFORMED_INTAKE_PAYLOAD
    status_code = 422


class ConversionFailed(LeadflowError):
    """Transient store failure while promoting a lead to a client."""

    code = ErrorCode.CONVERSION_FAILED
    status_code = 503


class QuotaExceeded(LeadflowError):
    code = ErrorCode.QUOTA_EXCEEDED
    status_code = 429


class StaleStageTransition(LeadflowError):
    """A stage commit failed; the caller must roll back its local view."""

    code = ErrorCode.STALE_STAGE_TRANSITION
    status_code = 409

    def __init__(
        self,
        message: str,
        entity_id: Any = None,
        last_known_stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if entity_id is not None:
            details.setdefault("entity_id", str(entity_id))
        if last_known_stage is not None:
            details.setdefault("last_known_stage", last_known_stage)
        super().__init__(message, details)
        self.entity_id = entity_id
        self.last_known_stage = last_known_stage


class InvalidTransition(LeadflowError):
    code = ErrorCode.INVALID_TRANSITION
    status_code = 409


class NotFound(LeadflowError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class AIServiceUnavailable(LeadflowError):
    code = ErrorCode.AI_UNAVAILABLE
    status_code = 503
