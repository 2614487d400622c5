"""Error hierarchy for SafeSpace moderation.

Every error carries the HTTP status the handler answers with. Anything
raised below the service boundary that is not a ModerationError is a bug.
"""
from typing import Any, Dict, Optional


class ModerationError(Exception):
    """Base exception for moderation pipeline errors."""

    status_code = 500
    error_code = "moderation_error"

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code, "message": self.user_message}


class ValidationError(ModerationError):
    """Request is malformed or content is empty."""
    status_code = 400
    error_code = "validation_error"


class AuthorizationError(ModerationError):
    """Actor is missing or lacks the required role."""
    status_code = 403
    error_code = "forbidden"


class NotFoundError(ModerationError):
    status_code = 404
    error_code = "not_found"


class DuplicateContentError(ModerationError):
    """Author recently posted the same normalized content."""
    status_code = 409
    error_code = "duplicate_content"


class DisputeStateError(ModerationError):
    """Dispute transition is not allowed from its current state."""
    status_code = 409
    error_code = "dispute_state"


class PolicyBlockedError(ModerationError):
    """Content violates safety policy and was not stored.

    user_message carries the notice shown to the author, which always
    includes the crisis resources.
    """
    status_code = 422
    error_code = "policy_blocked"

    def __init__(self, message: str, user_message: str, risk_level: str, reason: Optional[str] = None):
        super().__init__(message, user_message)
        self.risk_level = risk_level
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["risk_level"] = self.risk_level
        return payload


class RateLimitError(ModerationError):
    status_code = 429
    error_code = "rate_limited"


class PersistenceError(ModerationError):
    """Store read or write failed. Safe to retry."""
    status_code = 503
    error_code = "persistence_unavailable"
    retryable = True


class ClassificationUnavailableError(ModerationError):
    """Remote classifier failed. Logged by the bridge, never surfaced."""
    status_code = 502
    error_code = "classification_unavailable"
