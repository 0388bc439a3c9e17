"""
Error taxonomy shared by the pipelines, the store and the API layer.

Every error that may reach a caller carries a short machine code, a
human-readable message and the HTTP status it maps to.  ``to_payload``
renders the uniform ``{success, error, message}`` envelope.
"""

from __future__ import annotations

from typing import Any, Dict


class WellnessError(Exception):
    code = "internal_error"
    status_code = 500
    default_message = "Something went wrong processing your request"

    def __init__(self, message: str = "", code: str = "", status_code: int = 0):
        self.message = message or self.default_message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.code, "message": self.message}


class ValidationError(WellnessError):
    code = "validation_error"
    status_code = 400
    default_message = "Validation failed"


class DuplicateCheckinError(WellnessError):
    code = "duplicate_checkin"
    status_code = 400
    default_message = "You have already submitted a check-in for today"


class DuplicateKeyError(WellnessError):
    """Uniqueness violation reported by the storage driver."""

    code = "duplicate_key"
    status_code = 400
    default_message = "A record with the same key already exists"


class PersistenceError(WellnessError):
    code = "persistence_error"
    status_code = 500
    default_message = "A storage error occurred, please try again later"


class UpstreamAIError(WellnessError):
    """The text-generation collaborator failed; always recovered locally."""

    code = "upstream_ai_error"
    status_code = 502
    default_message = "Insight generation is unavailable"
