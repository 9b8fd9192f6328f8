"""
Domain exceptions.

Every error raised by the stores, the workflow and the extraction client
derives from PromoDeskError. The API layer maps each class to an HTTP status
(see promodesk.main); nothing here is fatal to the process.
"""
from typing import Any, Dict, Optional


class PromoDeskError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailed(PromoDeskError):
    """User-correctable input problem (missing remarks, program name, reason)."""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


class TransitionError(PromoDeskError):
    """Attempted status change outside the allowed transition table."""

    status_code = 400

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        target_status: Optional[str] = None,
        allowed: Optional[list] = None,
    ):
        self.current_status = current_status
        self.target_status = target_status
        self.allowed = allowed or []
        super().__init__(
            message,
            {
                "current_status": current_status,
                "target_status": target_status,
                "allowed": self.allowed,
            },
        )


class NotFoundError(PromoDeskError):
    """Record does not exist or is not visible to the acting role."""

    status_code = 404


class PermissionDenied(PromoDeskError):
    """Acting role may not perform the operation."""

    status_code = 403


class StoreReadError(PromoDeskError):
    """Persisted state is absent or malformed. Stores recover from this locally."""

    status_code = 500

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Could not read '{key}': {reason}", {"key": key})


class ExtractionError(PromoDeskError):
    """Trade letter extraction failed (service error, timeout, bad response)."""

    status_code = 502
