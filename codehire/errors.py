"""
CodeHire – domain error taxonomy.

Services raise these; ``codehire.main`` renders them as JSON responses
carrying ``detail`` (user-facing message) and ``code`` (machine-readable).
"""

from typing import Any, Dict, Optional


class CodeHireError(Exception):
    """Base class for every error a service operation may raise."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            body["context"] = self.details
        return body


class ValidationError(CodeHireError):
    """Bad input shape or range; the user can fix it."""

    status_code = 422
    code = "validation_error"


class AuthorizationError(CodeHireError):
    status_code = 403
    code = "forbidden"


class NotFoundError(CodeHireError):
    status_code = 404
    code = "not_found"


class InvalidStateError(CodeHireError):
    """Operation not legal in the entity's current lifecycle state."""

    status_code = 409
    code = "invalid_state"


class DuplicateApplicationError(CodeHireError):
    status_code = 409
    code = "duplicate_application"


class BiddingClosedError(CodeHireError):
    """Bidding window elapsed, or the project is not open for bids."""

    status_code = 409
    code = "bidding_closed"


class TransientStoreError(CodeHireError):
    """Retryable infrastructure failure talking to the store."""

    status_code = 503
    code = "store_unavailable"


class StoreTimeoutError(TransientStoreError):
    status_code = 504
    code = "store_timeout"

    def __init__(self, message: str = "The data store did not respond in time.", timeout: Optional[float] = None):
        super().__init__(message)
        if timeout is not None:
            self.details["timeout"] = timeout
