"""
Error Taxonomy

Every failure the API surfaces maps to one of these classes. The FastAPI
exception handlers in ``tapgo.main`` turn them into JSON responses, and the
API client turns error responses back into them.

    TapGoError
    ├── ValidationError   400  missing / out-of-range fields
    ├── NotFoundError     404  unknown order line id
    └── StoreError        500  persistence failure
        └── InsertionError     cart batch could not be written
"""

from typing import Any, Optional


class TapGoError(Exception):
    """Base class for all application errors."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str = "", detail: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON error body."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.error,
            "message": self.message,
        }
        if self.detail:
            body["detail"] = self.detail
        return body


class ValidationError(TapGoError):
    status_code = 400
    error = "Invalid request"

    def to_dict(self) -> dict[str, Any]:
        # Validation messages are surfaced verbatim as the error itself
        body = super().to_dict()
        body["error"] = self.message
        return body


class NotFoundError(TapGoError):
    status_code = 404
    error = "Order not found"

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}


class StoreError(TapGoError):
    status_code = 500
    error = "Database operation failed"


class InsertionError(StoreError):
    error = "Failed to create order"
