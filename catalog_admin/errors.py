"""
Domain errors for the catalog admin service.

Services raise these; the handlers registered in ``catalog_admin.main`` turn
them into ``{"error", "message", "details"}`` JSON responses.
"""
from typing import Any, Optional


class CatalogError(Exception):
    """Base class for every error surfaced to API callers"""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.error, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(CatalogError):
    """Malformed or out-of-domain input. ``details`` lists every bad field."""

    status_code = 400
    error = "Invalid data"

    def __init__(self, message: str = "Request data is invalid", details: Optional[list] = None):
        super().__init__(message, details or [])

    @classmethod
    def for_field(cls, field: str, value: Any, expected: str, message: str) -> "ValidationError":
        return cls(message, [
            {"field": field, "value": value, "expected": expected, "message": message}
        ])


class NothingToUpdateError(ValidationError):
    error = "Nothing to update"

    def __init__(self, message: str = "No fields were supplied to update"):
        super().__init__(message)


class NotFoundError(CatalogError):
    status_code = 404
    error = "Not found"


class ConflictError(CatalogError):
    status_code = 409
    error = "Conflict"


class InvalidTransitionError(ConflictError):
    error = "Invalid status transition"

    def __init__(self, current: str, requested: str, allowed):
        allowed = sorted(allowed)
        super().__init__(
            f"Cannot change order status from '{current}' to '{requested}'",
            {"current": current, "requested": requested, "allowed": allowed},
        )


class AssetIOError(CatalogError):
    """Asset store write or delete failure"""

    status_code = 500
    error = "Asset storage failure"


class PersistenceError(CatalogError):
    """Underlying database failure. Message detail is only shown in debug mode."""

    status_code = 500
    error = "Database error"
