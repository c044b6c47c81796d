"""Error taxonomy shared by the request pipeline.

Every error carries the HTTP status it maps to. The exception handler in
``taskhub.main`` renders them as ``{"error": message}`` plus ``details``
when present.
"""

from typing import Any, Dict, List, Optional


class TaskHubError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class Unauthenticated(TaskHubError):
    """No credential was presented."""

    status_code = 401
    default_message = "Access token required"


class InvalidToken(TaskHubError):
    """The presented credential is malformed, tampered or expired."""

    status_code = 403
    default_message = "Invalid or expired token"


class Forbidden(TaskHubError):
    """The identity is valid but lacks the required role."""

    status_code = 403
    default_message = "Forbidden"


class ValidationError(TaskHubError):
    """Input failed structural validation."""

    status_code = 400
    default_message = "Validation error"

    def __init__(
        self,
        details: Optional[List[Dict[str, Any]]] = None,
        message: Optional[str] = None,
    ):
        super().__init__(message=message, details=details or [])


class NotFound(TaskHubError):
    status_code = 404
    default_message = "Not found"


class Conflict(TaskHubError):
    status_code = 409
    default_message = "Conflict"


class InternalError(TaskHubError):
    status_code = 500
    default_message = "Internal server error"


__all__ = [
    "TaskHubError",
    "Unauthenticated",
    "InvalidToken",
    "Forbidden",
    "ValidationError",
    "NotFound",
    "Conflict",
    "InternalError",
]
