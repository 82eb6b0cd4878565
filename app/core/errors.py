"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``app.main`` renders them as
``{"message": ..., "errors": [...]}`` with the status code of the class.
"""
from typing import Dict, List, Optional


class HelpdeskError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class Unauthenticated(HelpdeskError):
    """Missing, malformed, expired or unverifiable credential."""
    status_code = 401
    default_message = "Access token required"


class Forbidden(HelpdeskError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(HelpdeskError):
    """Absent, or outside the caller's visibility; the two are not distinguished."""
    status_code = 404
    default_message = "Not found"


class ValidationError(HelpdeskError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], message=message)

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class InvalidTransition(HelpdeskError):
    status_code = 409
    default_message = "Invalid status transition"


class Conflict(HelpdeskError):
    """Id allocation kept losing to concurrent writers."""
    status_code = 409
    default_message = "Could not allocate an identifier, please retry"


class DependencyUnavailable(HelpdeskError):
    status_code = 503
    default_message = "AI service unavailable"
