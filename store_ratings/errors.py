"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``main.create_app`` registers one handler that turns any
``AppError`` into ``{"message": ..., "errors": [...]}`` with ``status_code``.
"""
from typing import Dict, List, Optional


class AppError(Exception):
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationFailed(AppError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls(message, errors=[{"field": field, "message": message}])

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class Unauthenticated(AppError):
    status_code = 401
    message = "No token, authorization denied"


class InvalidToken(Unauthenticated):
    message = "Token is not valid"


class InvalidCredentials(Unauthenticated):
    message = "Invalid credentials"


class Forbidden(AppError):
    status_code = 403
    message = "Forbidden: Insufficient role"


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class UserNotFound(NotFound):
    message = "User not found"


class StoreNotFound(NotFound):
    message = "Store not found"


class ServerError(AppError):
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, stack: Optional[str] = None):
        super().__init__(message)
        self.stack = stack

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.stack:
            body["stack"] = self.stack
        return body


class Conflict(AppError):
    # surfaced as a plain bad request to clients
    status_code = 400
    message = "Conflict"


class DuplicateEmail(Conflict):
    message = "Email already in use"


def field_errors(raw_errors) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``[{"field": ..., "message": ...}]``."""
    flattened = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        ctx_error = (err.get("ctx") or {}).get("error")
        message = str(ctx_error) if ctx_error is not None else err.get("msg", "Invalid value")
        flattened.append({"field": field, "message": message})
    return flattened
