"""
Typed application errors.

Services raise these; the HTTP layer maps them to responses via the handler
registered in app.main. Each error carries an HTTP status and a machine-readable
code so route handlers never need to build error payloads themselves.
"""

from typing import Any

from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for all expected (operational) errors."""

    status_code: int = 500
    code: str = "APP_ERROR"

    def __init__(self, message: str, details: list[Any] | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    """Malformed or rule-violating input."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    """Identity could not be established or is not trustworthy."""

    status_code = 401
    code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationError(AppError):
    """Identity established but privileges are insufficient."""

    status_code = 403
    code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND_ERROR"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    """Uniqueness violation (email, username)."""

    status_code = 409
    code = "CONFLICT_ERROR"


class RateLimitError(AppError):
    status_code = 429
    code = "RATE_LIMIT_ERROR"

    def __init__(self, message: str = "Too many requests", retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(message)


def app_error_response(exc: AppError) -> JSONResponse:
    """Render an AppError as the API's JSON error body."""
    content: dict[str, Any] = {"detail": exc.message, "code": exc.code}
    if exc.details:
        content["details"] = exc.details

    headers = None
    if isinstance(exc, RateLimitError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)
