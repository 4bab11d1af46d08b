"""
Application exceptions and their HTTP mapping.

Every error raised by the services derives from AppError and is rendered
by the handlers registered in vidtube.main.
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from vidtube.logger import app_logger


class AppError(Exception):
    """Base class for all application exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailure(AppError):
    """Missing or malformed input."""

    def __init__(self, message: str = "Invalid request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class NotFoundError(AppError):
    """Resource not found error."""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class ConflictError(AppError):
    """Unique field already taken."""

    def __init__(self, message: str = "Already exists", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class AuthFailureReason(str, Enum):
    """Why a caller has to re-authenticate."""

    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    TOKEN_REUSED = "token_reused"
    USER_NOT_FOUND = "user_not_found"
    BAD_CREDENTIALS = "bad_credentials"


class AuthFailure(AppError):
    """
    Authentication failure.

    The reason is kept for logging and callers inside the process; the HTTP
    response only says the client must authenticate again.
    """

    def __init__(self, reason: AuthFailureReason, message: str = "Unauthorized"):
        self.reason = reason
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)

    @property
    def is_expired(self) -> bool:
        return self.reason == AuthFailureReason.EXPIRED_TOKEN


class StorageError(AppError):
    """Record store read or write failed. Safe to retry."""

    def __init__(self, message: str = "Storage unavailable, please retry"):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE, {"retryable": True})


class TokenIssueError(AppError):
    """Token signing failed on the server side. Safe to retry."""

    def __init__(self, message: str = "Something went wrong while generating tokens"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, {"retryable": True})


class MediaStorageError(AppError):
    """Upload to or deletion from media storage failed."""

    def __init__(self, message: str = "Media upload failed"):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)


class TokenError(Exception):
    """Base class for token verification errors."""


class TokenInvalid(TokenError):
    """Signature mismatch, malformed token, or wrong token type."""


class TokenExpired(TokenError):
    """Token signature is valid but its expiry has passed."""


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError as a JSON error body."""
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.__class__.__name__,
                "message": exc.message,
                "details": exc.details,
                "path": request.url.path,
            }
        },
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and hide their details from the client."""
    app_logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "InternalServerError",
                "message": "An unexpected error occurred. Please try again later.",
                "path": request.url.path,
            }
        },
    )
