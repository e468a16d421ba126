from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AuthError(Exception):
    """Base class for every failure the auth core reports."""

    message = "Authentication failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidInput(AuthError, ValueError):
    message = "Invalid input"


class RateLimited(AuthError):
    message = "Please wait before requesting another OTP"

    def __init__(self, remaining_seconds: int, message: Optional[str] = None):
        super().__init__(message)
        self.remaining_seconds = remaining_seconds


class DeliveryFailed(AuthError):
    message = "Failed to send OTP"


# Wrong, expired and exhausted codes all share this message
INVALID_CODE_MESSAGE = "Invalid or expired OTP code"


class InvalidCode(AuthError):
    message = INVALID_CODE_MESSAGE

    def __init__(self, attempts_remaining: Optional[int] = None):
        super().__init__()
        self.attempts_remaining = attempts_remaining


class SessionInvalid(AuthError):
    message = "You must be logged in to access this resource"


def create_error_response(error_message: str) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid input") if errors else "Invalid input"
    # pydantic prefixes messages raised from validators
    message = message.removeprefix("Value error, ")
    return JSONResponse(status_code=422, content=create_error_response(message))
