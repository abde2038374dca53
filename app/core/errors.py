"""
Error translation for Supabase failures and a small retry helper.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from fastapi import HTTPException, status
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase_auth.errors import AuthError

from app.config.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgREST / Postgres error code -> (HTTP status, message shown to the client)
POSTGREST_ERRORS = {
    "23505": (status.HTTP_409_CONFLICT, "This record already exists"),
    "23503": (status.HTTP_409_CONFLICT, "Cannot delete this record as it is referenced by other data"),
    "23502": (status.HTTP_400_BAD_REQUEST, "Required field is missing"),
    "42501": (status.HTTP_403_FORBIDDEN, "You do not have permission to perform this action"),
    "08006": (status.HTTP_503_SERVICE_UNAVAILABLE, "Database connection failed. Please try again later"),
    "08001": (status.HTTP_503_SERVICE_UNAVAILABLE, "Database connection failed. Please try again later"),
    "PGRST116": (status.HTTP_404_NOT_FOUND, "Record not found"),
    "PGRST301": (status.HTTP_401_UNAUTHORIZED, "Your session has expired. Please log in again"),
    "PGRST302": (status.HTTP_401_UNAUTHORIZED, "Invalid session. Please log in again"),
}

AUTH_ERROR_MESSAGES = {
    "invalid_credentials": "Invalid email or password",
    "email_not_confirmed": "Please check your email and click the confirmation link",
    "signup_disabled": "Sign up is currently disabled",
    "email_address_invalid": "Please enter a valid email address",
    "password_too_short": "Password must be at least 6 characters long",
    "weak_password": "Password is too weak. Please choose a stronger password",
    "user_not_found": "No account found with this email address",
    "too_many_requests": "Too many requests. Please wait a moment and try again",
    "email_exists": "This email is already in use",
    "user_already_exists": "This email is already in use",
}


class InvalidProfileChange(HTTPException):
    """Requested role/status combination or status transition is not allowed."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def supabase_http_error(error: APIError) -> HTTPException:
    """Translate a PostgREST APIError into the HTTPException returned to the client."""
    code = getattr(error, "code", None)
    if code in POSTGREST_ERRORS:
        status_code, message = POSTGREST_ERRORS[code]
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        message = getattr(error, "message", None) or "Database operation failed"
    logger.warning(f"Supabase error {code}: {getattr(error, 'message', error)}")
    return HTTPException(status_code=status_code, detail=message)


def describe_auth_error(error: Exception) -> str:
    code = getattr(error, "code", None)
    if code in AUTH_ERROR_MESSAGES:
        return AUTH_ERROR_MESSAGES[code]
    return "Authentication failed. Please try again"


def is_no_rows_error(error: Exception) -> bool:
    return isinstance(error, APIError) and error.code == "PGRST116"


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, (AuthError, ValidationError)):
        return False
    if isinstance(error, HTTPException) and error.status_code < 500:
        return False
    return True


def retry_operation(
    operation: Callable[[], T],
    max_retries: Optional[int] = None,
    delay: Optional[float] = None,
) -> T:
    """Run operation, retrying failures with a linear delay (delay * attempt).

    Auth, validation and client (4xx) errors are raised immediately.
    """
    max_retries = settings.retry_attempts if max_retries is None else max_retries
    delay = settings.retry_delay_seconds if delay is None else delay

    for attempt in range(1, max_retries + 1):
        try:
            return operation()
        except Exception as e:
            if not _is_retryable(e) or attempt >= max_retries:
                raise
            logger.info(f"Attempt {attempt}/{max_retries} failed ({e}); retrying")
            time.sleep(delay * attempt)
    raise RuntimeError("retry_operation called with max_retries < 1")
