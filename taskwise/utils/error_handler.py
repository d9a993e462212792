"""
Error handling utilities
"""

from typing import Optional
from taskwise.config.constants import (
    MSG_ANOTHER_TIMER_ACTIVE,
    MSG_AUTH_GENERIC,
    MSG_GENERIC_ERROR,
    MSG_PERMISSION_DENIED,
    MSG_SUGGESTION_FAILED,
    MSG_WRONG_PASSWORD,
)
from taskwise.models.response import ErrorResponse, Notification
from taskwise.utils.logger import logger


class TaskWiseError(Exception):
    """Base exception for application errors"""
    error_code = "error"

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(self.message)


class ValidationError(TaskWiseError):
    """Bad form input; names the offending field"""
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class NotFoundError(TaskWiseError):
    """Task or time entry does not exist"""
    error_code = "not_found"


class PermissionDeniedError(TaskWiseError):
    """The store refused the operation for the acting user"""
    error_code = "permission_denied"


class TimerConflictError(TaskWiseError):
    """Another task's timer is running"""
    error_code = "timer_conflict"

    def __init__(self, message: str = MSG_ANOTHER_TIMER_ACTIVE, running_task_id: Optional[str] = None):
        self.running_task_id = running_task_id
        super().__init__(message)


class SuggestionError(TaskWiseError):
    """Priority suggestion service failed"""
    error_code = "suggestion_failed"

    def __init__(self, message: str = MSG_SUGGESTION_FAILED):
        super().__init__(message)


class AuthError(TaskWiseError):
    """Authentication failure"""
    error_code = "auth_error"


class WrongPasswordError(AuthError):
    """Password did not match"""
    error_code = "wrong_password"

    def __init__(self, message: str = MSG_WRONG_PASSWORD):
        super().__init__(message)


class EmailAlreadyInUseError(AuthError):
    """Sign-up with an email that already has an account"""
    error_code = "email_already_in_use"

    def __init__(self, message: str = "An account with this email already exists. Please log in."):
        super().__init__(message)


def handle_error(error: Exception) -> ErrorResponse:
    """
    Handle error and return user-friendly message

    Args:
        error: Exception to handle

    Returns:
        ErrorResponse with user-friendly message
    """
    if isinstance(error, ValidationError):
        logger.info(f"Validation error on field '{error.field}': {error.message}")
        return ErrorResponse(
            message=error.message,
            error_code=error.error_code,
            field=error.field,
        )

    if isinstance(error, (NotFoundError, TimerConflictError, SuggestionError)):
        logger.warning(f"{type(error).__name__}: {error.message}")
        return ErrorResponse(message=error.message, error_code=error.error_code)

    if isinstance(error, PermissionDeniedError):
        logger.warning(f"Permission denied: {error.message}")
        return ErrorResponse(message=MSG_PERMISSION_DENIED, error_code=error.error_code)

    if isinstance(error, (WrongPasswordError, EmailAlreadyInUseError)):
        logger.info(f"Authentication rejected: {error.error_code}")
        return ErrorResponse(message=error.message, error_code=error.error_code)

    if isinstance(error, AuthError):
        logger.warning(f"Authentication error: {error.message}")
        return ErrorResponse(message=error.message or MSG_AUTH_GENERIC, error_code=error.error_code)

    logger.error(f"Error occurred: {error}", exc_info=True)

    # Generic error message
    return ErrorResponse(message=MSG_GENERIC_ERROR, error_code="internal_error")


def format_error_message(error: Exception) -> str:
    """
    Format error message for user

    Args:
        error: Exception to format

    Returns:
        User-friendly error message
    """
    error_response = handle_error(error)
    return error_response.message


def error_notification(error: Exception, title: str) -> Notification:
    """
    Build a destructive notification for a failed action

    Args:
        error: Exception raised by the action
        title: Notification title (e.g. "AI Suggestion Failed")

    Returns:
        Notification
    """
    return Notification(
        title=title,
        description=format_error_message(error),
        variant="destructive",
    )
