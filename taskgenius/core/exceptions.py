"""
Domain exceptions for TaskGenius.

Services raise these; the application maps each one to an HTTP status in a
single exception handler (see ``taskgenius.main``).
"""
from typing import Any, Dict, Optional


class TaskGeniusError(Exception):
    """Base exception for all TaskGenius domain errors."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(TaskGeniusError):
    """Blank or malformed input."""

    status_code = 400
    error_code = "validation_error"


class NotFoundError(TaskGeniusError):
    """An id that does not resolve to a record."""

    status_code = 404
    error_code = "not_found"


class TaskNotFoundError(NotFoundError):
    """Raised for missing tasks and for tasks the caller does not own alike."""

    def __init__(self, task_id: Optional[int] = None) -> None:
        super().__init__(
            "Task not found or access denied",
            context={"task_id": task_id} if task_id is not None else None,
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class ConflictError(TaskGeniusError):
    """Duplicate email."""

    status_code = 409
    error_code = "conflict"


class QuotaExceededError(TaskGeniusError):
    """Owner already holds the maximum number of tasks."""

    status_code = 403
    error_code = "quota_exceeded"

    def __init__(self, quota: int) -> None:
        super().__init__(
            f"User cannot have more than {quota} tasks.",
            context={"quota": quota},
        )
        self.quota = quota


class AuthenticationError(TaskGeniusError):
    """Bad login credentials or an invalid bearer token."""

    status_code = 401
    error_code = "authentication_failed"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class GeniusServiceError(TaskGeniusError):
    """The AI endpoint was unreachable, rejected the call or answered garbage."""

    status_code = 502
    error_code = "upstream_error"

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        status: Optional[int] = None,
    ) -> None:
        context: Dict[str, Any] = {}
        if status is not None:
            context["upstream_status"] = status
        if original_error is not None:
            context["original_error"] = str(original_error)
            context["original_error_type"] = type(original_error).__name__
        super().__init__(message, context=context)
        self.original_error = original_error
        self.status = status


class GeniusAuthError(GeniusServiceError):
    def __init__(self, status: int = 401) -> None:
        super().__init__("Invalid API key", status=status)


class GeniusBadRequestError(GeniusServiceError):
    def __init__(self, status: int = 400) -> None:
        super().__init__("Invalid request to Gemini API. Check the request structure.", status=status)


class GeniusRateLimitError(GeniusServiceError):
    def __init__(self, status: int = 429) -> None:
        super().__init__("API rate limit exceeded", status=status)


class GeniusTimeoutError(GeniusServiceError):
    status_code = 504
    error_code = "upstream_timeout"

    def __init__(self, timeout: float, original_error: Optional[Exception] = None) -> None:
        super().__init__(
            f"Gemini API request timed out after {timeout:g}s",
            original_error=original_error,
        )
        self.timeout = timeout
