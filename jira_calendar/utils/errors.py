"""Error taxonomy shared by the transport, fetch and resolver layers.

Every surfaced failure carries a human-readable message and a stable
machine-readable ``ErrorCode`` so the presentation layer can tell transient
problems from configuration-level ones.
"""

import functools
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

TOO_MANY_REQUESTS = 429


class ErrorCode(str, Enum):
    """Stable error codes returned to the frontend"""

    NETWORK_ERROR = "NETWORK_ERROR"
    FETCH_VISITS_ERROR = "FETCH_VISITS_ERROR"
    FETCH_PROJECTS_ERROR = "FETCH_PROJECTS_ERROR"
    FETCH_FIELDS_ERROR = "FETCH_FIELDS_ERROR"
    LOAD_SETTINGS_ERROR = "LOAD_SETTINGS_ERROR"
    SAVE_SETTINGS_ERROR = "SAVE_SETTINGS_ERROR"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class CalendarError(Exception):
    """Base error for the calendar backend"""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.NETWORK_ERROR):
        super().__init__(message)
        self.message = message
        self.code = code

    @property
    def retryable(self) -> bool:
        return False


class JiraAPIError(CalendarError):
    """Non-success HTTP status returned by the Jira REST API"""

    def __init__(self, status: int, message: str = ""):
        code = (
            ErrorCode.RATE_LIMIT_ERROR
            if status == TOO_MANY_REQUESTS
            else ErrorCode.NETWORK_ERROR
        )
        super().__init__(message or f"Jira API request failed: HTTP {status}", code)
        self.status = status

    @property
    def retryable(self) -> bool:
        return self.status == TOO_MANY_REQUESTS or self.status >= 500


class InvalidDateRangeError(CalendarError):
    """Start/end date pair that cannot be used for a search"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INVALID_DATE_RANGE)


def to_error_payload(
    exception: BaseException, default_code: ErrorCode
) -> dict[str, Any]:
    """Render an exception as the resolver error envelope"""
    if isinstance(exception, CalendarError):
        code = exception.code
        # transport failures are reported under the operation's own code,
        # except rate limiting which the UI handles separately
        if code == ErrorCode.NETWORK_ERROR and default_code != code:
            code = default_code
        payload: dict[str, Any] = {
            "success": False,
            "error": exception.message,
            "errorCode": code.value,
            "retryable": exception.retryable,
        }
        if isinstance(exception, JiraAPIError):
            payload["status"] = exception.status
        return payload
    return {
        "success": False,
        "error": str(exception) or exception.__class__.__name__,
        "errorCode": default_code.value,
    }


def error_envelope(operation_name: str, code: ErrorCode):
    """
    Decorator turning exceptions raised by an async resolver into an error
    envelope instead of propagating them.

    Args:
        operation_name: operation name used in the log line
        code: error code reported when the exception carries none of its own
    """

    def decorator(
        func: Callable[..., Awaitable[dict[str, Any]]],
    ) -> Callable[..., Awaitable[dict[str, Any]]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> dict[str, Any]:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Failed to {operation_name}", error=str(e))
                return to_error_payload(e, code)

        return wrapper

    return decorator
