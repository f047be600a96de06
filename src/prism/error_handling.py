"""Error taxonomy and user-facing message resolution for Prism."""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

DEFAULT_MESSAGE = "Request failed"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for better handling."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    SESSION = "session"
    STATE = "state"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class PrismError(Exception):
    """Base exception class for Prism with enhanced context."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.original_error = original_error

        # Auto-classify error if not provided
        if category == ErrorCategory.UNKNOWN and original_error:
            self.category = self._classify_error(original_error)

    def _classify_error(self, error: Exception) -> ErrorCategory:
        """Classify an underlying error based on type and message."""
        error_str = str(error).lower()
        error_type = type(error).__name__.lower()

        if "timeout" in error_str or "timeout" in error_type:
            return ErrorCategory.TIMEOUT
        elif "connect" in error_str or "network" in error_str:
            return ErrorCategory.NETWORK
        return ErrorCategory.UNKNOWN

    def as_payload(self) -> dict[str, Any]:
        """Expose the error in the shape the resolver walks."""
        return {"message": self.message}

    def get_user_message(self) -> str:
        """Get user-friendly error message."""
        return ErrorResolver().resolve(self)


class TransportError(PrismError):
    """Network-level failure: connection refused, DNS, timeout."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.MEDIUM,
            original_error=original_error,
        )
        if original_error is not None:
            self.category = self._classify_error(original_error)
            if self.category == ErrorCategory.UNKNOWN:
                self.category = ErrorCategory.NETWORK


class ServerError(PrismError):
    """Non-2xx response from the backend, usually with a structured body."""

    def __init__(
        self,
        status_code: int,
        payload: Any = None,
        message: str | None = None,
    ):
        super().__init__(
            message or f"Request failed with status code {status_code}",
            category=ErrorCategory.SERVER,
            severity=ErrorSeverity.HIGH if status_code >= 500 else ErrorSeverity.MEDIUM,
        )
        self.status_code = status_code
        self.payload = payload
        self._explicit_message = message

    def as_payload(self) -> dict[str, Any]:
        # The status-code text is not a transport message; an empty body
        # falls through to the caller's default instead
        view: dict[str, Any] = {
            "response": {"status": self.status_code, "data": self.payload},
        }
        if self._explicit_message:
            view["message"] = self._explicit_message
        return view


class SessionError(PrismError):
    """Authentication failure on a non-auth endpoint.

    The session has already been cleared when this is raised. It is never
    rendered inline by a component and always propagates to the caller.
    """

    def __init__(self, status_code: int, message: str | None = None):
        super().__init__(
            message or "Your session has expired. Please sign in again.",
            category=ErrorCategory.SESSION,
            severity=ErrorSeverity.HIGH,
        )
        self.status_code = status_code


class OperationInProgressError(PrismError):
    """An operation was requested in a state that does not allow it."""

    def __init__(self, message: str):
        super().__init__(
            message, category=ErrorCategory.STATE, severity=ErrorSeverity.LOW
        )


class DatasetLookupError(PrismError, LookupError):
    """Dataset detail could not be loaded."""

    def __init__(self, dataset_id: Any, message: str, original_error: Exception):
        super().__init__(
            message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.MEDIUM,
            original_error=original_error,
        )
        self.dataset_id = dataset_id


def _get_path(source: Any, *keys: str) -> Any:
    current = source
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _non_empty(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


class ErrorResolver:
    """Extracts one human-readable message from a failure.

    Candidates are tried in order, and the first non-empty string wins:

    1. ``response.data.message``
    2. ``response.data.data.userMessage``
    3. ``response.data.data.message``
    4. ``response.data.error``
    5. ``message`` (transport level, e.g. "Network Error")
    6. the default for the calling context

    A failure may be a mapping in that shape, a PrismError (which provides
    the same view through ``as_payload``), or any other exception, in which
    case only its string form is considered.
    """

    CANDIDATE_PATHS: tuple[tuple[str, ...], ...] = (
        ("response", "data", "message"),
        ("response", "data", "data", "userMessage"),
        ("response", "data", "data", "message"),
        ("response", "data", "error"),
        ("message",),
    )

    def __init__(self, default_message: str = DEFAULT_MESSAGE):
        self.default_message = default_message
        self.logger = logging.getLogger(__name__)

    def resolve(self, failure: Any, default: str | None = None) -> str:
        """Return the first non-empty candidate message for ``failure``."""
        payload = self._to_payload(failure)
        for path in self.CANDIDATE_PATHS:
            candidate = _non_empty(_get_path(payload, *path))
            if candidate is not None:
                return candidate
        return default or self.default_message

    def report(self, failure: Any, default: str | None = None) -> str:
        """Resolve the message and log it at the failure's severity."""
        message = self.resolve(failure, default)
        severity = getattr(failure, "severity", ErrorSeverity.MEDIUM)
        category = getattr(failure, "category", ErrorCategory.UNKNOWN)
        log_message = f"[{category.value}] {message}"

        if severity == ErrorSeverity.CRITICAL:
            self.logger.critical(log_message)
        elif severity == ErrorSeverity.HIGH:
            self.logger.error(log_message)
        elif severity == ErrorSeverity.MEDIUM:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)
        return message

    @staticmethod
    def _to_payload(failure: Any) -> Any:
        if isinstance(failure, PrismError):
            return failure.as_payload()
        if isinstance(failure, Mapping):
            return failure
        if isinstance(failure, BaseException):
            return {"message": str(failure)}
        if isinstance(failure, str):
            return {"message": failure}
        return None


def resolve_error_message(failure: Any, default: str = DEFAULT_MESSAGE) -> str:
    """Shortcut for ``ErrorResolver(default).resolve(failure)``."""
    return ErrorResolver(default).resolve(failure)
