"""
Exception hierarchy for the blacklist sync engine.

Every error raised by the engine derives from BlacklistSyncException and
carries a machine-readable error code, an optional context describing the
failing operation, and a message suitable for display in the sync status.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class ErrorContext:
    """Where an error happened."""
    operation: str = ""
    cloud_id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "cloud_id": self.cloud_id,
            "timestamp": self.timestamp.isoformat(),
            **self.extra,
        }


def create_error_context(operation: str = "", cloud_id: Optional[str] = None, **extra: Any) -> ErrorContext:
    """Build an ErrorContext, collecting unknown keywords into ``extra``."""
    return ErrorContext(operation=operation, cloud_id=cloud_id, extra=extra)


class BlacklistSyncException(Exception):
    """Base exception for the blacklist sync engine."""

    def __init__(
        self,
        message: str,
        error_code: str = "BLACKLIST_SYNC_ERROR",
        context: Optional[ErrorContext] = None,
        user_message: Optional[str] = None,
        retryable: bool = False,
        cause: Optional[BaseException] = None,
    ):
        """Initialize exception.

        Args:
            message: Technical description for logs
            error_code: Stable identifier for the failure kind
            context: Operation context
            user_message: Message shown in the sync status
            retryable: Whether retrying the same call may succeed
            cause: Underlying exception, if any
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.user_message = user_message or message
        self.retryable = retryable
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
        }

    def to_log_string(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context.operation:
            parts.append(f"operation={self.context.operation}")
        if self.context.cloud_id:
            parts.append(f"cloud={self.context.cloud_id}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " ".join(parts)


class AuthorizationError(BlacklistSyncException):
    """The user declined the OAuth grant or the flow yielded no code."""

    def __init__(self, reason: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"Authorization failed: {reason}",
            error_code="AUTHORIZATION_FAILED",
            context=context,
            user_message="Authorization was not granted.",
        )
        self.reason = reason


class HTTPError(BlacklistSyncException):
    """A cloud provider answered with a non-2xx status."""

    def __init__(self, status: int, status_text: str = "", context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"{status} {status_text}".strip(),
            error_code="HTTP_ERROR",
            context=context,
            retryable=status >= 500 or status == 429,
        )
        self.status = status
        self.status_text = status_text


class BadResponseError(BlacklistSyncException):
    """A cloud provider answered 2xx with a body that fails validation."""

    def __init__(self, details: str = "", context: Optional[ErrorContext] = None):
        message = f"Bad response: {details}" if details else "Bad response"
        super().__init__(
            message=message,
            error_code="BAD_RESPONSE",
            context=context,
            user_message="Bad response",
        )
        self.details = details


class UnauthorizedError(BlacklistSyncException):
    """No valid token is available; the user has to reconnect."""

    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            message="No valid access token is available",
            error_code="UNAUTHORIZED",
            context=context,
            user_message="Unauthorized. Please turn sync off and on again.",
        )


class AlreadyConnectedError(BlacklistSyncException):
    """connect() was called while a cloud is already connected."""

    def __init__(self, cloud_id: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"Already connected to {cloud_id}",
            error_code="ALREADY_CONNECTED",
            context=context,
            user_message="Already connected",
        )
        self.cloud_id = cloud_id


class NotConnectedError(BlacklistSyncException):
    """disconnect() was called without an active connection."""

    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            message="Not connected to any cloud",
            error_code="NOT_CONNECTED",
            context=context,
            user_message="Not connected",
        )


class UnsupportedCloudError(BlacklistSyncException):
    """The requested cloud id has no registered provider."""

    def __init__(self, cloud_id: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"Unsupported cloud: {cloud_id}",
            error_code="UNSUPPORTED_CLOUD",
            context=context,
        )
        self.cloud_id = cloud_id


class ConfigurationError(BlacklistSyncException):
    """Invalid or incomplete configuration."""

    def __init__(self, message: str, context: Optional[ErrorContext] = None, user_message: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            context=context,
            user_message=user_message,
        )


def handle_unexpected_error(error: BaseException) -> BlacklistSyncException:
    """Wrap any exception into a BlacklistSyncException."""
    if isinstance(error, BlacklistSyncException):
        return error
    return BlacklistSyncException(
        message=f"Unexpected error: {error}",
        error_code="UNEXPECTED_ERROR",
        user_message=str(error) or "Unknown error",
        cause=error,
    )
