"""
Exception hierarchy for the forum bridge.

Every error raised by the bridge carries a category so callers and log
formatters can tell a transient broker hiccup from a payload that will
never be accepted.
"""

from core.types import ErrorCategory


class BridgeError(Exception):
    """
    Base exception for all bridge errors.

    Attributes:
        message: Human-readable error description
        category: Error classification
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (ErrorCategory.TRANSIENT, ErrorCategory.UNKNOWN)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class TransientError(BridgeError):
    """Base class for errors that may clear up on their own."""

    category = ErrorCategory.TRANSIENT


class PermanentError(BridgeError):
    """Base class for errors that will not clear up on their own."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Domain-Specific Errors
# =============================================================================


class InitializationError(PermanentError):
    """Broker could not be reached while the bridge was starting."""

    pass


class PublishError(TransientError):
    """Sending a message to the broker failed or timed out."""

    def __init__(
        self,
        message: str,
        topic: str,
        key: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause, {"topic": topic, "key": key})
        self.topic = topic
        self.key = key


class UploadError(TransientError):
    """Object-store operation failed, or the local file could not be read."""

    def __init__(
        self,
        message: str,
        storage_key: str | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        merged = dict(context or {})
        if storage_key is not None:
            merged["storage_key"] = storage_key
        super().__init__(message, cause, merged)
        self.storage_key = storage_key


class EventValidationError(PermanentError):
    """Hook payload is missing required fields or has the wrong shape."""

    def __init__(
        self,
        message: str,
        event_kind: str,
        errors: list | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause, {"event_kind": event_kind})
        self.event_kind = event_kind
        self.errors = errors or []


def wrap_exception(
    exc: Exception,
    default_class: type[BridgeError] = TransientError,
    context: dict | None = None,
) -> BridgeError:
    """
    Wrap a generic exception in a BridgeError.

    Bridge errors pass through unchanged; anything else is wrapped in
    ``default_class`` with the original kept as ``cause``.
    """
    if isinstance(exc, BridgeError):
        return exc
    return default_class(str(exc), cause=exc, context=context)


__all__ = [
    "ErrorCategory",
    "BridgeError",
    "TransientError",
    "PermanentError",
    "InitializationError",
    "PublishError",
    "UploadError",
    "EventValidationError",
    "wrap_exception",
]
