"""
Exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- BridgeError hierarchy for typed exceptions
"""

from core.errors.exceptions import (
    BridgeError,
    ErrorCategory,
    EventValidationError,
    InitializationError,
    PermanentError,
    PublishError,
    TransientError,
    UploadError,
    wrap_exception,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "BridgeError",
    "TransientError",
    "PermanentError",
    # Domain errors
    "InitializationError",
    "PublishError",
    "UploadError",
    "EventValidationError",
    # Utilities
    "wrap_exception",
]
