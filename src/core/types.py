"""
Core types shared across the bridge.

The error category enum lives here so that exceptions, log formatters and
metrics all compare against the same enum class.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that may succeed if the operation is
                   repeated later (broker timeouts, object-store 5xx)
        PERMANENT: Failures that will not succeed on repeat
                   (malformed payloads, unreachable broker at startup)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"
