"""Exception handling module."""

from kpfeed.core.exceptions.base import (
    ConfigurationError,
    CursorStoreError,
    EncodingError,
    FormatError,
    KpFeedError,
    NetworkError,
)

__all__ = [
    "KpFeedError",
    "NetworkError",
    "FormatError",
    "EncodingError",
    "CursorStoreError",
    "ConfigurationError",
]
