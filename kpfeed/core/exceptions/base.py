"""kpfeed core exception classes."""

from typing import Any


class KpFeedError(Exception):
    """Base class for every error raised by kpfeed."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        """Initialise the error.

        Args:
            message: Human readable message
            error_code: Stable machine readable code
            details: Extra context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class NetworkError(KpFeedError):
    """Fetching the source file failed."""

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details["url"] = url
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, "NETWORK_ERROR", super_details)
        self.url = url
        self.status_code = status_code


class FormatError(KpFeedError):
    """Source content does not match the expected column schema."""

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        line: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if line_number is not None:
            super_details["line_number"] = line_number
        if line is not None:
            super_details["line"] = line
        super().__init__(message, "FORMAT_ERROR", super_details)
        self.line_number = line_number
        self.line = line


class EncodingError(KpFeedError):
    """A value cannot be represented in line protocol."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if field:
            super_details["field"] = field
        super().__init__(message, "ENCODING_ERROR", super_details)
        self.field = field


class CursorStoreError(KpFeedError):
    """Loading or saving the cursor failed."""

    def __init__(
        self,
        message: str,
        location: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if location:
            super_details["location"] = location
        super().__init__(message, "CURSOR_ERROR", super_details)
        self.location = location


class ConfigurationError(KpFeedError):
    """Invalid configuration value."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if config_key:
            super_details["config_key"] = config_key
        super().__init__(message, "CONFIG_ERROR", super_details)
        self.config_key = config_key
