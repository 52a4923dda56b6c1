"""Custom exception classes for the verification module."""

from typing import Optional


class RelayProbeError(Exception):
    """Base exception class for all relay-probe errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationError(RelayProbeError):
    """Raised when there are configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.config_file = config_file
        self.field = field


class ProbeError(RelayProbeError):
    """Raised inside a prober when a probe request cannot succeed."""

    def __init__(self, protocol: str, message: str, cause: Optional[Exception] = None):
        super().__init__(message, cause)
        self.protocol = protocol


class HTTPStatusError(RelayProbeError):
    """Raised when an endpoint answers with a non-success status.

    The message is ``HTTP {status}: {body}`` with the body cut to
    ``BODY_SNIPPET_LENGTH`` characters.
    """

    BODY_SNIPPET_LENGTH = 100

    def __init__(self, status: int, body: str):
        super().__init__(f"HTTP {status}: {body[:self.BODY_SNIPPET_LENGTH]}")
        self.status = status
        self.body = body


class NetworkError(RelayProbeError):
    """Raised when network-related errors occur."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(f"Network error: {message}", cause)


class TimeoutError(RelayProbeError):
    """Raised when requests timeout."""

    def __init__(
        self, message: str = "Request timed out", timeout_seconds: Optional[float] = None
    ):
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class UnknownTargetError(RelayProbeError):
    """Raised when a target id is not present in the registry."""

    def __init__(self, target_id: str):
        super().__init__(f"Unknown target '{target_id}'")
        self.target_id = target_id
