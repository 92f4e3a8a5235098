"""
Custom exceptions for the D-Link DSP Client.

All exceptions inherit from DlinkDspError so callers can catch every
library-specific error in one place.

Most of these never reach callers of the public API: transport and parsing
faults are converted to an absent result at the RPC boundary, and
authentication faults surface as ``login()`` returning False. Only
configuration and unsupported-algorithm errors propagate.

Example usage:
    try:
        client = HNAPClient(host="", password="123456")
    except DlinkConfigurationError as e:
        print(f"Bad configuration: {e}")

"""

import socket
from typing import Any, Optional


class DlinkDspError(Exception):
    """
    Base exception for all D-Link DSP Client errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context

    Examples:
        >>> try:
        ...     hash_with("challenge", "key", algorithm="HmacSHA1")
        ... except DlinkDspError as e:
        ...     print(f"D-Link error: {e}")
        ...     if e.details:
        ...         print(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize DlinkDspError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class DlinkAuthenticationError(DlinkDspError):
    """
    Raised when the HNAP login handshake does not complete.

    This exception is raised when:
    - The challenge request fails or misses Challenge/PublicKey/Cookie/LoginResult
    - The login request returns anything other than "success"

    Attributes:
        message: Human-readable error message
        details: May include 'phase' (challenge/login), 'missing', 'result'
    """


class DlinkConnectionError(DlinkDspError):
    """
    Raised when the connection to the socket fails.

    Attributes:
        message: Human-readable error message
        details: May include 'host', 'port', 'error_type', 'original_error'
    """


class DlinkTimeoutError(DlinkConnectionError):
    """
    Raised when a request to the socket times out.

    Attributes:
        message: Human-readable error message
        details: May include 'operation', 'timeout'
    """


class DlinkHTTPError(DlinkDspError):
    """
    Raised when the socket answers with a non-success HTTP status.

    Attributes:
        message: Human-readable error message
        details: May include 'status_code', 'operation', 'response_text'
        status_code: HTTP status code if available
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize DlinkHTTPError.

        Args:
            message: Human-readable error message
            status_code: HTTP status code if available
            details: Optional dictionary with additional error context
        """
        super().__init__(message, details)
        self.status_code = status_code
        if status_code and self.details is not None:
            self.details["status_code"] = status_code


class DlinkParsingError(DlinkDspError):
    """
    Raised when a SOAP response cannot be parsed.

    This exception is raised when:
    - The response is not well-formed XML
    - The SOAP Envelope or Body is missing
    - The expected response element is missing

    Attributes:
        message: Human-readable error message
        details: May include 'element', 'parse_error', 'response'
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        missing_element: bool = False,
    ) -> None:
        super().__init__(message, details)
        self.missing_element = missing_element


class DlinkConfigurationError(DlinkDspError):
    """
    Raised when client configuration is invalid.

    Attributes:
        message: Human-readable error message
        details: May include 'parameter', 'value', 'valid_range'
    """


class DlinkUnsupportedAlgorithmError(DlinkDspError):
    """
    Raised when a keyed hash is requested with an algorithm other than HmacMD5.

    This is a programming error and is never converted to an absent result.
    """


def wrap_connection_error(original_error: Exception, host: str, port: int) -> DlinkConnectionError:
    """
    Wrap a standard connection exception in DlinkConnectionError.

    Args:
        original_error: The original exception
        host: Host that failed to connect
        port: Port that failed to connect

    Returns:
        DlinkConnectionError with context
    """
    message = f"Failed to connect to {host}:{port}"

    if isinstance(original_error, socket.timeout):
        return DlinkTimeoutError(
            f"Connection to {host}:{port} timed out",
            details={
                "host": host,
                "port": port,
                "timeout_type": "connection",
                "original_error": str(original_error),
            },
        )

    if isinstance(original_error, ConnectionRefusedError):
        message = f"Connection refused by {host}:{port} - socket may be offline or unplugged"

    return DlinkConnectionError(
        message,
        details={
            "host": host,
            "port": port,
            "error_type": type(original_error).__name__,
            "original_error": str(original_error),
        },
    )


__all__ = [
    "DlinkAuthenticationError",
    "DlinkConfigurationError",
    "DlinkConnectionError",
    "DlinkDspError",
    "DlinkHTTPError",
    "DlinkParsingError",
    "DlinkTimeoutError",
    "DlinkUnsupportedAlgorithmError",
    "wrap_connection_error",
]
