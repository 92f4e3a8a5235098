"""
Data Models for D-Link DSP Client
=================================

This module contains all dataclasses and data models used by the
D-Link DSP Client.

"""

from dataclasses import dataclass, field
from typing import Optional

# Response value the device returns for a failed action
ERROR_SENTINEL = "ERROR"

# CallResult failure tags
FAILURE_TRANSPORT = "transport"
FAILURE_TIMEOUT = "timeout"
FAILURE_HTTP_STATUS = "http_status"
FAILURE_MALFORMED_RESPONSE = "malformed_response"
FAILURE_MISSING_ELEMENT = "missing_element"


@dataclass(frozen=True)
class Credentials:
    """
    Login credentials and endpoint of a single socket.

    Attributes:
        username: Login user name, "admin" on stock firmware
        password: Device PIN printed on the label
        host: Hostname or IP address of the socket
        port: TCP port of the web service
        use_https: Whether to talk HTTPS instead of plain HTTP
    """

    username: str
    password: str
    host: str
    port: int = 80
    use_https: bool = False

    @property
    def scheme(self) -> str:
        return "https" if self.use_https else "http"

    @property
    def uri(self) -> str:
        """HNAP endpoint, with the port only when it is not the scheme default."""
        default_port = 443 if self.use_https else 80
        port_part = "" if self.port == default_port else f":{self.port}"
        return f"{self.scheme}://{self.host}{port_part}/HNAP1"


@dataclass(frozen=True)
class RpcCall:
    """A single HNAP invocation: method, element to extract and body fragment."""

    method: str
    response_element: str
    body: str = ""


@dataclass(frozen=True)
class CallResult:
    """
    Outcome of one SOAP call.

    Either carries the extracted text ``value`` or a ``failure`` tag saying
    why no value is available. A present value may still be the device's
    ``"ERROR"`` sentinel.
    """

    value: Optional[str] = None
    failure: Optional[str] = None
    http_status: Optional[int] = None

    @classmethod
    def success(cls, value: str, http_status: Optional[int] = None) -> "CallResult":
        return cls(value=value, http_status=http_status)

    @classmethod
    def failed(cls, failure: str, http_status: Optional[int] = None) -> "CallResult":
        return cls(value=None, failure=failure, http_status=http_status)

    @property
    def ok(self) -> bool:
        return self.value is not None

    @property
    def needs_reauthentication(self) -> bool:
        """True for an absent, empty or "ERROR" value."""
        return not self.value or self.value == ERROR_SENTINEL


@dataclass(frozen=True)
class SessionKeys:
    """
    Keys issued and derived during the challenge phase of a login.

    Replaced as a whole on every login so that the challenge, public key,
    cookie and private key can never be observed out of step.
    """

    login_result: str
    challenge: str
    public_key: str
    cookie: str
    private_key: str


@dataclass
class SocketConfiguration:
    """
    Snapshot of the socket state as seen by the polling client.

    Numeric readings are None until the first successful refresh, or when
    the socket did not answer.
    """

    name: str
    host: str
    consumption: Optional[float] = None
    total_consumption: Optional[float] = None
    temperature: Optional[float] = None
    is_on: Optional[bool] = None
    is_read_only: bool = False
    last_refresh: Optional[float] = None

    @property
    def type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "name": self.name,
            "host": self.host,
            "consumption": self.consumption,
            "total_consumption": self.total_consumption,
            "temperature": self.temperature,
            "is_on": self.is_on,
            "is_read_only": self.is_read_only,
            "last_refresh": self.last_refresh,
        }


@dataclass
class TimingMetrics:
    """Detailed timing metrics for performance analysis."""

    operation: str
    start_time: float
    end_time: float
    duration: float
    success: bool
    error_type: Optional[str] = None
    retry_count: int = 0
    http_status: Optional[int] = None
    response_size: int = 0

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds."""
        return self.duration * 1000


@dataclass
class ErrorCapture:
    """Captures details about a failed HNAP request for analysis."""

    timestamp: float
    method: str
    http_status: int
    error_type: str
    raw_error: str
    partial_content: str = ""
    response_headers: dict[str, str] = field(default_factory=dict)


__all__ = [
    "ERROR_SENTINEL",
    "CallResult",
    "Credentials",
    "ErrorCapture",
    "RpcCall",
    "SessionKeys",
    "SocketConfiguration",
    "TimingMetrics",
]
