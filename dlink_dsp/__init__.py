"""
D-Link DSP Smart Socket Client
==============================

Python library for controlling D-Link DSP smart sockets (DSP-W215 and
relatives) over HNAP, the SOAP-over-HTTP protocol their firmware speaks.

Features:
    * Two-phase HMAC-MD5 login with per-request HNAP_AUTH signing
    * Transparent re-login and single retry when a session expires
    * Relay control, power and temperature readings, device settings
    * Polling wrapper with a background-refreshed snapshot
    * Request timing and error capture for monitoring

Quick Start:
    >>> from dlink_dsp import HNAPClient
    >>> with HNAPClient("192.168.0.60", password="123456") as client:
    ...     if client.login():
    ...         client.turn_on()
    ...         print(f"Power: {client.get_power_consumption()} W")

Error Handling:
    Device operations never raise for network or device faults; they return
    None (or False for switching). Invalid configuration raises:

    >>> from dlink_dsp import DlinkConfigurationError
    >>> try:
    ...     HNAPClient("192.168.0.60", password="123456", port=0)
    ... except DlinkConfigurationError as e:
    ...     print(f"Bad configuration: {e}")

This is an unofficial library not affiliated with D-Link.
"""

from .client.main import HNAPClient
from .device import DlinkDspClient
from .exceptions import (
    DlinkAuthenticationError,
    DlinkConfigurationError,
    DlinkConnectionError,
    DlinkDspError,
    DlinkHTTPError,
    DlinkParsingError,
    DlinkTimeoutError,
    DlinkUnsupportedAlgorithmError,
)
from .models import CallResult, Credentials, RpcCall, SocketConfiguration

# Version information
__version__ = "1.0.0"
__license__ = "MIT"

# Public API
__all__ = [
    "CallResult",
    "Credentials",
    "DlinkAuthenticationError",
    "DlinkConfigurationError",
    "DlinkConnectionError",
    "DlinkDspClient",
    "DlinkDspError",
    "DlinkHTTPError",
    "DlinkParsingError",
    "DlinkTimeoutError",
    "DlinkUnsupportedAlgorithmError",
    "HNAPClient",
    "RpcCall",
    "SocketConfiguration",
    "__license__",
    "__version__",
]
