"""
HNAP client components: SOAP transport, login session, RPC engine and the
device-level client built on them.
"""

from .auth import AuthSession
from .engine import AuthenticatedRpcEngine, call_with_reauthentication
from .main import HNAPClient
from .soap import SoapTransport

__all__ = [
    "AuthSession",
    "AuthenticatedRpcEngine",
    "HNAPClient",
    "SoapTransport",
    "call_with_reauthentication",
]
