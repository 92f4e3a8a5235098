"""
Authenticated RPC engine for D-Link DSP Client
==============================================

Signs every call with the session's HNAP_AUTH header and cookie, and
re-logs in once when a call comes back empty or as "ERROR".

The socket gives no other signal that a session has expired, so a genuine
device-side error also costs one re-login and one extra round trip. The
retry is bounded to a single attempt.

"""

import logging
import threading
import time
from typing import Any, Callable, Optional

from dlink_dsp.models import CallResult, RpcCall

from .auth import AuthSession
from .soap import SoapTransport

logger = logging.getLogger("dlink-dsp")


def call_with_reauthentication(
    send: Callable[[RpcCall], CallResult],
    relogin: Callable[[], bool],
    make_call: Callable[[], RpcCall],
) -> CallResult:
    """
    Apply the retry-once-after-re-login policy to a raw call.

    Args:
        send: Performs one signed call
        relogin: Performs a full login
        make_call: Builds the call; invoked again for the retry so bodies
            derived from the private key use the refreshed key

    Returns:
        Result of the first call, or of the single retry
    """
    rpc_call = make_call()
    result = send(rpc_call)
    if not result.needs_reauthentication:
        return result

    logger.info(f"🔄 {rpc_call.method} returned {result.value or result.failure!r}, logging in again")
    relogin()
    return send(make_call())


class AuthenticatedRpcEngine:
    """Serialised {call, maybe re-login, retry} sequences against one socket."""

    def __init__(
        self,
        session: AuthSession,
        transport: SoapTransport,
        instrumentation: Optional[Any] = None,
    ):
        self.session = session
        self.transport = transport
        self.instrumentation = instrumentation
        self._lock = threading.RLock()

    def login(self) -> bool:
        """Run the full login handshake."""
        with self._lock:
            return self.session.login()

    def call(self, rpc_call: RpcCall) -> CallResult:
        """Invoke ``rpc_call`` with the reauthentication policy."""
        return self.call_factory(lambda: rpc_call)

    def call_factory(self, make_call: Callable[[], RpcCall]) -> CallResult:
        """Invoke the call built by ``make_call``; it is rebuilt for a retry."""
        with self._lock:
            return call_with_reauthentication(self._send, self._relogin, make_call)

    def _send(self, rpc_call: RpcCall) -> CallResult:
        return self.transport.post(rpc_call, self.session.auth_headers(rpc_call.method))

    def _relogin(self) -> bool:
        start_time = self.instrumentation.start_timer("reauthentication") if self.instrumentation else time.time()

        self.session.invalidate()
        success = self.session.login()

        if self.instrumentation:
            self.instrumentation.record_timing("reauthentication", start_time, success=success)
        return success


__all__ = ["AuthenticatedRpcEngine", "call_with_reauthentication"]
