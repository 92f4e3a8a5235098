"""
Authentication module for D-Link DSP Client
===========================================

This module handles the HNAP login handshake with the socket and the
per-request HNAP_AUTH header.

Login is a two-phase exchange:

1. An unauthenticated ``Login`` request with ``Action=request`` returns a
   Challenge, a PublicKey and a Cookie. The session private key is
   ``HMAC_MD5(key=PublicKey + password, msg=Challenge)``.
2. An authenticated ``Login`` request with ``Action=login`` carries
   ``LoginPassword = HMAC_MD5(key=private_key, msg=Challenge)``. The socket
   answers ``success`` when it accepts the password.

"""

import logging
import math
import time
from typing import Any, Optional

from dlink_dsp.crypto import derive_login_password, derive_private_key, hash_with
from dlink_dsp.exceptions import DlinkAuthenticationError
from dlink_dsp.models import Credentials, RpcCall, SessionKeys

from .parameters import escape
from .soap import SoapTransport, soap_action

logger = logging.getLogger("dlink-dsp")

LOGIN_METHOD = "Login"
LOGIN_RESULT_ELEMENT = "LoginResult"
LOGIN_SUCCESS = "success"
CHALLENGE_ELEMENTS = ("LoginResult", "Challenge", "PublicKey", "Cookie")

STATE_UNAUTHENTICATED = "unauthenticated"
STATE_CHALLENGED = "challenged"
STATE_AUTHENTICATED = "authenticated"


def _is_header_safe(value: str) -> bool:
    """True if ``value`` can go into an HTTP header: Latin-1 with no line breaks."""
    if "\r" in value or "\n" in value:
        return False
    try:
        value.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


class AuthSession:
    """
    Authentication state of one socket connection.

    Not safe for concurrent use on its own; AuthenticatedRpcEngine serialises
    access to it.
    """

    def __init__(
        self,
        credentials: Credentials,
        transport: SoapTransport,
        instrumentation: Optional[Any] = None,
    ):
        """
        Initialize an empty, unauthenticated session.

        Args:
            credentials: User name, password and endpoint
            transport: SOAP transport of the same connection
            instrumentation: Optional performance instrumentation
        """
        self.credentials = credentials
        self.transport = transport
        self.instrumentation = instrumentation
        self.state = STATE_UNAUTHENTICATED
        self.last_login_succeeded = False
        self._keys: Optional[SessionKeys] = None
        self._last_timestamp = 0

    @property
    def keys(self) -> Optional[SessionKeys]:
        return self._keys

    @property
    def challenge(self) -> Optional[str]:
        return self._keys.challenge if self._keys else None

    @property
    def public_key(self) -> Optional[str]:
        return self._keys.public_key if self._keys else None

    @property
    def cookie(self) -> Optional[str]:
        return self._keys.cookie if self._keys else None

    @property
    def private_key(self) -> Optional[str]:
        return self._keys.private_key if self._keys else None

    @property
    def authenticated(self) -> bool:
        return self.state == STATE_AUTHENTICATED

    def invalidate(self) -> None:
        """Mark the session as no longer authenticated; keys are kept for the next login to replace."""
        self.state = STATE_UNAUTHENTICATED

    def build_challenge_request(self) -> RpcCall:
        """Build the phase-1 challenge request."""
        return RpcCall(
            LOGIN_METHOD,
            LOGIN_RESULT_ELEMENT,
            "<Action>request</Action>"
            f"<Username>{escape(self.credentials.username)}</Username>"
            "<LoginPassword></LoginPassword>"
            "<Captcha></Captcha>",
        )

    def build_login_request(self, login_password: str) -> RpcCall:
        """Build the phase-2 login request with the computed password."""
        return RpcCall(
            LOGIN_METHOD,
            LOGIN_RESULT_ELEMENT,
            "<Action>login</Action>"
            f"<Username>{escape(self.credentials.username)}</Username>"
            f"<LoginPassword>{login_password}</LoginPassword>"
            "<Captcha></Captcha>",
        )

    def login(self) -> bool:
        """
        Run both login phases.

        Safe to call repeatedly; every call replaces the previous keys once a
        complete challenge has been received.

        Returns:
            True if the socket accepted the login, False otherwise
        """
        logger.info(f"🔐 Logging in to {self.credentials.host} as {self.credentials.username}")
        start_time = self.instrumentation.start_timer("login_complete") if self.instrumentation else time.time()
        self.state = STATE_UNAUTHENTICATED

        try:
            keys = self.request_challenge()
            self.authenticate(keys)
        except DlinkAuthenticationError as e:
            logger.error(f"❌ Login failed: {e}")
            self.state = STATE_UNAUTHENTICATED
            self.last_login_succeeded = False
            if self.instrumentation:
                self.instrumentation.record_timing(
                    "login_complete", start_time, success=False, error_type=e.details.get("phase")
                )
            return False

        self.last_login_succeeded = True
        if self.instrumentation:
            self.instrumentation.record_timing("login_complete", start_time, success=True)
        logger.info("✅ Login successful")
        return True

    def request_challenge(self) -> SessionKeys:
        """
        Phase 1: fetch the challenge and derive the session keys.

        The new keys are installed in one step, and only when the response
        carries all of LoginResult, Challenge, PublicKey and Cookie.

        Raises:
            DlinkAuthenticationError: If the request fails or a value is missing
        """
        start_time = self.instrumentation.start_timer("login_challenge") if self.instrumentation else time.time()

        values = self.transport.post_for_values(self.build_challenge_request(), CHALLENGE_ELEMENTS)
        if values is None:
            if self.instrumentation:
                self.instrumentation.record_timing("login_challenge", start_time, success=False)
            raise DlinkAuthenticationError(
                "Failed to get authentication challenge",
                details={"phase": "challenge", "required": list(CHALLENGE_ELEMENTS)},
            )

        if not _is_header_safe(values["Cookie"]):
            if self.instrumentation:
                self.instrumentation.record_timing("login_challenge", start_time, success=False)
            raise DlinkAuthenticationError(
                "Challenge carries a cookie that cannot be sent back",
                details={"phase": "challenge", "cookie": values["Cookie"]},
            )

        keys = SessionKeys(
            login_result=values["LoginResult"],
            challenge=values["Challenge"],
            public_key=values["PublicKey"],
            cookie=values["Cookie"],
            private_key=derive_private_key(values["Challenge"], values["PublicKey"], self.credentials.password),
        )
        self._keys = keys
        self.state = STATE_CHALLENGED

        if self.instrumentation:
            self.instrumentation.record_timing("login_challenge", start_time, success=True)
        logger.debug(f"🔑 Challenge received (LoginResult={keys.login_result})")
        return keys

    def authenticate(self, keys: SessionKeys) -> None:
        """
        Phase 2: send the login password signed with the new private key.

        Raises:
            DlinkAuthenticationError: Unless the socket answers exactly "success"
        """
        start_time = self.instrumentation.start_timer("login_authenticate") if self.instrumentation else time.time()

        login_password = derive_login_password(keys.challenge, keys.private_key)
        result = self.transport.post(self.build_login_request(login_password), self.auth_headers(LOGIN_METHOD))

        if result.value != LOGIN_SUCCESS:
            if self.instrumentation:
                self.instrumentation.record_timing(
                    "login_authenticate", start_time, success=False, http_status=result.http_status
                )
            raise DlinkAuthenticationError(
                "Login rejected by socket",
                details={"phase": "login", "result": result.value, "failure": result.failure},
            )

        self.state = STATE_AUTHENTICATED
        if self.instrumentation:
            self.instrumentation.record_timing(
                "login_authenticate", start_time, success=True, http_status=result.http_status
            )

    def next_timestamp(self) -> int:
        """Whole seconds since the epoch, rounded up and never going backwards."""
        timestamp = max(math.ceil(time.time()), self._last_timestamp)
        self._last_timestamp = timestamp
        return timestamp

    def auth_header(self, method: str, timestamp: Optional[int] = None) -> str:
        """
        Compute the HNAP_AUTH header value for ``method``.

        Args:
            method: HNAP method name
            timestamp: Optional timestamp (defaults to the next session timestamp)

        Returns:
            "<HMAC upper hex> <timestamp>"
        """
        if self._keys is None:
            raise DlinkAuthenticationError("No private key; login first", details={"phase": "header"})

        if timestamp is None:
            timestamp = self.next_timestamp()

        auth = hash_with(f"{timestamp}{soap_action(method)}", self._keys.private_key)
        return f"{auth} {timestamp}"

    def auth_headers(self, method: str) -> dict[str, str]:
        """HNAP_AUTH and Cookie headers for an authenticated call; empty before the first challenge."""
        if self._keys is None:
            return {}

        return {
            "HNAP_AUTH": self.auth_header(method),
            "Cookie": f"uid={self._keys.cookie}",
        }


__all__ = [
    "LOGIN_METHOD",
    "STATE_AUTHENTICATED",
    "STATE_CHALLENGED",
    "STATE_UNAUTHENTICATED",
    "AuthSession",
]
