"""
HTTP Session Handling for D-Link DSP Client
===========================================

Builds the requests Session used for every HNAP call of one connection.

"""

import logging
from http.cookiejar import DefaultCookiePolicy

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.retry import Retry

logger = logging.getLogger("dlink-dsp")

USER_AGENT = "DlinkDspClient/1.0.0"


def create_hnap_session(verify_ssl: bool = False) -> requests.Session:
    """
    Create a requests Session for talking HNAP to a single socket.

    The adapter keeps one pooled connection and performs no retries of its
    own: the re-login-and-retry-once policy of the RPC engine is the only
    automatic recovery.

    Args:
        verify_ssl: Verify the device certificate (stock firmware is self-signed)

    Returns:
        Configured requests.Session
    """
    session = requests.Session()

    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=1,
        max_retries=Retry(total=0, redirect=0, raise_on_redirect=False),
        pool_block=False,
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    # The uid cookie is sent by hand; never let the jar add or override it
    session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    session.verify = verify_ssl
    if not verify_ssl:
        urllib3.disable_warnings(InsecureRequestWarning)

    session.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept": "text/xml",
            "Cache-Control": "no-cache",
        }
    )

    logger.debug(f"🔧 Created HNAP session (verify_ssl={verify_ssl})")
    return session


__all__ = ["create_hnap_session"]
