"""
SOAP Transport for D-Link DSP Client
====================================

Wraps an XML fragment in a SOAP envelope, POSTs it to the HNAP endpoint and
extracts a named element from the response. Every transport or parsing fault
is converted to a failed CallResult here; nothing below this layer reaches
the caller as an exception.

"""

import logging
import time
from typing import Any, Callable, Iterable, Optional

import requests

from dlink_dsp.exceptions import (
    DlinkConnectionError,
    DlinkHTTPError,
    DlinkParsingError,
    DlinkTimeoutError,
    wrap_connection_error,
)
from dlink_dsp.models import CallResult, Credentials, RpcCall

from .error_handler import ErrorAnalyzer
from .parser import SOAP_XMLNS, HNAPResponseParser

logger = logging.getLogger("dlink-dsp")

HNAP1_XMLNS = "http://purenetworks.com/HNAP1/"
CONTENT_TYPE = "text/xml; charset=utf-8"

_TRANSPORT_ERRORS = (
    DlinkConnectionError,
    DlinkHTTPError,
    DlinkParsingError,
    requests.exceptions.RequestException,
    # http.client encodes header values as Latin-1
    UnicodeError,
)


def build_envelope(method: str, fragment: str) -> str:
    """Wrap a field fragment in the SOAP 1.1 envelope HNAP expects."""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        "<soap:Envelope "
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns:xsd="http://www.w3.org/2001/XMLSchema" '
        f'xmlns:soap="{SOAP_XMLNS}">'
        "<soap:Body>"
        f'<{method} xmlns="{HNAP1_XMLNS}">'
        f"{fragment}"
        f"</{method}>"
        "</soap:Body>"
        "</soap:Envelope>"
    )


def soap_action(method: str) -> str:
    """SOAPAction header value, quotes included; also the HNAP_AUTH signing suffix."""
    return f'"{HNAP1_XMLNS}{method}"'


class SoapTransport:
    """Fail-soft SOAP-over-HTTP transport for one HNAP endpoint."""

    def __init__(
        self,
        session: requests.Session,
        credentials: Credentials,
        timeout: tuple = (3, 12),
        instrumentation: Optional[Any] = None,
        error_analyzer: Optional[ErrorAnalyzer] = None,
        parser: Optional[HNAPResponseParser] = None,
    ):
        """
        Initialize the transport.

        Args:
            session: HTTP session to use
            credentials: Endpoint of the socket
            timeout: Request timeout (connect, read)
            instrumentation: Optional performance instrumentation
            error_analyzer: Collector for converted faults
            parser: Response parser
        """
        self.session = session
        self.credentials = credentials
        self.uri = credentials.uri
        self.timeout = timeout
        self.instrumentation = instrumentation
        self.error_analyzer = error_analyzer or ErrorAnalyzer()
        self.parser = parser or HNAPResponseParser()

    def post(self, rpc_call: RpcCall, headers: Optional[dict[str, str]] = None) -> CallResult:
        """
        Invoke ``rpc_call`` and extract its response element.

        Args:
            rpc_call: Method, response element and body fragment
            headers: Extra headers (HNAP_AUTH, Cookie)

        Returns:
            CallResult with the element text, or a failure tag
        """
        value, failure, http_status = self._exchange(
            rpc_call,
            headers,
            lambda content: self.parser.extract_value(content, rpc_call.response_element),
        )
        if failure:
            return CallResult.failed(failure, http_status=http_status)
        return CallResult.success(value, http_status=http_status)

    def post_for_values(
        self,
        rpc_call: RpcCall,
        elements: Iterable[str],
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[dict[str, str]]:
        """
        Invoke ``rpc_call`` and extract several elements.

        Returns:
            Mapping of every requested element to its text, or None if the
            call failed or any element is missing
        """
        wanted = list(elements)

        def extract(content: bytes) -> dict[str, str]:
            values = self.parser.extract_values(content, wanted)
            missing = [name for name in wanted if name not in values]
            if missing:
                raise DlinkParsingError(
                    f"{rpc_call.method} response is missing {', '.join(missing)}",
                    details={"missing": missing},
                    missing_element=True,
                )
            return values

        values, failure, _ = self._exchange(rpc_call, headers, extract)
        return None if failure else values

    def _exchange(
        self,
        rpc_call: RpcCall,
        headers: Optional[dict[str, str]],
        extract: Callable[[bytes], Any],
    ) -> tuple[Any, Optional[str], Optional[int]]:
        """Send and extract; returns (value, failure tag, HTTP status)."""
        method = rpc_call.method
        start_time = self.instrumentation.start_timer(f"hnap_request_{method}") if self.instrumentation else time.time()
        response: Optional[requests.Response] = None

        try:
            response = self._send(rpc_call, headers)
            self._check_status(response, method)
            value = extract(response.content)
        except _TRANSPORT_ERRORS as e:
            error = self._wrap_error(e, method)
            capture = self.error_analyzer.analyze_error(error, method, response)
            http_status = response.status_code if response is not None else None

            if self.instrumentation:
                self.instrumentation.record_timing(
                    f"hnap_request_{method}",
                    start_time,
                    success=False,
                    error_type=capture.error_type,
                    http_status=http_status,
                )
            return None, capture.error_type, http_status

        if self.instrumentation:
            self.instrumentation.record_timing(
                f"hnap_request_{method}",
                start_time,
                success=True,
                http_status=response.status_code,
                response_size=len(response.content),
            )
        return value, None, response.status_code

    def _send(self, rpc_call: RpcCall, extra_headers: Optional[dict[str, str]]) -> requests.Response:
        """POST the envelope; raises requests exceptions on transport failure."""
        headers = {
            "Content-Type": CONTENT_TYPE,
            "SOAPAction": soap_action(rpc_call.method),
        }
        if extra_headers:
            headers.update(extra_headers)

        body = build_envelope(rpc_call.method, rpc_call.body)

        logger.debug(f"📤 HNAP: {rpc_call.method}")
        response = self.session.post(
            self.uri,
            data=body.encode("utf-8"),
            headers=headers,
            timeout=self.timeout,
        )
        logger.debug(f"📥 Response: HTTP {response.status_code}, {len(response.content)} bytes")
        return response

    @staticmethod
    def _check_status(response: requests.Response, method: str) -> None:
        if not 200 <= response.status_code < 300:
            raise DlinkHTTPError(
                f"HTTP {response.status_code} error for {method}",
                status_code=response.status_code,
                details={"operation": method},
            )

    def _wrap_error(self, error: Exception, method: str) -> Exception:
        """Turn requests exceptions into library exceptions; others pass through."""
        if isinstance(error, requests.exceptions.Timeout):
            return DlinkTimeoutError(
                f"Request to {method} timed out",
                details={"operation": method, "timeout": self.timeout},
            )
        if isinstance(error, requests.exceptions.RequestException):
            return wrap_connection_error(error, self.credentials.host, self.credentials.port)
        return error


__all__ = ["CONTENT_TYPE", "HNAP1_XMLNS", "SoapTransport", "build_envelope", "soap_action"]
