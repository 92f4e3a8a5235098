"""
Error Handler for D-Link DSP Client
===================================

Every transport or parsing fault is converted to an absent value at the RPC
boundary. This module keeps a record of those faults so they can still be
inspected for debugging and monitoring.

"""

import logging
import time
from collections import deque
from typing import Any, Deque, Optional

import requests

from dlink_dsp.exceptions import DlinkHTTPError, DlinkParsingError, DlinkTimeoutError
from dlink_dsp.models import (
    FAILURE_HTTP_STATUS,
    FAILURE_MALFORMED_RESPONSE,
    FAILURE_MISSING_ELEMENT,
    FAILURE_TIMEOUT,
    FAILURE_TRANSPORT,
    ErrorCapture,
)

logger = logging.getLogger("dlink-dsp")

DEFAULT_MAX_CAPTURES = 1000


def classify_error(error: Exception) -> str:
    """Map an exception raised while calling the socket to a CallResult failure tag."""
    if isinstance(error, DlinkParsingError):
        return FAILURE_MISSING_ELEMENT if error.missing_element else FAILURE_MALFORMED_RESPONSE
    if isinstance(error, DlinkHTTPError):
        return FAILURE_HTTP_STATUS
    if isinstance(error, (DlinkTimeoutError, requests.exceptions.Timeout)):
        return FAILURE_TIMEOUT
    return FAILURE_TRANSPORT


class ErrorAnalyzer:
    """Captures failed HNAP requests for later analysis."""

    def __init__(self, capture_errors: bool = True, max_captures: int = DEFAULT_MAX_CAPTURES):
        """
        Initialize error analyzer.

        Args:
            capture_errors: Whether to keep error details in memory
            max_captures: Number of most recent captures to keep
        """
        self.capture_errors = capture_errors
        self.error_captures: Deque[ErrorCapture] = deque(maxlen=max_captures)

    def analyze_error(
        self,
        error: Exception,
        method: str,
        response: Optional[requests.Response] = None,
    ) -> ErrorCapture:
        """
        Classify and record a failed request.

        Args:
            error: The exception that occurred
            method: HNAP method that failed
            response: HTTP response, when one was received

        Returns:
            ErrorCapture describing the failure
        """
        partial_content = ""
        headers: dict[str, str] = {}
        http_status = 0

        if response is not None:
            partial_content = response.text[:500] if isinstance(response.text, str) else ""
            headers = dict(response.headers or {})
            http_status = response.status_code or 0
        elif isinstance(error, DlinkHTTPError) and error.status_code:
            http_status = error.status_code

        capture = ErrorCapture(
            timestamp=time.time(),
            method=method,
            http_status=http_status,
            error_type=classify_error(error),
            raw_error=str(error),
            partial_content=partial_content,
            response_headers=headers,
        )

        if self.capture_errors:
            self.error_captures.append(capture)

        logger.warning(f"🔍 {method} failed: {capture.error_type} (HTTP {http_status or 'n/a'})")
        logger.debug(f"   Raw error: {capture.raw_error[:200]}")

        return capture

    def get_error_analysis(self) -> dict[str, Any]:
        """Summarise captured errors."""
        if not self.error_captures:
            return {"message": "No errors captured yet"}

        analysis: dict[str, Any] = {
            "total_errors": len(self.error_captures),
            "error_types": {},
            "methods": {},
            "timeline": [],
        }

        for capture in self.error_captures:
            analysis["error_types"][capture.error_type] = analysis["error_types"].get(capture.error_type, 0) + 1
            analysis["methods"][capture.method] = analysis["methods"].get(capture.method, 0) + 1

            analysis["timeline"].append(
                {
                    "timestamp": capture.timestamp,
                    "method": capture.method,
                    "error_type": capture.error_type,
                    "http_status": capture.http_status,
                }
            )

        return analysis

    def clear_captures(self) -> None:
        """Clear all captured errors."""
        self.error_captures.clear()


__all__ = ["ErrorAnalyzer", "classify_error"]
