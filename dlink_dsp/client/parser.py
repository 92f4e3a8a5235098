"""
Response Parser for D-Link DSP Client
=====================================

This module handles parsing of HNAP SOAP responses and of the typed values
carried in them.

"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Iterable, Optional, Union

from dlink_dsp.exceptions import DlinkParsingError

logger = logging.getLogger("dlink-dsp")

SOAP_XMLNS = "http://schemas.xmlsoap.org/soap/envelope/"

_DECIMAL_PATTERN = re.compile(r"\d+(\.\d*)?|\.\d+")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class HNAPResponseParser:
    """Parses HNAP SOAP responses into plain values."""

    def response_element(self, content: Union[str, bytes]) -> ET.Element:
        """
        Locate the method response element, ``Envelope/Body/<first child>``.

        Raises:
            DlinkParsingError: If the XML is malformed or Envelope/Body is missing
        """
        try:
            root = ET.fromstring(content)
        except (ET.ParseError, ValueError) as e:
            # expat raises ValueError for encodings it cannot decode, e.g. shift_jis
            raise DlinkParsingError(
                "Response is not well-formed XML",
                details={"parse_error": str(e), "response": self._preview(content)},
            ) from e

        if root.tag != f"{{{SOAP_XMLNS}}}Envelope":
            raise DlinkParsingError("SOAP Envelope missing", details={"root": root.tag})

        body = root.find(f"{{{SOAP_XMLNS}}}Body")
        if body is None:
            raise DlinkParsingError("SOAP Body missing")

        children = list(body)
        if not children:
            raise DlinkParsingError("SOAP Body is empty")

        return children[0]

    def extract_value(self, content: Union[str, bytes], element: str) -> str:
        """
        Extract the text of ``element`` anywhere below the method response.

        Args:
            content: Raw response body
            element: Local name of the element, namespace ignored

        Returns:
            Text content of the first matching element ("" when it has none)

        Raises:
            DlinkParsingError: If the response is malformed or has no such element
        """
        values = self.extract_values(content, [element])
        if element not in values:
            raise DlinkParsingError(
                f"Element {element} not found in response",
                details={"element": element, "response": self._preview(content)},
                missing_element=True,
            )
        return values[element]

    def extract_values(self, content: Union[str, bytes], elements: Iterable[str]) -> dict[str, str]:
        """
        Extract several elements in one pass; missing ones are left out.

        Raises:
            DlinkParsingError: If the response is malformed
        """
        wanted = set(elements)
        found: dict[str, str] = {}

        response = self.response_element(content)
        for node in response.iter():
            if node is response:
                continue
            name = _local_name(node.tag)
            if name in wanted and name not in found:
                found[name] = "".join(node.itertext())

        logger.debug(f"Parsed {_local_name(response.tag)}: found {sorted(found)}")
        return found

    @staticmethod
    def parse_float(value: Optional[str]) -> Optional[float]:
        """Parse an unsigned decimal reading such as "12.5"; anything else is None."""
        if not value:
            return None

        text = value.strip()
        if not _DECIMAL_PATTERN.fullmatch(text):
            logger.debug(f"Not a decimal reading: {value!r}")
            return None
        return float(text)

    @staticmethod
    def parse_state(value: Optional[str]) -> Optional[bool]:
        """Parse an OPStatus value; comparison is case-insensitive against "true"."""
        if not value:
            return None
        return value.lower() == "true"

    @staticmethod
    def _preview(content: Union[str, bytes]) -> str:
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")
        return content[:200]


__all__ = ["SOAP_XMLNS", "HNAPResponseParser"]
