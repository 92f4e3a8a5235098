"""Tests for the SOAP envelope, HTTP session and response parsing."""

from unittest.mock import Mock

import pytest
import requests

from dlink_dsp.client.http import create_hnap_session
from dlink_dsp.client.parser import HNAPResponseParser
from dlink_dsp.client.soap import CONTENT_TYPE, SoapTransport, build_envelope, soap_action
from dlink_dsp.exceptions import DlinkParsingError
from dlink_dsp.instrumentation import PerformanceInstrumentation
from dlink_dsp.models import (
    FAILURE_HTTP_STATUS,
    FAILURE_MALFORMED_RESPONSE,
    FAILURE_MISSING_ELEMENT,
    FAILURE_TIMEOUT,
    FAILURE_TRANSPORT,
    Credentials,
    RpcCall,
)


@pytest.fixture
def credentials():
    return Credentials(username="admin", password="1234", host="192.168.0.60")


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def transport(session, credentials):
    return SoapTransport(session, credentials, instrumentation=PerformanceInstrumentation())


@pytest.mark.unit
@pytest.mark.transport
class TestEnvelope:
    """Test request construction."""

    def test_soap_action_is_quoted(self):
        assert soap_action("GetSocketSettings") == '"http://purenetworks.com/HNAP1/GetSocketSettings"'

    def test_envelope_wraps_fragment(self):
        envelope = build_envelope("GetSocketSettings", "<ModuleID>1</ModuleID>")

        assert envelope.startswith('<?xml version="1.0" encoding="utf-8"?>')
        assert '<GetSocketSettings xmlns="http://purenetworks.com/HNAP1/">' in envelope
        assert "<ModuleID>1</ModuleID></GetSocketSettings>" in envelope
        assert 'xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/"' in envelope

    def test_envelope_parses_as_xml(self):
        parser = HNAPResponseParser()
        element = parser.response_element(build_envelope("Reboot", ""))

        assert element.tag == "{http://purenetworks.com/HNAP1/}Reboot"

    def test_uri_omits_default_port(self):
        assert Credentials("admin", "1", "10.0.0.2").uri == "http://10.0.0.2/HNAP1"
        assert Credentials("admin", "1", "10.0.0.2", port=443, use_https=True).uri == "https://10.0.0.2/HNAP1"

    def test_uri_includes_custom_port(self):
        assert Credentials("admin", "1", "10.0.0.2", port=8080).uri == "http://10.0.0.2:8080/HNAP1"


@pytest.mark.unit
@pytest.mark.transport
class TestParser:
    """Test HNAPResponseParser."""

    def test_extract_nested_value(self, soap_response):
        content = soap_response(
            "GetSocketSettings",
            raw="<SocketInfoList><SocketInfo><OPStatus>true</OPStatus></SocketInfo></SocketInfoList>",
        )

        assert HNAPResponseParser().extract_value(content, "OPStatus") == "true"

    def test_first_match_wins(self, soap_response):
        content = soap_response("GetSocketSettings", raw="<A><OPStatus>first</OPStatus></A><OPStatus>second</OPStatus>")

        assert HNAPResponseParser().extract_value(content, "OPStatus") == "first"

    def test_empty_element_is_empty_string(self, soap_response):
        content = soap_response("Reboot", {"RebootResult": ""})

        assert HNAPResponseParser().extract_value(content, "RebootResult") == ""

    def test_missing_element(self, soap_response):
        content = soap_response("Reboot", {"RebootResult": "OK"})

        with pytest.raises(DlinkParsingError) as exc_info:
            HNAPResponseParser().extract_value(content, "Other")

        assert exc_info.value.missing_element is True

    def test_malformed_xml(self):
        with pytest.raises(DlinkParsingError) as exc_info:
            HNAPResponseParser().extract_value("<not xml", "RebootResult")

        assert exc_info.value.missing_element is False

    def test_undecodable_declared_encoding(self, soap_response):
        content = soap_response("Reboot", {"RebootResult": "OK"}).replace('encoding="utf-8"', 'encoding="shift_jis"')

        with pytest.raises(DlinkParsingError) as exc_info:
            HNAPResponseParser().extract_value(content.encode("utf-8"), "RebootResult")

        assert exc_info.value.missing_element is False

    def test_not_an_envelope(self):
        with pytest.raises(DlinkParsingError):
            HNAPResponseParser().extract_value("<html><body>Login</body></html>", "RebootResult")

    def test_extract_values(self, soap_response):
        content = soap_response("Login", {"Challenge": "abc", "Cookie": "c"})

        assert HNAPResponseParser().extract_values(content, ["Challenge", "Cookie", "PublicKey"]) == {
            "Challenge": "abc",
            "Cookie": "c",
        }

    @pytest.mark.parametrize(
        "value,expected",
        [("12.5", 12.5), ("0", 0.0), ("7.", 7.0), (".5", 0.5), (" 3 ", 3.0)],
    )
    def test_parse_float(self, value, expected):
        assert HNAPResponseParser.parse_float(value) == expected

    @pytest.mark.parametrize("value", [None, "", "ERROR", "-1.5", "1e3", "1,5", "nan", "inf"])
    def test_parse_float_rejects(self, value):
        assert HNAPResponseParser.parse_float(value) is None

    @pytest.mark.parametrize(
        "value,expected",
        [("true", True), ("TRUE", True), ("True", True), ("false", False), ("ERROR", False), (None, None), ("", None)],
    )
    def test_parse_state(self, value, expected):
        assert HNAPResponseParser.parse_state(value) is expected


@pytest.mark.unit
@pytest.mark.transport
class TestSoapTransport:
    """Test SoapTransport.post and its fault conversion."""

    def test_post_success(self, transport, session, soap_response, http_response):
        session.post.return_value = http_response(soap_response("IsDeviceReady", {"IsDeviceReadyResult": "OK"}))

        result = transport.post(RpcCall("IsDeviceReady", "IsDeviceReadyResult"), {"HNAP_AUTH": "X 1"})

        assert result.ok
        assert result.value == "OK"
        assert result.http_status == 200

        args, kwargs = session.post.call_args
        assert args[0] == "http://192.168.0.60/HNAP1"
        assert kwargs["headers"]["Content-Type"] == CONTENT_TYPE
        assert kwargs["headers"]["SOAPAction"] == soap_action("IsDeviceReady")
        assert kwargs["headers"]["HNAP_AUTH"] == "X 1"
        assert kwargs["timeout"] == (3, 12)
        assert b"<IsDeviceReady" in kwargs["data"]

    def test_connection_error(self, transport, session):
        session.post.side_effect = requests.exceptions.ConnectionError("refused")

        result = transport.post(RpcCall("IsDeviceReady", "IsDeviceReadyResult"))

        assert not result.ok
        assert result.failure == FAILURE_TRANSPORT
        assert result.needs_reauthentication

    def test_timeout(self, transport, session):
        session.post.side_effect = requests.exceptions.ReadTimeout("slow")

        result = transport.post(RpcCall("IsDeviceReady", "IsDeviceReadyResult"))

        assert result.failure == FAILURE_TIMEOUT

    def test_http_error_status(self, transport, session, http_response):
        session.post.return_value = http_response("Server Error", status_code=500)

        result = transport.post(RpcCall("IsDeviceReady", "IsDeviceReadyResult"))

        assert result.failure == FAILURE_HTTP_STATUS
        assert result.http_status == 500

    def test_malformed_response(self, transport, session, http_response):
        session.post.return_value = http_response("garbage")

        result = transport.post(RpcCall("IsDeviceReady", "IsDeviceReadyResult"))

        assert result.failure == FAILURE_MALFORMED_RESPONSE

    def test_undecodable_declared_encoding(self, transport, session, soap_response, http_response):
        content = soap_response("Reboot", {"RebootResult": "OK"}).replace('encoding="utf-8"', 'encoding="shift_jis"')
        session.post.return_value = http_response(content)

        result = transport.post(RpcCall("Reboot", "RebootResult"))

        assert result.failure == FAILURE_MALFORMED_RESPONSE
        assert result.needs_reauthentication

    def test_header_encoding_error(self, transport, session):
        session.post.side_effect = UnicodeEncodeError("latin-1", "uid=sess\u20ac1", 8, 9, "ordinal not in range(256)")

        result = transport.post(RpcCall("GetSocketSettings", "OPStatus"), {"Cookie": "uid=sess\u20ac1"})

        assert result.failure == FAILURE_TRANSPORT
        assert transport.error_analyzer.get_error_analysis()["total_errors"] == 1

    def test_missing_element(self, transport, session, soap_response, http_response):
        session.post.return_value = http_response(soap_response("IsDeviceReady", {"Other": "x"}))

        result = transport.post(RpcCall("IsDeviceReady", "IsDeviceReadyResult"))

        assert result.failure == FAILURE_MISSING_ELEMENT

    def test_failures_are_captured(self, transport, session, http_response):
        session.post.return_value = http_response("Forbidden", status_code=403)

        transport.post(RpcCall("GetSocketSettings", "OPStatus"))
        analysis = transport.error_analyzer.get_error_analysis()

        assert analysis["total_errors"] == 1
        assert analysis["methods"] == {"GetSocketSettings": 1}
        assert analysis["timeline"][0]["http_status"] == 403

    def test_post_for_values_requires_all(self, transport, session, soap_response, http_response):
        session.post.return_value = http_response(soap_response("Login", {"Challenge": "abc"}))

        assert transport.post_for_values(RpcCall("Login", "LoginResult"), ["Challenge", "Cookie"]) is None

    def test_timings_recorded(self, transport, session, soap_response, http_response):
        session.post.return_value = http_response(soap_response("Reboot", {"RebootResult": "OK"}))

        transport.post(RpcCall("Reboot", "RebootResult"))
        summary = transport.instrumentation.get_performance_summary()

        assert summary["operation_breakdown"]["hnap_request_Reboot"]["count"] == 1


@pytest.mark.unit
@pytest.mark.transport
class TestHttpSession:
    """Test create_hnap_session."""

    def test_session_configuration(self):
        session = create_hnap_session()

        adapter = session.get_adapter("http://192.168.0.60/HNAP1")
        assert adapter.max_retries.total == 0
        assert session.verify is False
        assert "DlinkDspClient" in session.headers["User-Agent"]
        session.close()

    def test_verify_enabled(self):
        session = create_hnap_session(verify_ssl=True)

        assert session.verify is True
        session.close()

    def test_cookie_jar_rejects_server_cookies(self):
        session = create_hnap_session()

        assert list(session.cookies.get_policy().allowed_domains()) == []
        session.close()
