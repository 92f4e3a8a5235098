"""Tests for the HNAP login handshake and request signing."""

import hashlib
import hmac
from unittest.mock import patch

import pytest
import requests

from dlink_dsp.client.auth import (
    STATE_AUTHENTICATED,
    STATE_UNAUTHENTICATED,
    AuthSession,
)
from dlink_dsp.client.soap import SoapTransport, soap_action
from dlink_dsp.exceptions import DlinkAuthenticationError
from dlink_dsp.instrumentation import PerformanceInstrumentation
from dlink_dsp.models import Credentials


def md5_hex(key, message):
    return hmac.new(key.encode(), message.encode(), hashlib.md5).hexdigest().upper()


@pytest.fixture
def auth(fake_socket):
    credentials = Credentials(username="admin", password="1234", host="192.168.0.60")
    transport = SoapTransport(requests.Session(), credentials)
    return AuthSession(credentials, transport, instrumentation=PerformanceInstrumentation())


@pytest.mark.unit
@pytest.mark.auth
class TestLogin:
    """Test the two-phase login."""

    def test_successful_login(self, auth, fake_socket):
        assert auth.login() is True

        expected_private_key = md5_hex("XYZ1234", "abc123")
        assert auth.private_key == expected_private_key
        assert auth.challenge == "abc123"
        assert auth.public_key == "XYZ"
        assert auth.cookie == "sess1"
        assert auth.state == STATE_AUTHENTICATED
        assert auth.authenticated

        challenge_request, login_request = fake_socket.calls("Login")
        assert "<Action>request</Action>" in challenge_request["body"]
        assert "<Username>admin</Username>" in challenge_request["body"]
        assert "<Action>login</Action>" in login_request["body"]
        assert f"<LoginPassword>{md5_hex(expected_private_key, 'abc123')}</LoginPassword>" in login_request["body"]

    def test_challenge_request_is_unsigned(self, auth, fake_socket):
        auth.login()

        challenge_request = fake_socket.calls("Login")[0]
        assert "HNAP_AUTH" not in challenge_request["headers"]
        assert "Cookie" not in challenge_request["headers"]

    def test_login_request_is_signed(self, auth, fake_socket):
        auth.login()

        headers = fake_socket.calls("Login")[1]["headers"]
        digest, timestamp = headers["HNAP_AUTH"].split(" ")
        assert digest == md5_hex(auth.private_key, timestamp + soap_action("Login"))
        assert headers["Cookie"] == "uid=sess1"

    def test_rejected_password(self, auth, fake_socket):
        fake_socket.login_result = "failed"

        assert auth.login() is False
        assert auth.state == STATE_UNAUTHENTICATED
        assert auth.last_login_succeeded is False

    def test_success_must_match_exactly(self, auth, fake_socket):
        fake_socket.login_result = "Success"

        assert auth.login() is False

    def test_incomplete_challenge_keeps_previous_keys(self, auth, fake_socket):
        assert auth.login()
        previous_keys = auth.keys

        fake_socket.challenge_fields = {"LoginResult": "OK", "Challenge": "new", "PublicKey": "NEW"}

        assert auth.login() is False
        assert auth.keys is previous_keys
        assert auth.challenge == "abc123"
        assert auth.cookie == "sess1"

    def test_incomplete_challenge_on_fresh_session(self, auth, fake_socket):
        fake_socket.challenge_fields = {"Challenge": "abc123", "PublicKey": "XYZ", "Cookie": "sess1"}

        assert auth.login() is False
        assert auth.keys is None
        assert auth.private_key is None
        assert len(fake_socket.calls("Login")) == 1

    @pytest.mark.parametrize("cookie", ["sess\u20ac1", "sess1\r\nX-Injected: 1"])
    def test_unsendable_cookie_is_rejected(self, auth, fake_socket, cookie):
        fake_socket.cookie = cookie

        assert auth.login() is False
        assert auth.keys is None
        assert auth.state == STATE_UNAUTHENTICATED
        assert len(fake_socket.calls("Login")) == 1

    def test_unsendable_cookie_keeps_previous_keys(self, auth, fake_socket):
        assert auth.login()
        previous_keys = auth.keys

        fake_socket.cookie = "sess\u20ac2"

        assert auth.login() is False
        assert auth.keys is previous_keys
        assert auth.auth_headers("GetSocketSettings")["Cookie"] == "uid=sess1"

    def test_unreachable_socket(self, auth, fake_socket):
        fake_socket.queue("Login", requests.exceptions.ConnectionError("unreachable"))

        assert auth.login() is False
        assert auth.keys is None

    def test_relogin_replaces_keys(self, auth, fake_socket):
        assert auth.login()
        first_key = auth.private_key

        fake_socket.challenge = "def456"
        fake_socket.cookie = "sess2"
        assert auth.login()

        assert auth.private_key == md5_hex("XYZ1234", "def456")
        assert auth.private_key != first_key
        assert auth.auth_headers("GetSocketSettings")["Cookie"] == "uid=sess2"

    def test_login_timings(self, auth):
        auth.login()
        breakdown = auth.instrumentation.get_performance_summary()["operation_breakdown"]

        assert breakdown["login_challenge"]["count"] == 1
        assert breakdown["login_authenticate"]["count"] == 1
        assert breakdown["login_complete"]["success_rate"] == 1.0

    def test_username_is_escaped(self, fake_socket):
        credentials = Credentials(username="a<b", password="1234", host="192.168.0.60")
        session = AuthSession(credentials, SoapTransport(requests.Session(), credentials))

        session.login()

        assert "<Username>a&lt;b</Username>" in fake_socket.calls("Login")[0]["body"]


@pytest.mark.unit
@pytest.mark.auth
class TestAuthHeader:
    """Test the HNAP_AUTH header."""

    def test_no_headers_before_login(self, auth):
        assert auth.auth_headers("GetSocketSettings") == {}

    def test_header_requires_key(self, auth):
        with pytest.raises(DlinkAuthenticationError):
            auth.auth_header("GetSocketSettings")

    def test_header_format(self, auth):
        auth.login()

        header = auth.auth_header("GetSocketSettings", timestamp=1700000000)

        expected = md5_hex(auth.private_key, '1700000000"http://purenetworks.com/HNAP1/GetSocketSettings"')
        assert header == f"{expected} 1700000000"

    def test_timestamp_rounds_up(self, auth):
        with patch("dlink_dsp.client.auth.time.time", return_value=1700000000.2):
            assert auth.next_timestamp() == 1700000001

    def test_timestamp_never_decreases(self, auth):
        with patch("dlink_dsp.client.auth.time.time", return_value=1700000005.0):
            first = auth.next_timestamp()
        with patch("dlink_dsp.client.auth.time.time", return_value=1700000001.0):
            second = auth.next_timestamp()

        assert second >= first

    def test_invalidate_keeps_keys(self, auth):
        auth.login()
        auth.invalidate()

        assert not auth.authenticated
        assert auth.private_key is not None
