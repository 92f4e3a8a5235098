from unittest.mock import patch

import pytest
import requests
from requests.structures import CaseInsensitiveDict

SOAP_XMLNS = "http://schemas.xmlsoap.org/soap/envelope/"
HNAP1_XMLNS = "http://purenetworks.com/HNAP1/"


def build_soap_response(method, fields=None, raw=None):
    """Canned HNAP response envelope for ``method`` with the given fields."""
    inner = raw if raw is not None else "".join(f"<{k}>{v}</{k}>" for k, v in (fields or {}).items())
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<soap:Envelope xmlns:soap="{SOAP_XMLNS}" '
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns:xsd="http://www.w3.org/2001/XMLSchema">'
        "<soap:Body>"
        f'<{method}Response xmlns="{HNAP1_XMLNS}">{inner}</{method}Response>'
        "</soap:Body>"
        "</soap:Envelope>"
    )


def build_http_response(content, status_code=200, headers=None):
    """Real requests.Response carrying ``content``."""
    response = requests.Response()
    response.status_code = status_code
    response._content = content.encode("utf-8") if isinstance(content, str) else content
    response.headers = CaseInsensitiveDict(headers or {"Content-Type": "text/xml; charset=utf-8"})
    response.encoding = "utf-8"
    response.url = "http://192.168.0.60/HNAP1"
    return response


class FakeSocket:
    """
    Scripted HNAP endpoint patched in place of requests.Session.post.

    Login is answered automatically; other methods are answered from
    per-method queues, falling back to per-method defaults.
    """

    def __init__(self, challenge="abc123", public_key="XYZ", cookie="sess1"):
        self.challenge = challenge
        self.public_key = public_key
        self.cookie = cookie
        self.login_result = "success"
        self.challenge_fields = None
        self.queues = {}
        self.defaults = {}
        self.requests = []

    def queue(self, method, *responses):
        """Queue responses: dicts of fields, XML/bytes, Response objects or exceptions."""
        self.queues.setdefault(method, []).extend(responses)

    def default(self, method, response):
        self.defaults[method] = response

    def calls(self, method):
        return [r for r in self.requests if r["method"] == method]

    @property
    def methods(self):
        return [r["method"] for r in self.requests]

    def __call__(self, url, data=None, headers=None, timeout=None, **kwargs):
        headers = dict(headers or {})
        body = data.decode("utf-8") if isinstance(data, bytes) else (data or "")
        method = headers["SOAPAction"].strip('"').rsplit("/", 1)[-1]
        self.requests.append({"url": url, "method": method, "headers": headers, "body": body, "timeout": timeout})

        if method == "Login" and not self.queues.get("Login"):
            return self._login(body)

        if self.queues.get(method):
            response = self.queues[method].pop(0)
        elif method in self.defaults:
            response = self.defaults[method]
        else:
            raise AssertionError(f"Unexpected HNAP call: {method}")

        return self._render(method, response)

    def _login(self, body):
        if "<Action>request</Action>" in body:
            fields = self.challenge_fields or {
                "LoginResult": "OK",
                "Challenge": self.challenge,
                "PublicKey": self.public_key,
                "Cookie": self.cookie,
            }
            return self._render("Login", fields)
        return self._render("Login", {"LoginResult": self.login_result})

    @staticmethod
    def _render(method, response):
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, requests.Response):
            return response
        if isinstance(response, dict):
            return build_http_response(build_soap_response(method, response))
        return build_http_response(response)


@pytest.fixture
def soap_response():
    """Factory for canned HNAP SOAP response bodies."""
    return build_soap_response


@pytest.fixture
def http_response():
    """Factory for requests.Response objects."""
    return build_http_response


@pytest.fixture
def fake_socket():
    """Patch requests.Session.post with a scripted socket."""
    socket = FakeSocket()
    with patch("requests.Session.post", side_effect=socket):
        yield socket


@pytest.fixture
def client_kwargs():
    """Standard HNAPClient arguments."""
    return {
        "host": "192.168.0.60",
        "password": "1234",
        "username": "admin",
        "enable_instrumentation": True,
    }


@pytest.fixture
def client(fake_socket, client_kwargs):
    """HNAPClient talking to the fake socket."""
    from dlink_dsp import HNAPClient

    with HNAPClient(**client_kwargs) as hnap_client:
        yield hnap_client


@pytest.fixture
def socket_readings():
    """Default answers for the readings the polling client takes."""
    return {
        "GetCurrentPowerConsumption": {"CurrentConsumption": "12.5"},
        "GetPMWarningThreshold": {"TotalConsumption": "3.25"},
        "GetCurrentTemperature": {"CurrentTemperature": "31"},
        "GetSocketSettings": {"OPStatus": "true"},
    }
