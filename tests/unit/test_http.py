from __future__ import annotations

import pytest
import requests

from goa_fire_tracks.common.errors import TransportError
from goa_fire_tracks.common.http import (
    HttpClient,
    HttpRequestError,
    RetryConfig,
    RetryableHttpError,
    TimeoutConfig,
    TlsConfig,
)


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json
        self.text = text

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def test_http_post_json_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, {"ok": True}))
    payload = client.post_json("https://example.com/login", body={"user": "u"})

    assert payload == {"ok": True}


def test_http_request_text_returns_body_undecoded(monkeypatch):
    client = HttpClient()
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, raises_json=True, text="<html>maintenance</html>")

    monkeypatch.setattr(client.session, "request", fake_request)
    text = client.request_text("POST", "https://example.com/live", json_body={"token": "t"})

    assert text == "<html>maintenance</html>"
    assert seen["method"] == "POST"
    assert seen["json"] == {"token": "t"}
    assert seen["headers"]["Accept"] == "application/json"


def test_http_get_text_passes_timeout_and_tls_policy(monkeypatch):
    client = HttpClient(timeout=TimeoutConfig(connect=3, read=7), tls=TlsConfig(verify=False))
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, text="Company,Vehicle_No\n")

    monkeypatch.setattr(client.session, "request", fake_request)
    text = client.get_text("https://example.com/webservice", params={"format": "csv"})

    assert text == "Company,Vehicle_No\n"
    assert seen["timeout"] == (3, 7)
    assert seen["verify"] is False
    assert seen["params"] == {"format": "csv"}


def test_tls_ca_bundle_is_used_as_verify_path():
    assert TlsConfig(verify=False, ca_bundle="/etc/ssl/feed.pem").requests_verify() == "/etc/ssl/feed.pem"
    assert TlsConfig().requests_verify() is True


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.request_text("GET", "https://example.com")


def test_http_retries_retryable_status_when_configured(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=2, multiplier=0, max_wait=0))
    responses = iter([FakeResponse(503), FakeResponse(200, {"ok": True})])
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: next(responses))

    assert client.post_json("https://example.com/login", body={}) == {"ok": True}


def test_http_client_error_status_is_transport_error(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(404))

    with pytest.raises(TransportError):
        client.get_text("https://example.com")


def test_http_connection_failure_is_wrapped(monkeypatch):
    client = HttpClient()

    def boom(**_kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", boom)

    with pytest.raises(HttpRequestError):
        client.post_json("https://example.com/login", body={"user": "u"})


def test_http_invalid_json_raises(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(HttpRequestError):
        client.post_json("https://example.com/login", body={"user": "u"})
