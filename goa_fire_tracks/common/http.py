"""HTTP client with bounded timeouts, optional retries, and TLS policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from goa_fire_tracks.common.constants import USER_AGENT
from goa_fire_tracks.common.errors import TransportError
from goa_fire_tracks.common.logging import get_logger, log_event

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 30.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 1
    multiplier: float = 1.0
    max_wait: float = 30.0


@dataclass(frozen=True)
class TlsConfig:
    verify: bool = True
    ca_bundle: str | None = None

    def requests_verify(self) -> bool | str:
        if self.ca_bundle:
            return self.ca_bundle
        return self.verify


class HttpRequestError(TransportError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        tls: TlsConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.tls = tls or TlsConfig()
        self.session = requests.Session()
        if not self.tls.verify and not self.tls.ca_bundle:
            log_event(
                get_logger(),
                "TLS certificate verification is DISABLED for upstream requests",
                level=logging.WARNING,
                event="TLS_VERIFY_DISABLED",
                status="warning",
            )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None, accept: str) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": accept}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status_or_retry(self, response: requests.Response) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status: {status}")
        if status >= 400:
            raise HttpRequestError(f"HTTP status: {status}")

    def _send(
        self,
        method: str,
        url: str,
        *,
        accept: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> requests.Response:
        req_timeout = timeout or self.timeout
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                data=data,
                json=json_body,
                headers=self._headers(headers, accept),
                timeout=(req_timeout.connect, req_timeout.read),
                verify=self.tls.requests_verify(),
            )
        except requests.RequestException as exc:
            raise HttpRequestError(f"Request to {url} failed: {exc.__class__.__name__}") from exc
        self._raise_for_status_or_retry(response)
        return response

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )
        def _wrapped() -> requests.Response:
            return self._send(method, url, **kwargs)

        return _wrapped()

    def request_text(self, method: str, url: str, *, accept: str = "application/json", **kwargs: Any) -> str:
        """Return the response body undecoded; callers that tolerate bad JSON parse it themselves."""
        return self.request(method, url, accept=accept, **kwargs).text

    def get_text(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> str:
        return self.request_text(
            "GET",
            url,
            accept="text/csv, text/plain, */*",
            params=params,
            headers=headers,
            timeout=timeout,
        )

    def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = self.request(method, url, accept="application/json", **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise HttpRequestError(f"Invalid JSON payload from {url}") from exc

    def post_json(
        self,
        url: str,
        *,
        body: dict[str, Any],
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        return self.request_json("POST", url, json_body=body, headers=headers, timeout=timeout)
