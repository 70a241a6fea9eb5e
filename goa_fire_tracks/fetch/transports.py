"""Upstream payload transports.

Every transport exposes ``fetch_raw_payload() -> RawPayload``; which one runs
is a deployment choice made in configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from goa_fire_tracks.common.config_loader import resolve_credentials
from goa_fire_tracks.common.errors import ConfigError, TransportError
from goa_fire_tracks.common.fs import read_text
from goa_fire_tracks.common.http import HttpClient, RetryConfig, TimeoutConfig, TlsConfig
from goa_fire_tracks.fetch.auth import authenticate


@dataclass(frozen=True)
class RawPayload:
    fmt: str
    payload: Any


class Transport(Protocol):
    def fetch_raw_payload(self) -> RawPayload: ...


class CsvTransport:
    def __init__(self, client: HttpClient, csv_cfg: dict, user: str, password: str) -> None:
        self.client = client
        self.url = csv_cfg["url"]
        self.params = {
            "token": csv_cfg["token"],
            "user": user,
            "pass": password,
            "company": csv_cfg["company"],
            "format": "csv",
        }

    def fetch_raw_payload(self) -> RawPayload:
        return RawPayload(fmt="csv", payload=self.client.get_text(self.url, params=self.params))


class JsonTransport:
    def __init__(self, client: HttpClient, json_cfg: dict, user: str, password: str) -> None:
        self.client = client
        self.auth_url = json_cfg.get("auth_url")
        self.data_url = json_cfg["data_url"]
        self.data_method = str(json_cfg.get("data_method", "POST")).upper()
        self.token_field = json_cfg.get("token_field", "token")
        self.user = user
        self.password = password

    def fetch_raw_payload(self) -> RawPayload:
        headers: dict[str, str] = {}
        body: dict[str, Any] = {}
        if self.auth_url:
            token = authenticate(self.client, self.auth_url, self.user, self.password)
            headers["Authorization"] = f"Bearer {token}"
            body[self.token_field] = token

        # Decoded by the normaliser, so a garbled body counts as a malformed payload.
        if self.data_method == "GET":
            payload = self.client.request_text("GET", self.data_url, params=body or None, headers=headers)
        else:
            payload = self.client.request_text("POST", self.data_url, json_body=body, headers=headers)
        return RawPayload(fmt="json", payload=payload)


class FileTransport:
    """Replays a payload saved to disk."""

    def __init__(self, path: Path, fmt: str | None = None) -> None:
        self.path = path
        self.fmt = fmt or ("json" if path.suffix.lower() == ".json" else "csv")

    def fetch_raw_payload(self) -> RawPayload:
        try:
            text = read_text(self.path)
        except OSError as exc:
            raise TransportError(f"Cannot read payload file {self.path}") from exc
        return RawPayload(fmt=self.fmt, payload=text)


def build_http_client(http_cfg: dict) -> HttpClient:
    return HttpClient(
        timeout=TimeoutConfig(
            connect=float(http_cfg["connect_timeout_seconds"]),
            read=float(http_cfg["read_timeout_seconds"]),
        ),
        retry=RetryConfig(max_attempts=int(http_cfg["max_attempts"])),
        tls=TlsConfig(verify=bool(http_cfg["verify_tls"]), ca_bundle=http_cfg.get("ca_bundle")),
    )


def build_transport(
    settings: dict,
    client: HttpClient | None,
    *,
    payload_file: Path | None = None,
    payload_format: str | None = None,
) -> Transport:
    source = settings["source"]
    if payload_file is not None:
        return FileTransport(payload_file, payload_format)

    transport = source["transport"]
    if transport == "file":
        file_cfg = source["file"]
        return FileTransport(Path(file_cfg["path"]), payload_format or file_cfg.get("format"))

    if client is None:
        raise ConfigError(f"transport={transport} needs an HTTP client")
    user, password = resolve_credentials(source["credentials"])
    if transport == "csv":
        return CsvTransport(client, source["csv"], user, password)
    if transport == "json":
        return JsonTransport(client, source["json"], user, password)
    raise ConfigError(f"Unsupported transport: {transport}")
