"""Token authentication against the live-data API.

The vendor has changed the login body's field names more than once, so each
known variant is tried in turn. A ``result: 0`` body is a rejected login and
moves on to the next variant; a transport failure aborts immediately.
"""

from __future__ import annotations

import logging
from typing import Any

from goa_fire_tracks.common.errors import AuthenticationExhausted
from goa_fire_tracks.common.http import HttpClient
from goa_fire_tracks.common.logging import get_logger, log_event

CREDENTIAL_FIELD_VARIANTS: tuple[tuple[str, str], ...] = (
    ("username", "password"),
    ("user", "pass"),
    ("email", "password"),
    ("userName", "password"),
)
TOKEN_FIELDS = ("token", "access_token", "accessToken")


def extract_token(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for container in (payload, payload.get("data")):
        if not isinstance(container, dict):
            continue
        for key in TOKEN_FIELDS:
            value = container.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def is_rejected_login(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("result") in (0, "0")


def authenticate(client: HttpClient, auth_url: str, user: str, password: str) -> str:
    logger = get_logger()
    rejected = 0
    for user_field, password_field in CREDENTIAL_FIELD_VARIANTS:
        payload = client.post_json(auth_url, body={user_field: user, password_field: password})
        token = extract_token(payload)
        if token:
            log_event(
                logger,
                f"authenticated using {user_field}/{password_field} fields",
                stage="fetch",
                event="AUTH_OK",
                status="ok",
            )
            return token
        if is_rejected_login(payload):
            rejected += 1
            log_event(
                logger,
                f"login rejected for {user_field}/{password_field} fields",
                level=logging.WARNING,
                stage="fetch",
                event="AUTH_REJECTED",
                status="warning",
            )

    raise AuthenticationExhausted(
        f"No credential field variant yielded a token ({rejected} of {len(CREDENTIAL_FIELD_VARIANTS)} explicitly rejected)"
    )
