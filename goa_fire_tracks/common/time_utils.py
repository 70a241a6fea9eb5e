"""Clock helpers for run metadata and track-day naming."""

from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from goa_fire_tracks.common.errors import ConfigError


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _zone(timezone_name: str) -> tzinfo:
    if timezone_name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {timezone_name}") from exc


def track_date_for(moment: datetime, timezone_name: str = "UTC") -> str:
    """Return the YYYYMMDD day a moment falls on in the given timezone."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(_zone(timezone_name)).strftime("%Y%m%d")


def parse_track_date(value: str | None, timezone_name: str = "UTC") -> str:
    if not value:
        return track_date_for(datetime.now(tz=timezone.utc), timezone_name)
    cleaned = value.strip()
    try:
        if len(cleaned) == 8 and cleaned.isdigit():
            parsed = datetime.strptime(cleaned, "%Y%m%d").date()
        else:
            parsed = date.fromisoformat(cleaned)
    except ValueError as exc:
        raise ConfigError(f"Invalid track date: {value}") from exc
    return parsed.strftime("%Y%m%d")
