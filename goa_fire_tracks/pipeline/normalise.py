"""Payload parsing and per-record normalisation into vehicle records."""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable

from goa_fire_tracks.common.errors import MalformedPayload
from goa_fire_tracks.common.logging import get_logger, log_event
from goa_fire_tracks.common.models import RawRecord, VehicleRecord
from goa_fire_tracks.pipeline.coordinates import ResolverRules, resolve_coordinates

CSV_HEADER_PREFIX = "Company,"
NO_DATA_MARKER = "No Data Found"
# Keys lifted out of the raw row into VehicleRecord fields.
IDENTITY_FIELDS = ("Vehicle_No", "Vehicle_Name", "Branch", "Datetime")
POSITION_FIELDS = ("Latitude", "Longitude")


@dataclass
class NormaliseResult:
    records: list[VehicleRecord]
    rows_in: int
    dropped_no_id: int = 0
    dropped_unresolved: int = 0
    strategy_counts: dict[str, int] = field(default_factory=dict)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_csv_blocks(text: str) -> list[RawRecord]:
    """Parse the feed's repeated header/data line blocks.

    Only the feed's actual shape is handled: a ``Company,`` header line
    followed by at most one data line. Quoted commas are not supported.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    records: list[RawRecord] = []
    headers: list[str] | None = None

    for line in lines:
        if line.startswith(CSV_HEADER_PREFIX):
            headers = [header.strip() for header in line.split(",")]
            continue
        if headers is None:
            continue
        if NO_DATA_MARKER in line:
            break
        values = line.split(",")
        records.append(
            {header: _unquote(values[idx]) if idx < len(values) else "" for idx, header in enumerate(headers)}
        )
        headers = None

    return records


def _extract_root_vehicle_data(payload: Any) -> list | None:
    if isinstance(payload, dict):
        root = payload.get("root")
        if isinstance(root, dict) and isinstance(root.get("VehicleData"), list):
            return root["VehicleData"]
    return None


def _extract_top_level_array(payload: Any) -> list | None:
    if isinstance(payload, list):
        return payload
    return None


def _extract_data_array(payload: Any) -> list | None:
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    return None


JSON_EXTRACTORS: tuple[Callable[[Any], list | None], ...] = (
    _extract_root_vehicle_data,
    _extract_top_level_array,
    _extract_data_array,
)


def extract_json_records(payload: Any) -> list[RawRecord]:
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise MalformedPayload("JSON payload could not be decoded") from exc

    for extractor in JSON_EXTRACTORS:
        items = extractor(payload)
        if items is not None:
            return [item for item in items if isinstance(item, dict)]
    raise MalformedPayload("JSON payload has no known vehicle array location")


def parse_payload(payload: Any, fmt: str) -> list[RawRecord]:
    """Split a raw payload into raw records; malformed payloads yield none."""
    logger = get_logger()
    if fmt == "csv":
        text = payload.decode("utf-8") if isinstance(payload, bytes) else str(payload or "")
        return parse_csv_blocks(text)
    if fmt == "json":
        try:
            return extract_json_records(payload)
        except MalformedPayload as exc:
            log_event(
                logger,
                str(exc),
                level=logging.WARNING,
                stage="normalise",
                event="MALFORMED_PAYLOAD",
                status="warning",
                error_code=exc.error_code,
            )
            return []
    raise ValueError(f"Unsupported payload format: {fmt}")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalise_records(
    raw_records: list[RawRecord],
    rules: ResolverRules,
    *,
    default_timestamp: str,
) -> NormaliseResult:
    logger = get_logger()
    result = NormaliseResult(records=[], rows_in=len(raw_records))
    strategy_counts: Counter[str] = Counter()

    for raw in raw_records:
        vehicle_id = _as_text(raw.get("Vehicle_No"))
        if not vehicle_id:
            result.dropped_no_id += 1
            log_event(
                logger,
                "dropping row without vehicle id",
                level=logging.DEBUG,
                stage="normalise",
                event="ROW_DROPPED",
                status="skipped",
            )
            continue

        resolution = resolve_coordinates(raw, rules)
        if resolution is None:
            result.dropped_unresolved += 1
            log_event(
                logger,
                "no plausible coordinates in row",
                level=logging.DEBUG,
                stage="normalise",
                event="ROW_UNRESOLVED",
                status="skipped",
                vehicle=vehicle_id,
            )
            continue

        strategy_counts[resolution.strategy] += 1
        extra = {
            key: value
            for key, value in raw.items()
            if key not in IDENTITY_FIELDS and key not in POSITION_FIELDS
        }
        result.records.append(
            VehicleRecord(
                vehicle_id=vehicle_id,
                name=_as_text(raw.get("Vehicle_Name")),
                branch=_as_text(raw.get("Branch")),
                timestamp=_as_text(raw.get("Datetime")) or default_timestamp,
                position=resolution.point,
                coordinate_source=f"{resolution.strategy}:{resolution.lat_field}/{resolution.lng_field}",
                extra=extra,
            )
        )

    result.strategy_counts = dict(strategy_counts)
    log_event(
        logger,
        "normalised feed rows",
        stage="normalise",
        event="NORMALISE_DONE",
        status="ok",
        rows_in=result.rows_in,
        rows_out=len(result.records),
    )
    return result
