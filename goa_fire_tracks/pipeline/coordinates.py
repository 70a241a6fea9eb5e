"""Coordinate recovery for feed rows with misplaced latitude/longitude columns.

The upstream feed does not reliably put positions in ``Latitude`` and
``Longitude``; depending on the vehicle and the payload version they turn up
in door, ignition, power or status columns. Strategies below are tried in
order and the first one yielding an in-bounds pair wins.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable

from goa_fire_tracks.common.models import BoundingBox, GeoPoint, RawRecord, Resolution

LAT_NAME_HINTS = ("lat",)
LON_NAME_HINTS = ("lon", "lng")

SCORE_NAMED = 10
SCORE_MISPLACEMENT = 8
SCORE_OTHER = 5


@dataclass(frozen=True)
class ResolverRules:
    bbox: BoundingBox
    overrides: dict[str, tuple[str, str]]
    known_pairs: tuple[tuple[str, str], ...]
    window_fields: tuple[str, ...]
    misplacement_fields: frozenset[str]

    @classmethod
    def from_config(cls, bbox_cfg: dict, rules_cfg: dict) -> "ResolverRules":
        return cls(
            bbox=BoundingBox.from_config(bbox_cfg),
            overrides={
                str(vehicle_id): (fields["lat"], fields["lng"])
                for vehicle_id, fields in (rules_cfg.get("overrides") or {}).items()
            },
            known_pairs=tuple((lat, lng) for lat, lng in rules_cfg.get("known_pairs") or []),
            window_fields=tuple(rules_cfg.get("window_fields") or []),
            misplacement_fields=frozenset(rules_cfg.get("misplacement_fields") or []),
        )


def parse_number(value: Any) -> float | None:
    """Parse a feed value as a finite float, accepting a decimal comma."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        # float() would accept digit-group underscores such as "1_5.5".
        if not text or "_" in text:
            return None
        if "," in text and "." not in text and text.count(",") == 1:
            text = text.replace(",", ".")
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _pair_from_fields(record: RawRecord, lat_field: str, lng_field: str, rules: ResolverRules) -> GeoPoint | None:
    if lat_field not in record or lng_field not in record:
        return None
    return GeoPoint.validated(parse_number(record[lat_field]), parse_number(record[lng_field]), rules.bbox)


def _resolve_override(record: RawRecord, rules: ResolverRules) -> Resolution | None:
    vehicle_id = str(record.get("Vehicle_No") or "").strip()
    fields = rules.overrides.get(vehicle_id)
    if fields is None:
        return None
    lat_field, lng_field = fields
    point = _pair_from_fields(record, lat_field, lng_field, rules)
    if point is None:
        return None
    return Resolution(point=point, strategy="override", lat_field=lat_field, lng_field=lng_field)


def _resolve_known_pair(record: RawRecord, rules: ResolverRules) -> Resolution | None:
    for lat_field, lng_field in rules.known_pairs:
        point = _pair_from_fields(record, lat_field, lng_field, rules)
        if point is not None:
            return Resolution(point=point, strategy="known_pair", lat_field=lat_field, lng_field=lng_field)
    return None


def _resolve_sliding_window(record: RawRecord, rules: ResolverRules) -> Resolution | None:
    fields = rules.window_fields
    for first, second in zip(fields, fields[1:]):
        for lat_field, lng_field in ((first, second), (second, first)):
            point = _pair_from_fields(record, lat_field, lng_field, rules)
            if point is not None:
                return Resolution(point=point, strategy="sliding_window", lat_field=lat_field, lng_field=lng_field)
    return None


def _field_score(field_name: str, hints: tuple[str, ...], rules: ResolverRules) -> int:
    lowered = field_name.lower()
    if any(hint in lowered for hint in hints):
        return SCORE_NAMED
    if field_name in rules.misplacement_fields:
        return SCORE_MISPLACEMENT
    return SCORE_OTHER


def _resolve_confidence_scan(record: RawRecord, rules: ResolverRules) -> Resolution | None:
    best_lat: tuple[int, str, float] | None = None
    best_lng: tuple[int, str, float] | None = None

    for field_name, raw_value in record.items():
        value = parse_number(raw_value)
        if value is None:
            continue
        if rules.bbox.lat_in_range(value):
            score = _field_score(field_name, LAT_NAME_HINTS, rules)
            if best_lat is None or score > best_lat[0]:
                best_lat = (score, field_name, value)
        if rules.bbox.lon_in_range(value):
            score = _field_score(field_name, LON_NAME_HINTS, rules)
            if best_lng is None or score > best_lng[0]:
                best_lng = (score, field_name, value)

    if best_lat is None or best_lng is None:
        return None
    point = GeoPoint.validated(best_lat[2], best_lng[2], rules.bbox)
    if point is None:
        return None
    return Resolution(point=point, strategy="confidence_scan", lat_field=best_lat[1], lng_field=best_lng[1])


STRATEGIES: tuple[Callable[[RawRecord, ResolverRules], Resolution | None], ...] = (
    _resolve_override,
    _resolve_known_pair,
    _resolve_sliding_window,
    _resolve_confidence_scan,
)


def resolve_coordinates(record: RawRecord, rules: ResolverRules) -> Resolution | None:
    for strategy in STRATEGIES:
        resolution = strategy(record, rules)
        if resolution is not None:
            return resolution
    return None
