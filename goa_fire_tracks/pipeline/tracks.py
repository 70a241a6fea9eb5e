"""Daily per-vehicle track accumulation.

One GeoJSON file per calendar day holds a LineString per vehicle. Each run
reads the day's file, appends the newly observed positions, and writes it
back. A point identical to the vehicle's previous point is not appended, so a
parked truck does not grow its track.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pyproj import Geod

from goa_fire_tracks.common.constants import TRACK_DESCRIPTION
from goa_fire_tracks.common.fs import read_json, write_json
from goa_fire_tracks.common.logging import get_logger, log_event
from goa_fire_tracks.common.models import VehicleRecord
from goa_fire_tracks.common.time_utils import utc_timestamp_iso

_GEOD = Geod(ellps="WGS84")


@dataclass
class TrackUpdate:
    path: Path
    collection: dict
    vehicles_created: int = 0
    points_appended: int = 0
    duplicates_suppressed: int = 0
    recovered_corrupt_path: Path | None = None


def track_path(tracks_dir: Path, filename_template: str, track_date: str) -> Path:
    return tracks_dir / filename_template.format(date=track_date)


def empty_track_collection(track_date: str, source_label: str) -> dict:
    return {
        "type": "FeatureCollection",
        "metadata": {
            "date": track_date,
            "source": source_label,
            "description": TRACK_DESCRIPTION,
        },
        "features": [],
    }


def _is_position(point: Any) -> bool:
    return (
        isinstance(point, list)
        and len(point) >= 2
        and all(
            isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
            for value in point[:2]
        )
    )


def _is_track_feature(feature: Any) -> bool:
    if not isinstance(feature, dict):
        return False
    geometry = feature.get("geometry")
    return (
        isinstance(geometry, dict)
        and geometry.get("type") == "LineString"
        and isinstance(geometry.get("coordinates"), list)
        and all(_is_position(point) for point in geometry["coordinates"])
        and isinstance(feature.get("properties"), dict)
    )


def _is_track_collection(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and payload.get("type") == "FeatureCollection"
        and isinstance(payload.get("features"), list)
        and all(_is_track_feature(feature) for feature in payload["features"])
    )


def load_track_collection(
    path: Path,
    *,
    track_date: str,
    source_label: str,
    run_id: str,
) -> tuple[dict, Path | None]:
    """Load a day's tracks, setting aside an unreadable file and starting fresh."""
    logger = get_logger()
    if not path.exists():
        log_event(logger, f"starting new track file for {track_date}", stage="tracks", event="TRACKS_NEW", status="ok")
        return empty_track_collection(track_date, source_label), None

    try:
        payload = read_json(path)
    except (OSError, ValueError):
        payload = None

    if _is_track_collection(payload):
        if not isinstance(payload.get("metadata"), dict):
            payload["metadata"] = empty_track_collection(track_date, source_label)["metadata"]
        log_event(logger, f"loaded existing track file for {track_date}", stage="tracks", event="TRACKS_LOADED", status="ok")
        return payload, None

    corrupt_path = path.with_name(f"{path.name}.corrupt-{run_id}")
    os.replace(path, corrupt_path)
    log_event(
        logger,
        f"track file for {track_date} is unreadable, preserved as {corrupt_path.name} and starting fresh",
        level=logging.WARNING,
        stage="tracks",
        event="TRACKS_CORRUPT",
        status="warning",
        error_code="CORRUPT_TRACK",
    )
    return empty_track_collection(track_date, source_label), corrupt_path


def _line_length_m(coordinates: list) -> float:
    if len(coordinates) < 2:
        return 0.0
    lons = [point[0] for point in coordinates]
    lats = [point[1] for point in coordinates]
    return round(_GEOD.line_length(lons, lats), 1)


def _new_track_feature(record: VehicleRecord) -> dict:
    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": [record.position.as_lnglat()],
        },
        "properties": {
            "Vehicle_No": record.vehicle_id,
            "Vehicle_Name": record.name,
            "Branch": record.branch,
            "created": record.timestamp,
            "lastUpdated": record.timestamp,
            "point_count": 1,
            "distance_m": 0.0,
        },
    }


def merge_records_into_tracks(collection: dict, records: list[VehicleRecord], update: TrackUpdate) -> None:
    features = collection["features"]
    index_by_vehicle: dict[str, int] = {}
    for idx, feature in enumerate(features):
        vehicle_id = feature["properties"].get("Vehicle_No")
        if vehicle_id:
            index_by_vehicle.setdefault(str(vehicle_id), idx)

    for record in records:
        idx = index_by_vehicle.get(record.vehicle_id)
        if idx is None:
            features.append(_new_track_feature(record))
            index_by_vehicle[record.vehicle_id] = len(features) - 1
            update.vehicles_created += 1
            continue

        feature = features[idx]
        coordinates = feature["geometry"]["coordinates"]
        point = record.position.as_lnglat()
        last = coordinates[-1] if coordinates else None
        if last is not None and last[0] == point[0] and last[1] == point[1]:
            update.duplicates_suppressed += 1
            continue

        coordinates.append(point)
        properties = feature["properties"]
        properties["lastUpdated"] = record.timestamp
        properties["point_count"] = len(coordinates)
        properties["distance_m"] = _line_length_m(coordinates)
        update.points_appended += 1


def accumulate_tracks(
    records: list[VehicleRecord],
    *,
    track_date: str,
    path: Path,
    source_label: str,
    run_id: str,
    timestamp: str | None = None,
) -> TrackUpdate:
    collection, corrupt_path = load_track_collection(
        path,
        track_date=track_date,
        source_label=source_label,
        run_id=run_id,
    )
    update = TrackUpdate(path=path, collection=collection, recovered_corrupt_path=corrupt_path)
    merge_records_into_tracks(collection, records, update)

    collection["metadata"]["lastUpdated"] = timestamp or utc_timestamp_iso()
    collection["metadata"]["count"] = len(collection["features"])
    write_json(path, collection)

    log_event(
        get_logger(),
        f"updated track file with {len(collection['features'])} vehicle tracks",
        stage="tracks",
        event="TRACKS_WRITTEN",
        status="ok",
        rows_in=len(records),
        rows_out=update.points_appended + update.vehicles_created,
    )
    return update
