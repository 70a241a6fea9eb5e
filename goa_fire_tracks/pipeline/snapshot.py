"""Current-position snapshot export."""

from __future__ import annotations

from pathlib import Path

from goa_fire_tracks.common.fs import write_json
from goa_fire_tracks.common.models import VehicleRecord
from goa_fire_tracks.common.time_utils import utc_timestamp_iso


def _point_feature(record: VehicleRecord) -> dict:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": record.position.as_lnglat()},
        "properties": record.properties(),
    }


def build_snapshot(records: list[VehicleRecord], *, source_label: str, timestamp: str | None = None) -> dict:
    return {
        "type": "FeatureCollection",
        "metadata": {
            "timestamp": timestamp or utc_timestamp_iso(),
            "source": source_label,
            "count": len(records),
        },
        "features": [_point_feature(record) for record in records],
    }


def write_snapshot(
    records: list[VehicleRecord],
    destination: Path,
    *,
    source_label: str,
    timestamp: str | None = None,
) -> dict:
    snapshot = build_snapshot(records, source_label=source_label, timestamp=timestamp)
    write_json(destination, snapshot)
    return snapshot
