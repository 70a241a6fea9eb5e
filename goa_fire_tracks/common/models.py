"""Data models used across the pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Union

RawRecord = dict[str, Union[str, int, float]]


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @classmethod
    def from_config(cls, bbox: dict) -> "BoundingBox":
        return cls(
            min_lat=float(bbox["min_lat"]),
            max_lat=float(bbox["max_lat"]),
            min_lon=float(bbox["min_lon"]),
            max_lon=float(bbox["max_lon"]),
        )

    def lat_in_range(self, value: float) -> bool:
        return self.min_lat <= value <= self.max_lat

    def lon_in_range(self, value: float) -> bool:
        return self.min_lon <= value <= self.max_lon


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    @classmethod
    def validated(cls, lat: float | None, lng: float | None, bbox: BoundingBox) -> "GeoPoint | None":
        if lat is None or lng is None:
            return None
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return None
        if not (bbox.lat_in_range(lat) and bbox.lon_in_range(lng)):
            return None
        return cls(lat=lat, lng=lng)

    def as_lnglat(self) -> list[float]:
        return [self.lng, self.lat]


@dataclass(frozen=True)
class Resolution:
    point: GeoPoint
    strategy: str
    lat_field: str
    lng_field: str


@dataclass(frozen=True)
class VehicleRecord:
    vehicle_id: str
    name: str
    branch: str
    timestamp: str
    position: GeoPoint
    coordinate_source: str
    extra: dict[str, Any] = field(default_factory=dict)

    def properties(self) -> dict[str, Any]:
        props = dict(self.extra)
        props.update(
            {
                "Vehicle_No": self.vehicle_id,
                "Vehicle_Name": self.name,
                "Branch": self.branch,
                "Datetime": self.timestamp,
                "coordinate_source": self.coordinate_source,
            }
        )
        return props
