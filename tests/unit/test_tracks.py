import json
from pathlib import Path

import pytest

from goa_fire_tracks.common.models import GeoPoint, VehicleRecord
from goa_fire_tracks.pipeline.tracks import accumulate_tracks, track_path


def _record(vehicle_id: str, lat: float, lng: float, timestamp: str = "2026-10-18 09:00:00") -> VehicleRecord:
    return VehicleRecord(
        vehicle_id=vehicle_id,
        name="Water Tender",
        branch="Panaji",
        timestamp=timestamp,
        position=GeoPoint(lat=lat, lng=lng),
        coordinate_source="known_pair:Latitude/Longitude",
    )


def _accumulate(path: Path, records, run_id: str = "run-1"):
    return accumulate_tracks(
        records,
        track_date="20261018",
        path=path,
        source_label="DFES",
        run_id=run_id,
        timestamp="2026-10-18T09:30:00.000Z",
    )


def test_track_path_uses_date_template(tmp_path: Path):
    path = track_path(tmp_path, "goa-fire-trucks-gpx-{date}.geojson", "20261018")
    assert path == tmp_path / "goa-fire-trucks-gpx-20261018.geojson"


def test_first_sighting_creates_line_string_with_metadata(tmp_path: Path):
    path = tmp_path / "tracks.geojson"

    update = _accumulate(path, [_record("V1", 15.5, 73.9)])

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert update.vehicles_created == 1
    assert payload["metadata"]["date"] == "20261018"
    assert payload["metadata"]["source"] == "DFES"
    assert payload["metadata"]["count"] == 1
    assert payload["metadata"]["lastUpdated"] == "2026-10-18T09:30:00.000Z"
    feature = payload["features"][0]
    assert feature["geometry"] == {"type": "LineString", "coordinates": [[73.9, 15.5]]}
    assert feature["properties"]["Vehicle_No"] == "V1"
    assert feature["properties"]["created"] == "2026-10-18 09:00:00"
    assert feature["properties"]["lastUpdated"] == "2026-10-18 09:00:00"


def test_repeated_point_is_not_appended(tmp_path: Path):
    path = tmp_path / "tracks.geojson"

    _accumulate(path, [_record("V1", 15.5, 73.9)], run_id="run-1")
    update = _accumulate(path, [_record("V1", 15.5, 73.9, timestamp="2026-10-18 09:05:00")], run_id="run-2")

    payload = json.loads(path.read_text(encoding="utf-8"))
    feature = payload["features"][0]
    assert feature["geometry"]["coordinates"] == [[73.9, 15.5]]
    assert feature["properties"]["lastUpdated"] == "2026-10-18 09:00:00"
    assert update.duplicates_suppressed == 1
    assert update.points_appended == 0


def test_moved_point_is_appended_and_distance_grows(tmp_path: Path):
    path = tmp_path / "tracks.geojson"

    _accumulate(path, [_record("V1", 15.5, 73.9), _record("V2", 15.2, 74.0)])
    _accumulate(path, [_record("V1", 15.51, 73.9, timestamp="2026-10-18 09:05:00")], run_id="run-2")

    payload = json.loads(path.read_text(encoding="utf-8"))
    by_vehicle = {f["properties"]["Vehicle_No"]: f for f in payload["features"]}
    v1 = by_vehicle["V1"]
    assert v1["geometry"]["coordinates"] == [[73.9, 15.5], [73.9, 15.51]]
    assert v1["properties"]["lastUpdated"] == "2026-10-18 09:05:00"
    assert v1["properties"]["point_count"] == 2
    assert 1000 < v1["properties"]["distance_m"] < 1200
    assert by_vehicle["V2"]["geometry"]["coordinates"] == [[74.0, 15.2]]
    assert payload["metadata"]["count"] == 2


def test_stationary_then_moving_only_suppresses_consecutive_duplicates(tmp_path: Path):
    path = tmp_path / "tracks.geojson"
    records = [
        _record("V1", 15.5, 73.9),
        _record("V1", 15.5, 73.9),
        _record("V1", 15.6, 73.9),
        _record("V1", 15.5, 73.9),
    ]

    _accumulate(path, records)

    coordinates = json.loads(path.read_text(encoding="utf-8"))["features"][0]["geometry"]["coordinates"]
    assert coordinates == [[73.9, 15.5], [73.9, 15.6], [73.9, 15.5]]


def test_corrupt_track_file_is_preserved_and_replaced(tmp_path: Path):
    path = tmp_path / "tracks.geojson"
    path.write_text("{ truncated", encoding="utf-8")

    update = _accumulate(path, [_record("V1", 15.5, 73.9)], run_id="run-9")

    preserved = tmp_path / "tracks.geojson.corrupt-run-9"
    assert update.recovered_corrupt_path == preserved
    assert preserved.read_text(encoding="utf-8") == "{ truncated"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["metadata"]["count"] == 1


def test_structurally_invalid_track_file_counts_as_corrupt(tmp_path: Path):
    path = tmp_path / "tracks.geojson"
    path.write_text(json.dumps({"type": "FeatureCollection", "features": [{"geometry": None}]}), encoding="utf-8")

    update = _accumulate(path, [_record("V1", 15.5, 73.9)])

    assert update.recovered_corrupt_path is not None
    assert update.vehicles_created == 1


@pytest.mark.parametrize("bad_coordinates", [[[]], [None], [[73.9]], [[73.9, "15.5"]], [[73.9, 15.5], [True, 15.5]]])
def test_track_file_with_malformed_points_counts_as_corrupt(tmp_path: Path, bad_coordinates):
    path = tmp_path / "tracks.geojson"
    feature = {
        "type": "Feature",
        "geometry": {"type": "LineString", "coordinates": bad_coordinates},
        "properties": {"Vehicle_No": "V1"},
    }
    path.write_text(json.dumps({"type": "FeatureCollection", "features": [feature]}), encoding="utf-8")

    update = _accumulate(path, [_record("V1", 15.5, 73.9)], run_id="run-7")

    assert update.recovered_corrupt_path == tmp_path / "tracks.geojson.corrupt-run-7"
    assert update.vehicles_created == 1
    written = json.loads(path.read_text(encoding="utf-8"))
    assert written["features"][0]["geometry"]["coordinates"] == [[73.9, 15.5]]


def test_other_days_files_are_left_untouched(tmp_path: Path):
    yesterday = tmp_path / "goa-fire-trucks-gpx-20261017.geojson"
    yesterday.write_text('{"type": "FeatureCollection", "features": []}\n', encoding="utf-8")
    before = yesterday.read_bytes()

    _accumulate(track_path(tmp_path, "goa-fire-trucks-gpx-{date}.geojson", "20261018"), [_record("V1", 15.5, 73.9)])

    assert yesterday.read_bytes() == before
    assert (tmp_path / "goa-fire-trucks-gpx-20261018.geojson").exists()
