"""Run summary report."""

from __future__ import annotations

from pathlib import Path

from goa_fire_tracks.common.fs import write_json
from goa_fire_tracks.pipeline.normalise import NormaliseResult
from goa_fire_tracks.pipeline.tracks import TrackUpdate


def write_run_summary(
    data_dir: Path,
    *,
    run_id: str,
    command: str,
    normalised: NormaliseResult,
    snapshot_path: Path | None,
    track_update: TrackUpdate | None,
) -> Path:
    counts = {
        "rows_in": normalised.rows_in,
        "resolved": len(normalised.records),
        "dropped_no_id": normalised.dropped_no_id,
        "dropped_unresolved": normalised.dropped_unresolved,
    }
    warnings: list[str] = []
    if normalised.rows_in == 0:
        warnings.append("EMPTY_PAYLOAD")
    if normalised.dropped_unresolved:
        warnings.append("UNRESOLVED_ROWS")

    tracks = None
    if track_update is not None:
        tracks = {
            "path": str(track_update.path),
            "vehicle_count": len(track_update.collection["features"]),
            "vehicles_created": track_update.vehicles_created,
            "points_appended": track_update.points_appended,
            "duplicates_suppressed": track_update.duplicates_suppressed,
        }
        if track_update.recovered_corrupt_path is not None:
            warnings.append("CORRUPT_TRACK_REPLACED")
            tracks["corrupt_preserved_as"] = str(track_update.recovered_corrupt_path)

    payload = {
        "run_id": run_id,
        "command": command,
        "status": "partial" if warnings else "success",
        "counts": counts,
        "strategy_counts": dict(sorted(normalised.strategy_counts.items())),
        "snapshot_path": str(snapshot_path) if snapshot_path is not None else None,
        "tracks": tracks,
        "warnings": warnings,
    }
    summary_path = data_dir / "run_meta" / "last_run.json"
    write_json(summary_path, payload)
    return summary_path
