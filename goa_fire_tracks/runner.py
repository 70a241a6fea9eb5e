"""Single-run orchestration: fetch, normalise, snapshot, tracks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from goa_fire_tracks.common.config_loader import ConfigBundle
from goa_fire_tracks.common.logging import get_logger, log_event
from goa_fire_tracks.common.time_utils import utc_timestamp_iso
from goa_fire_tracks.fetch.transports import Transport
from goa_fire_tracks.pipeline.coordinates import ResolverRules
from goa_fire_tracks.pipeline.normalise import NormaliseResult, normalise_records, parse_payload
from goa_fire_tracks.pipeline.reports import write_run_summary
from goa_fire_tracks.pipeline.snapshot import write_snapshot
from goa_fire_tracks.pipeline.tracks import TrackUpdate, accumulate_tracks, track_path

WRITES_SNAPSHOT = {"run", "snapshot"}
WRITES_TRACKS = {"run", "tracks"}


@dataclass
class RunOutcome:
    normalised: NormaliseResult
    snapshot_path: Path | None
    track_update: TrackUpdate | None
    summary_path: Path


def run_once(
    command: str,
    bundle: ConfigBundle,
    transport: Transport,
    *,
    data_dir: Path,
    run_id: str,
    track_date: str,
) -> RunOutcome:
    """Run the pipeline once; fetch failures raise before anything is written."""
    logger = get_logger()
    settings = bundle.settings
    source_label = settings["source"]["label"]
    run_timestamp = utc_timestamp_iso()

    log_event(logger, "fetching upstream payload", run_id=run_id, stage="fetch", event="STAGE_START", status="ok")
    raw = transport.fetch_raw_payload()
    log_event(logger, f"fetched {raw.fmt} payload", run_id=run_id, stage="fetch", event="STAGE_END", status="ok")

    rules = ResolverRules.from_config(settings["validation"]["bbox_wgs84"], bundle.resolver_rules)
    raw_records = parse_payload(raw.payload, raw.fmt)
    normalised = normalise_records(raw_records, rules, default_timestamp=run_timestamp)

    snapshot_path = None
    if command in WRITES_SNAPSHOT:
        snapshot_path = data_dir / settings["output"]["snapshot_filename"]
        write_snapshot(normalised.records, snapshot_path, source_label=source_label, timestamp=run_timestamp)
        log_event(
            logger,
            f"wrote snapshot with {len(normalised.records)} vehicles",
            run_id=run_id,
            stage="snapshot",
            event="SNAPSHOT_WRITTEN",
            status="ok",
            rows_out=len(normalised.records),
        )

    track_update = None
    if command in WRITES_TRACKS:
        tracks_cfg = settings["tracks"]
        path = track_path(data_dir / tracks_cfg["directory"], tracks_cfg["filename_template"], track_date)
        track_update = accumulate_tracks(
            normalised.records,
            track_date=track_date,
            path=path,
            source_label=source_label,
            run_id=run_id,
            timestamp=run_timestamp,
        )

    summary_path = write_run_summary(
        data_dir,
        run_id=run_id,
        command=command,
        normalised=normalised,
        snapshot_path=snapshot_path,
        track_update=track_update,
    )
    return RunOutcome(
        normalised=normalised,
        snapshot_path=snapshot_path,
        track_update=track_update,
        summary_path=summary_path,
    )
