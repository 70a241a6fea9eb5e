"""CLI entrypoint for the Goa fire-truck position and track refresher."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from goa_fire_tracks.common.config_loader import load_all_configs
from goa_fire_tracks.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_SUCCESS, PAYLOAD_FORMATS
from goa_fire_tracks.common.errors import PipelineError
from goa_fire_tracks.common.ids import generate_run_id
from goa_fire_tracks.common.logging import build_logger, log_event
from goa_fire_tracks.common.time_utils import parse_track_date
from goa_fire_tracks.fetch.transports import build_http_client, build_transport
from goa_fire_tracks.runner import run_once


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", nargs="?", default="run", choices=COMMANDS)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--track-date", default=None, help="YYYYMMDD or ISO date; defaults to today")
    parser.add_argument("--payload-file", default=None, help="replay a saved payload instead of calling the API")
    parser.add_argument("--payload-format", default=None, choices=PAYLOAD_FORMATS)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    log_event(logger, "run start", run_id=run_id, stage=args.command, event="RUN_START", status="ok")

    client = None
    try:
        overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
        bundle = load_all_configs(Path(args.config_dir), overlay_config_dir=overlay_config_dir)
        track_date = parse_track_date(args.track_date, bundle.settings["tracks"]["timezone"])
        payload_file = Path(args.payload_file) if args.payload_file else None

        if payload_file is None and bundle.settings["source"]["transport"] != "file":
            client = build_http_client(bundle.settings["http"])
        transport = build_transport(
            bundle.settings,
            client,
            payload_file=payload_file,
            payload_format=args.payload_format,
        )
        outcome = run_once(
            args.command,
            bundle,
            transport,
            data_dir=data_dir,
            run_id=run_id,
            track_date=track_date,
        )
    except PipelineError as exc:
        log_event(
            logger,
            f"run failed: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage=args.command,
            event="RUN_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    except Exception:
        logger.exception(
            "unexpected failure",
            extra={"run_id": run_id, "stage": args.command, "event": "RUN_FAIL", "status": "error", "error_code": "UNEXPECTED_ERROR"},
        )
        return EXIT_HARD_FAIL
    finally:
        if client is not None:
            client.close()

    log_event(
        logger,
        "run end",
        run_id=run_id,
        stage=args.command,
        event="RUN_END",
        status="ok",
        rows_in=outcome.normalised.rows_in,
        rows_out=len(outcome.normalised.records),
    )
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
