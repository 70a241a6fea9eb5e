from goa_fire_tracks.cli import parse_args


def test_parse_args_defaults():
    args = parse_args([])
    assert args.command == "run"
    assert args.config_dir == "./config"
    assert args.overlay_config_dir is None
    assert args.payload_file is None
    assert args.track_date is None


def test_parse_args_accepts_replay_options():
    args = parse_args(["tracks", "--payload-file", "saved.csv", "--payload-format", "csv", "--track-date", "20261018"])
    assert args.command == "tracks"
    assert args.payload_file == "saved.csv"
    assert args.payload_format == "csv"
    assert args.track_date == "20261018"
