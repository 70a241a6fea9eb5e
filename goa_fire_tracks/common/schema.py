"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from goa_fire_tracks.common.constants import PAYLOAD_FORMATS
from goa_fire_tracks.common.errors import ConfigError

TRANSPORTS = (*PAYLOAD_FORMATS, "file")


def _assert_mapping(obj: object, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    _assert_mapping(obj, ctx)
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_field_list(value: object, ctx: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
        raise ConfigError(f"{ctx} must be a list of field names")
    return value


def validate_settings_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"source", "http", "validation", "output", "tracks"}
    _assert_required_keys(cfg, top_required, "settings")
    _assert_no_unknown_keys(cfg, top_required, "settings", allow_unknown)

    source = cfg["source"]
    _assert_required_keys(source, {"label", "transport", "credentials"}, "source")
    if source["transport"] not in TRANSPORTS:
        raise ConfigError(f"source.transport must be one of: {', '.join(TRANSPORTS)}")
    if source["transport"] == "csv":
        _assert_required_keys(source.get("csv"), {"url", "token", "company"}, "source.csv")
    if source["transport"] == "json":
        json_cfg = source.get("json")
        _assert_required_keys(json_cfg, {"auth_url", "data_url"}, "source.json")
        if not json_cfg["data_url"]:
            raise ConfigError("source.json.data_url is required for transport=json")
    if source["transport"] == "file":
        _assert_required_keys(source.get("file"), {"path"}, "source.file")
    _assert_required_keys(source["credentials"], {"user", "password"}, "source.credentials")

    _assert_required_keys(
        cfg["http"],
        {"connect_timeout_seconds", "read_timeout_seconds", "max_attempts", "verify_tls"},
        "http",
    )
    if int(cfg["http"]["max_attempts"]) < 1:
        raise ConfigError("http.max_attempts must be at least 1")

    _assert_required_keys(cfg["validation"], {"bbox_wgs84"}, "validation")
    bbox = cfg["validation"]["bbox_wgs84"]
    _assert_required_keys(bbox, {"min_lat", "max_lat", "min_lon", "max_lon"}, "validation.bbox_wgs84")
    if bbox["min_lat"] > bbox["max_lat"] or bbox["min_lon"] > bbox["max_lon"]:
        raise ConfigError("validation.bbox_wgs84 has inverted bounds")

    _assert_required_keys(cfg["output"], {"snapshot_filename"}, "output")
    _assert_required_keys(cfg["tracks"], {"directory", "filename_template", "timezone"}, "tracks")
    if "{date}" not in cfg["tracks"]["filename_template"]:
        raise ConfigError("tracks.filename_template must contain {date}")

    return cfg


def validate_resolver_rules_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    required = {"overrides", "known_pairs", "window_fields", "misplacement_fields"}
    _assert_required_keys(cfg, required, "resolver_rules")
    _assert_no_unknown_keys(cfg, required, "resolver_rules", allow_unknown)

    overrides = cfg["overrides"] or {}
    _assert_mapping(overrides, "resolver_rules.overrides")
    for vehicle_id, fields in overrides.items():
        _assert_required_keys(fields, {"lat", "lng"}, f"resolver_rules.overrides.{vehicle_id}")
    cfg["overrides"] = overrides

    pairs = cfg["known_pairs"] or []
    for idx, pair in enumerate(pairs):
        _assert_field_list(pair, f"resolver_rules.known_pairs[{idx}]")
        if len(pair) != 2:
            raise ConfigError(f"resolver_rules.known_pairs[{idx}] must hold exactly two fields")
    cfg["known_pairs"] = pairs

    cfg["window_fields"] = _assert_field_list(cfg["window_fields"] or [], "resolver_rules.window_fields")
    cfg["misplacement_fields"] = _assert_field_list(
        cfg["misplacement_fields"] or [], "resolver_rules.misplacement_fields"
    )
    return cfg
