"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from goa_fire_tracks.common.errors import ConfigError
from goa_fire_tracks.common.fs import read_yaml
from goa_fire_tracks.common.schema import validate_resolver_rules_config, validate_settings_config

SETTINGS_FILENAME = "fire_trucks.yml"
RESOLVER_RULES_FILENAME = "resolver_rules.yml"


@dataclass(frozen=True)
class ConfigBundle:
    settings: dict
    resolver_rules: dict


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if not isinstance(base, dict):
        raise ConfigError(f"Config file must hold a mapping: {path}")
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must hold a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_all_configs(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    def _overlay(name: str) -> Path | None:
        return (overlay_config_dir / name) if overlay_config_dir is not None else None

    settings = validate_settings_config(
        _load_yaml_with_overlay(config_dir / SETTINGS_FILENAME, _overlay(SETTINGS_FILENAME)),
        allow_unknown=allow_unknown,
    )
    rules = validate_resolver_rules_config(
        _load_yaml_with_overlay(config_dir / RESOLVER_RULES_FILENAME, _overlay(RESOLVER_RULES_FILENAME)),
        allow_unknown=allow_unknown,
    )
    return ConfigBundle(settings=settings, resolver_rules=rules)


def resolve_credentials(credentials_cfg: dict, environ: dict[str, str] | None = None) -> tuple[str, str]:
    """Return (user, password), preferring the environment variables the config names."""
    env = os.environ if environ is None else environ
    user = credentials_cfg.get("user") or ""
    password = credentials_cfg.get("password") or ""
    user_env = credentials_cfg.get("user_env")
    password_env = credentials_cfg.get("password_env")
    if user_env and env.get(user_env):
        user = env[user_env]
    if password_env and env.get(password_env):
        password = env[password_env]
    return user, password
