import copy

import pytest

from goa_fire_tracks.common.errors import ConfigError
from goa_fire_tracks.common.schema import validate_resolver_rules_config, validate_settings_config

BASE_SETTINGS = {
    "source": {
        "label": "DFES",
        "transport": "csv",
        "csv": {"url": "https://example.test/webservice", "token": "getLiveData", "company": "DFES"},
        "credentials": {"user": "", "password": ""},
    },
    "http": {"connect_timeout_seconds": 5, "read_timeout_seconds": 10, "max_attempts": 1, "verify_tls": True},
    "validation": {"bbox_wgs84": {"min_lat": 14.5, "max_lat": 16.0, "min_lon": 73.5, "max_lon": 74.5}},
    "output": {"snapshot_filename": "goa-fire-trucks.geojson"},
    "tracks": {"directory": ".", "filename_template": "tracks-{date}.geojson", "timezone": "UTC"},
}

BASE_RULES = {
    "overrides": {"GA07G0308": {"lat": "Door1", "lng": "Door2"}},
    "known_pairs": [["Latitude", "Longitude"]],
    "window_fields": ["Latitude", "Longitude"],
    "misplacement_fields": ["Door1"],
}


def test_validate_settings_accepts_valid_shape():
    validated = validate_settings_config(copy.deepcopy(BASE_SETTINGS))
    assert validated["source"]["transport"] == "csv"


def test_validate_settings_rejects_unknown_key_by_default():
    bad = copy.deepcopy(BASE_SETTINGS)
    bad["unexpected"] = True
    with pytest.raises(ConfigError):
        validate_settings_config(bad)

    validate_settings_config(bad, allow_unknown=True)


def test_validate_settings_requires_json_data_url():
    bad = copy.deepcopy(BASE_SETTINGS)
    bad["source"]["transport"] = "json"
    bad["source"]["json"] = {"auth_url": None, "data_url": None}
    with pytest.raises(ConfigError):
        validate_settings_config(bad)


def test_validate_settings_rejects_inverted_bbox_and_dateless_template():
    bad = copy.deepcopy(BASE_SETTINGS)
    bad["validation"]["bbox_wgs84"]["min_lat"] = 17.0
    with pytest.raises(ConfigError):
        validate_settings_config(bad)

    bad = copy.deepcopy(BASE_SETTINGS)
    bad["tracks"]["filename_template"] = "tracks.geojson"
    with pytest.raises(ConfigError):
        validate_settings_config(bad)


def test_validate_resolver_rules_rejects_three_field_pair():
    bad = copy.deepcopy(BASE_RULES)
    bad["known_pairs"] = [["Door1", "Door2", "IGN"]]
    with pytest.raises(ConfigError):
        validate_resolver_rules_config(bad)


def test_validate_resolver_rules_rejects_override_without_lng():
    bad = copy.deepcopy(BASE_RULES)
    bad["overrides"] = {"GA07G0308": {"lat": "Door1"}}
    with pytest.raises(ConfigError):
        validate_resolver_rules_config(bad)
