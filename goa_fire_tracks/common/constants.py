"""Application constants."""

USER_AGENT = "goa-fire-tracks/1.0 (+fire-truck-map; contact: configured-email)"
COMMANDS = (
    "run",
    "snapshot",
    "tracks",
)
PAYLOAD_FORMATS = ("csv", "json")
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20
TRACK_DESCRIPTION = "Daily GPS tracks of fire trucks"
DEBUG_LOG_FILENAME = "debug-log.jsonl"
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "vehicle",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
