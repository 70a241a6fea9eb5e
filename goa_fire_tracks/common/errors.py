"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for run failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that abort the run."""

    error_code = "STAGE_ERROR"


class TransportError(StageError):
    """Raised when the upstream feed cannot be reached or answers badly."""

    error_code = "TRANSPORT_ERROR"


class AuthenticationExhausted(TransportError):
    """Raised when no credential field variant yields a usable token."""

    error_code = "AUTH_EXHAUSTED"


class MalformedPayload(PipelineError):
    """Raised when a payload holds no recognisable vehicle records."""

    error_code = "MALFORMED_PAYLOAD"
