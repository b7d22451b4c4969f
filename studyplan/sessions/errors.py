"""Pipeline-level error types for session ingestion.

Only structural failures are exceptions:
- PARSE_ERROR: the upload cannot be read as the declared format at all
- UNSUPPORTED_FORMAT: the upload is not CSV, JSON or XML
- LIMIT_EXCEEDED: a bulk request is larger than the hard cap

Per-row validation issues and per-item persistence failures are reported as
data (ImportRow errors/warnings, BulkOutcome.failed), never raised.
"""


class SessionPipelineError(Exception):
    """Base error for the ingestion pipeline.

    Attributes:
        code: Stable error code for API consumers
        message: User-safe message
    """

    code = "PIPELINE_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ParseError(SessionPipelineError):
    """Raised when raw upload content cannot be interpreted as its format."""

    code = "PARSE_ERROR"


class UnsupportedFormatError(SessionPipelineError):
    """Raised when an upload's format cannot be determined or is not supported."""

    code = "UNSUPPORTED_FORMAT"


class LimitExceededError(SessionPipelineError):
    """Raised when a bulk request exceeds the session cap. Nothing is written."""

    code = "LIMIT_EXCEEDED"

    def __init__(self, requested: int, limit: int):
        self.requested = requested
        self.limit = limit
        super().__init__(f"Cannot create more than {limit} sessions at once (requested {requested})")
