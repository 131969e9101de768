"""Exception taxonomy for llm-job.

Configuration-time errors are fatal and abort the run before any record is
processed. Record-time errors are recovered by the runner: the offending line
is reported and skipped.
"""


class LLMJobError(Exception):
    """Base exception for llm-job errors."""


class ConfigError(LLMJobError):
    """Raised when the job definition is missing keys, files or is malformed."""


class SchemaLoadError(ConfigError):
    """Raised when a declared JSON schema file is missing or unreadable."""


class RecordError(LLMJobError):
    """Raised when a single record cannot be turned into an output record."""


class ParseError(RecordError):
    """Raised when an input line is not a well-formed record."""


class RenderError(RecordError):
    """Raised when a prompt template fails to evaluate against a record."""


class BackendError(RecordError):
    """Raised when the backend call fails or returns an unusable body."""
