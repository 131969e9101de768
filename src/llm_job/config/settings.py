"""Process-level settings loaded from the environment.

Job behavior lives in the job definition. These settings only carry concerns
of the running process: credentials, transport timeout, logging and telemetry.
Values come from ``LLM_JOB_*`` environment variables and, when requested, a
``.env`` file.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from llm_job.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 240.0


class JobSettings(BaseSettings):
    """Pydantic settings schema for the llm-job process."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_JOB_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    api_key: str | None = Field(
        default=None,
        description="Bearer token for the backend; falls back to OPENAI_API_KEY",
        validation_alias=AliasChoices("LLM_JOB_API_KEY", "OPENAI_API_KEY"),
    )

    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        description="Per-call backend timeout in seconds",
        gt=0,
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level used by the command-line entry point",
    )

    telemetry: bool = Field(
        default=False,
        description="Collect per-stage timings and print a report at exit",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v: Any) -> str:
        """Accept any standard logging level name, case-insensitively."""
        name = str(v).strip().upper()
        if name not in logging.getLevelNamesMapping():
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )
        return name

    def __repr__(self) -> str:
        """Repr with redacted API key for safe logging."""
        api_key_display = "[REDACTED]" if self.api_key else None
        return (
            f"JobSettings(api_key={api_key_display!r}, "
            f"request_timeout={self.request_timeout!r}, "
            f"log_level={self.log_level!r}, telemetry={self.telemetry!r})"
        )

    __str__ = __repr__


def load_settings(env_file: str | Path | None = None, **overrides: Any) -> JobSettings:
    """Build settings from the environment, an optional ``.env`` file and overrides.

    Raises:
        ConfigError: If an environment value fails validation.
    """
    try:
        if env_file is not None:
            return JobSettings(_env_file=env_file, **overrides)
        return JobSettings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid environment settings: {e}") from e
