"""Configuration for llm-job.

Two layers, resolved once and then passed explicitly:

- JobDefinition: the declarative job document (templates, backend, model,
  output label, response format), loaded by ``load_job_definition``.
- JobSettings: process concerns from the environment (API key, timeout,
  logging, telemetry), loaded by ``load_settings``.
"""

from .job import (
    LEGACY_KEYS,
    REQUIRED_KEYS,
    RESERVED_PARAMS,
    JobDefinition,
    load_job_definition,
)
from .paths import normalize_endpoint, resolve_relative_path
from .settings import DEFAULT_REQUEST_TIMEOUT, JobSettings, load_settings

__all__ = [  # noqa: RUF022
    # Job definition
    "JobDefinition",
    "load_job_definition",
    "REQUIRED_KEYS",
    "LEGACY_KEYS",
    "RESERVED_PARAMS",
    # Paths
    "resolve_relative_path",
    "normalize_endpoint",
    # Environment settings
    "JobSettings",
    "load_settings",
    "DEFAULT_REQUEST_TIMEOUT",
]
