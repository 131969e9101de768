"""llm-job: run JSON-lines records through a language model, one at a time."""

import importlib.metadata
import logging

from llm_job.client import ChatBackend, OpenAICompatibleClient
from llm_job.config import (
    JobDefinition,
    JobSettings,
    load_job_definition,
    load_settings,
    normalize_endpoint,
    resolve_relative_path,
)
from llm_job.core.types import (
    ChatRequest,
    Failure,
    InputRecord,
    NoFormat,
    OutputRecord,
    PlainJson,
    ResponseFormat,
    Result,
    SchemaJson,
    Success,
)
from llm_job.exceptions import (
    BackendError,
    ConfigError,
    LLMJobError,
    ParseError,
    RecordError,
    RenderError,
    SchemaLoadError,
)
from llm_job.pipeline import (
    RecordProcessor,
    RunSummary,
    build_chat_request,
    resolve_response_format,
    run_stream,
)
from llm_job.prompts import PromptRenderer, render_template
from llm_job.response import clean_content
from llm_job.telemetry import TelemetryContext, TelemetryReporter

# Version handling
try:
    __version__ = importlib.metadata.version("llm-job")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Configuration
    "JobDefinition",
    "JobSettings",
    "load_job_definition",
    "load_settings",
    "resolve_relative_path",
    "normalize_endpoint",
    # Pipeline
    "RecordProcessor",
    "run_stream",
    "RunSummary",
    "PromptRenderer",
    "render_template",
    "resolve_response_format",
    "build_chat_request",
    "clean_content",
    # Backend
    "ChatBackend",
    "OpenAICompatibleClient",
    # Core types
    "InputRecord",
    "OutputRecord",
    "ChatRequest",
    "ResponseFormat",
    "NoFormat",
    "PlainJson",
    "SchemaJson",
    "Result",
    "Success",
    "Failure",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "LLMJobError",
    "ConfigError",
    "SchemaLoadError",
    "RecordError",
    "ParseError",
    "RenderError",
    "BackendError",
]
