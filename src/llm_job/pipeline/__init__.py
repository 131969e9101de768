"""Record pipeline: format resolution, request building and the read loop."""

from .processor import RecordProcessor
from .request_builder import build_chat_request, build_message_content
from .response_format import load_schema, resolve_response_format
from .runner import RunSummary, run_stream

__all__ = [  # noqa: RUF022
    "RecordProcessor",
    "run_stream",
    "RunSummary",
    "build_chat_request",
    "build_message_content",
    "resolve_response_format",
    "load_schema",
]
