"""Core data types shared by every pipeline stage."""

from llm_job.core.types import (
    ChatMessage,
    ChatRequest,
    Failure,
    ImagePart,
    InputRecord,
    MessageContent,
    NoFormat,
    OutputRecord,
    PartsContent,
    PlainJson,
    ResponseFormat,
    Result,
    SchemaJson,
    Success,
    TextContent,
    TextPart,
    decode_line,
)

__all__ = [  # noqa: RUF022
    # Records
    "InputRecord",
    "OutputRecord",
    "decode_line",
    # Result
    "Result",
    "Success",
    "Failure",
    # Response formats
    "ResponseFormat",
    "NoFormat",
    "PlainJson",
    "SchemaJson",
    # Chat request
    "ChatRequest",
    "ChatMessage",
    "MessageContent",
    "TextContent",
    "PartsContent",
    "TextPart",
    "ImagePart",
]
