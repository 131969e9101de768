"""Assembly of the backend-agnostic chat request for one record."""

from __future__ import annotations

from typing import TYPE_CHECKING

from llm_job.core.types import (
    ChatMessage,
    ChatRequest,
    ImagePart,
    MessageContent,
    NoFormat,
    PartsContent,
    ResponseFormat,
    TextContent,
    TextPart,
)

if TYPE_CHECKING:
    from llm_job.config import JobDefinition
    from llm_job.core.types import InputRecord


def build_message_content(
    job: JobDefinition, record: InputRecord, prompt: str
) -> MessageContent:
    """Choose between plain-string and multi-part user content.

    Parts are used only when the job enables images and the record carries at
    least one; the text part comes first, then images in record order.
    """
    if job.use_images and record.images:
        parts = (TextPart(prompt), *(ImagePart(image) for image in record.images))
        return PartsContent(parts)
    return TextContent(prompt)


def build_chat_request(
    job: JobDefinition,
    record: InputRecord,
    user_prompt: str,
    system_prompt: str | None = None,
    response_format: ResponseFormat | None = None,
) -> ChatRequest:
    """Build the chat request for ``record``.

    A system message is prepended only when ``system_prompt`` is non-blank;
    its content is sent untrimmed.
    """
    messages: list[ChatMessage] = []
    if system_prompt is not None and system_prompt.strip():
        messages.append(ChatMessage("system", TextContent(system_prompt)))
    messages.append(
        ChatMessage("user", build_message_content(job, record, user_prompt))
    )
    return ChatRequest(
        model=job.model,
        messages=tuple(messages),
        extra_params=job.extra_params,
        response_format=response_format if response_format is not None else NoFormat(),
    )
