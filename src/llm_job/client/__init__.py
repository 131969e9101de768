"""Backend clients for llm-job."""

from .backend import CHAT_COMPLETIONS_PATH, ChatBackend, OpenAICompatibleClient, extract_content

__all__ = [
    "CHAT_COMPLETIONS_PATH",
    "ChatBackend",
    "OpenAICompatibleClient",
    "extract_content",
]
