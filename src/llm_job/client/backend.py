"""Chat backend boundary.

The record pipeline only depends on the :class:`ChatBackend` protocol. The
shipped implementation talks to any OpenAI-compatible ``/v1/chat/completions``
endpoint over ``httpx`` with a single blocking call per record and no retries.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable

import httpx

from llm_job.config.paths import normalize_endpoint
from llm_job.config.settings import DEFAULT_REQUEST_TIMEOUT
from llm_job.exceptions import BackendError

if TYPE_CHECKING:
    from llm_job.config import JobDefinition, JobSettings
    from llm_job.core.types import ChatRequest

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


@runtime_checkable
class ChatBackend(Protocol):
    """Anything that can turn a chat request into raw response content."""

    def complete(self, request: ChatRequest) -> str: ...  # noqa: D102


def extract_content(body: Any) -> str:
    """Return ``choices[0].message.content`` or ``""`` for any other shape."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class OpenAICompatibleClient:
    """Blocking client for an OpenAI-compatible chat completions backend.

    One ``httpx.Client`` is created per instance and reused for every record.
    Transport failures of any kind surface as :class:`BackendError` with the
    underlying cause in the message.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str | None = None,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Backend base URL; a trailing ``/v1`` is stripped.
            api_key: Optional bearer token.
            timeout: Per-call timeout in seconds.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).
        """
        self.base_url = normalize_endpoint(endpoint)
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._http = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_job(
        cls,
        job: JobDefinition,
        settings: JobSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> OpenAICompatibleClient:
        """Create the single backend handle for a validated job."""
        return cls(
            job.backend_endpoint,
            settings.api_key,
            timeout=settings.request_timeout,
            transport=transport,
        )

    def complete(self, request: ChatRequest) -> str:
        """Send ``request`` and return the first choice's message content.

        Raises:
            BackendError: On connection errors, timeouts, non-2xx statuses or
                an undecodable response body.
        """
        payload = request.to_payload()
        logger.debug(
            "POST %s%s model=%s messages=%d",
            self.base_url,
            CHAT_COMPLETIONS_PATH,
            request.model,
            len(request.messages),
        )
        try:
            response = self._http.post(CHAT_COMPLETIONS_PATH, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise BackendError(f"API request failed: request timed out ({e})") from e
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"API request failed: HTTP {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise BackendError(f"API request failed: {e}") from e
        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(f"API request failed: malformed response body ({e})") from e
        return extract_content(body)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
