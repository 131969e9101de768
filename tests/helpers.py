import json
from typing import Any

import httpx

from llm_job.core.types import ChatRequest


class FakeBackend:
    """In-memory ChatBackend that records requests and replays responses.

    Each response is either a string (returned as content) or an exception
    instance (raised). The last response repeats once the queue is exhausted.
    """

    def __init__(self, *responses: str | Exception) -> None:
        self.responses = list(responses) or [""]
        self.requests: list[ChatRequest] = []

    def complete(self, request: ChatRequest) -> str:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [r.to_payload() for r in self.requests]


def chat_completion(content: Any) -> dict[str, Any]:
    """Minimal OpenAI-style chat completion body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


class RecordingTransport(httpx.MockTransport):
    """MockTransport answering every request with one chat completion body.

    Decoded request bodies are kept in ``bodies`` and raw requests in
    ``requests`` for assertions.
    """

    def __init__(self, content: Any = "Mocked response from API", status_code: int = 200):
        self.requests: list[httpx.Request] = []
        self.bodies: list[dict[str, Any]] = []
        self.content = content
        self.status_code = status_code
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(json.loads(request.content))
        return httpx.Response(self.status_code, json=chat_completion(self.content))
