import json

import httpx
import pytest

from llm_job.client import ChatBackend, OpenAICompatibleClient
from llm_job.client.backend import extract_content
from llm_job.config import load_job_definition, load_settings
from llm_job.core.types import ChatMessage, ChatRequest, PlainJson, TextContent
from llm_job.exceptions import BackendError
from tests.helpers import RecordingTransport, chat_completion


def _request(**kwargs):
    return ChatRequest(
        model="test-model",
        messages=(ChatMessage("user", TextContent("hello")),),
        **kwargs,
    )


def _client_raising(exc_factory):
    def handler(request):
        raise exc_factory(request)

    return OpenAICompatibleClient(
        "http://llm.test/v1", transport=httpx.MockTransport(handler)
    )


class TestOpenAICompatibleClient:
    """HTTP transport for OpenAI-compatible chat completions."""

    @pytest.mark.unit
    def test_satisfies_backend_protocol(self):
        with OpenAICompatibleClient("http://llm.test") as client:
            assert isinstance(client, ChatBackend)

    @pytest.mark.unit
    def test_posts_to_chat_completions_with_v1_stripped_once(self):
        transport = RecordingTransport("hi there")
        with OpenAICompatibleClient("http://llm.test/v1/", transport=transport) as client:
            content = client.complete(_request(response_format=PlainJson()))

        assert content == "hi there"
        (sent,) = transport.requests
        assert str(sent.url) == "http://llm.test/v1/chat/completions"
        assert sent.method == "POST"
        assert transport.bodies[0] == {
            "model": "test-model",
            "messages": [{"role": "user", "content": "hello"}],
            "response_format": {"type": "json_object"},
        }

    @pytest.mark.unit
    def test_endpoint_path_prefix_is_kept(self):
        transport = RecordingTransport()
        with OpenAICompatibleClient(
            "https://proxy.test/openai/v1", transport=transport
        ) as client:
            client.complete(_request())
        assert str(transport.requests[0].url) == (
            "https://proxy.test/openai/v1/chat/completions"
        )

    @pytest.mark.unit
    def test_bearer_header_only_with_api_key(self):
        with_key, without_key = RecordingTransport(), RecordingTransport()
        with OpenAICompatibleClient(
            "http://llm.test", "sk-test", transport=with_key
        ) as client:
            client.complete(_request())
        with OpenAICompatibleClient("http://llm.test", transport=without_key) as client:
            client.complete(_request())

        assert with_key.requests[0].headers["Authorization"] == "Bearer sk-test"
        assert "Authorization" not in without_key.requests[0].headers

    @pytest.mark.unit
    def test_http_error_status_becomes_backend_error(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(500, text="internal failure")
        )
        with OpenAICompatibleClient("http://llm.test", transport=transport) as client:
            with pytest.raises(BackendError) as exc_info:
                client.complete(_request())
        assert str(exc_info.value) == (
            "API request failed: HTTP 500: internal failure"
        )
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.unit
    def test_connection_error_becomes_backend_error(self):
        client = _client_raising(
            lambda request: httpx.ConnectError("connection refused", request=request)
        )
        with client, pytest.raises(BackendError, match="API request failed: connection refused"):
            client.complete(_request())

    @pytest.mark.unit
    def test_timeout_becomes_backend_error(self):
        client = _client_raising(
            lambda request: httpx.ReadTimeout("read timed out", request=request)
        )
        with client, pytest.raises(BackendError, match="request timed out"):
            client.complete(_request())

    @pytest.mark.unit
    def test_malformed_body_becomes_backend_error(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=b"<html>not json</html>")
        )
        with OpenAICompatibleClient("http://llm.test", transport=transport) as client:
            with pytest.raises(BackendError, match="malformed response body"):
                client.complete(_request())

    @pytest.mark.unit
    def test_request_side_value_error_is_not_reported_as_body_error(self):
        client = _client_raising(
            lambda request: UnicodeEncodeError(
                "utf-8", "\udcff", 0, 1, "surrogates not allowed"
            )
        )
        with client, pytest.raises(UnicodeEncodeError):
            client.complete(_request())

    @pytest.mark.unit
    def test_from_job_uses_job_endpoint_and_settings(self, write_job, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        job = load_job_definition(write_job(backend_endpoint="http://other.test/v1"))
        transport = RecordingTransport()
        with OpenAICompatibleClient.from_job(
            job, load_settings(request_timeout=12), transport=transport
        ) as client:
            assert client.base_url == "http://other.test"
            client.complete(_request())
        sent = transport.requests[0]
        assert sent.headers["Authorization"] == "Bearer sk-env"
        assert sent.extensions["timeout"]["read"] == 12


class TestExtractContent:
    """Tolerant extraction of the first choice's content."""

    @pytest.mark.unit
    def test_regular_body(self):
        assert extract_content(chat_completion("answer")) == "answer"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"choices": []},
            {"choices": [{}]},
            {"choices": [{"message": {}}]},
            chat_completion(None),
            chat_completion(["not", "a", "string"]),
            [],
            "text",
        ],
    )
    def test_unexpected_shapes_yield_empty_string(self, body):
        assert extract_content(json.loads(json.dumps(body))) == ""
