"""Core data types that flow through the record pipeline.

This module defines the immutable data structures that represent one record
as it moves from an input line to an output line, plus the backend-agnostic
chat request built in between. Each stage produces a new value instead of
mutating the previous one.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import json
from types import MappingProxyType
import typing

from llm_job.exceptions import ParseError

# --- Minimal guard helpers ---


def _freeze_mapping(m: typing.Mapping[str, str] | None) -> typing.Mapping[str, str]:
    """Return an immutable mapping view, treating None as empty."""
    if isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m or {}))


def freeze_value(value: typing.Any) -> typing.Any:
    """Recursively turn mappings into read-only views and lists into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze_value(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(freeze_value(v) for v in value)
    return value


def thaw_value(value: typing.Any) -> typing.Any:
    """Inverse of :func:`freeze_value`, producing JSON-serializable containers."""
    if isinstance(value, Mapping):
        return {k: thaw_value(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [thaw_value(v) for v in value]
    return value


def decode_line(raw: bytes) -> str:
    """Decode one raw input line as strict UTF-8.

    Raises:
        ParseError: If the bytes are not valid UTF-8.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"invalid UTF-8 input: {e}") from e


# --- Result Monad for per-record error handling ---
# The record pipeline returns one of these per record so the read loop can
# branch on the outcome instead of unwinding past the current record.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successfully processed record."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A record that failed, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Records ---


@dataclasses.dataclass(frozen=True, slots=True)
class InputRecord:
    """One unit of input: an opaque id, labelled texts and optional images."""

    id: typing.Any = None
    texts: typing.Mapping[str, str] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    images: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "texts", _freeze_mapping(self.texts))
        object.__setattr__(self, "images", tuple(self.images or ()))

    @classmethod
    def from_mapping(cls, data: typing.Any) -> InputRecord:
        """Build a record from decoded JSON, validating its shape.

        Raises:
            ParseError: If the value is not an object or its ``texts`` /
                ``images`` fields have the wrong type.
        """
        if not isinstance(data, dict):
            raise ParseError(
                f"expected a JSON object, got {type(data).__name__}"
            )
        texts = data.get("texts")
        if texts is None:
            texts = {}
        if not isinstance(texts, dict):
            raise ParseError("'texts' must be a JSON object")
        images = data.get("images")
        if images is None:
            images = []
        if not isinstance(images, list):
            raise ParseError("'images' must be a JSON array")
        return cls(id=data.get("id"), texts=texts, images=tuple(images))

    @classmethod
    def from_json(cls, line: str) -> InputRecord:
        """Decode one JSON line into a record.

        Raises:
            ParseError: If the line is not valid JSON or not a record.
        """
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise ParseError(str(e)) from e
        return cls.from_mapping(data)

    def template_context(self) -> dict[str, typing.Any]:
        """Return the only bindings a prompt template may see."""
        return {"texts": dict(self.texts), "images": list(self.images)}


@dataclasses.dataclass(frozen=True, slots=True)
class OutputRecord:
    """An input record augmented with the model's answer."""

    id: typing.Any
    texts: typing.Mapping[str, str]
    images: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "texts", _freeze_mapping(self.texts))
        object.__setattr__(self, "images", tuple(self.images))

    @classmethod
    def from_input(cls, record: InputRecord, label: str, answer: str) -> OutputRecord:
        """Copy ``record`` and set ``texts[label]`` to ``answer``.

        Existing texts are preserved; an existing ``label`` key is overwritten.
        """
        texts = dict(record.texts)
        texts[label] = answer
        return cls(id=record.id, texts=texts, images=record.images)

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "id": self.id,
            "texts": dict(self.texts),
            "images": list(self.images),
        }

    def to_json(self) -> str:
        """Serialize as a single compact JSON line (without newline)."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


# --- Response formats ---


@dataclasses.dataclass(frozen=True, slots=True)
class NoFormat:
    """No response-format directive; the request omits the field entirely."""

    def to_payload(self) -> None:
        return None


@dataclasses.dataclass(frozen=True, slots=True)
class PlainJson:
    """Unconstrained JSON output."""

    def to_payload(self) -> dict[str, typing.Any]:
        return {"type": "json_object"}


@dataclasses.dataclass(frozen=True, slots=True)
class SchemaJson:
    """JSON output constrained by a schema document."""

    schema: typing.Mapping[str, typing.Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "schema", freeze_value(self.schema))

    def to_payload(self) -> dict[str, typing.Any]:
        return {"type": "json_object", "schema": thaw_value(self.schema)}


ResponseFormat = NoFormat | PlainJson | SchemaJson

# --- Chat request ---

JPEG_DATA_URI_PREFIX = "data:image/jpeg;base64,"


@dataclasses.dataclass(frozen=True, slots=True)
class TextPart:
    """Text segment of a multi-part message."""

    text: str

    def to_payload(self) -> dict[str, typing.Any]:
        return {"type": "text", "text": self.text}


@dataclasses.dataclass(frozen=True, slots=True)
class ImagePart:
    """Base64 image attached to a multi-part message.

    The payload is referenced verbatim inside a JPEG data URI.
    """

    data: str

    @property
    def url(self) -> str:
        return f"{JPEG_DATA_URI_PREFIX}{self.data}"

    def to_payload(self) -> dict[str, typing.Any]:
        return {"type": "image_url", "image_url": {"url": self.url}}


ContentPart = TextPart | ImagePart


@dataclasses.dataclass(frozen=True, slots=True)
class TextContent:
    """Message content sent as a plain string."""

    text: str

    def to_payload(self) -> str:
        return self.text


@dataclasses.dataclass(frozen=True, slots=True)
class PartsContent:
    """Message content sent as a sequence of typed parts."""

    parts: tuple[ContentPart, ...]

    def to_payload(self) -> list[dict[str, typing.Any]]:
        return [part.to_payload() for part in self.parts]


MessageContent = TextContent | PartsContent


@dataclasses.dataclass(frozen=True, slots=True)
class ChatMessage:
    role: typing.Literal["system", "user"]
    content: MessageContent

    def to_payload(self) -> dict[str, typing.Any]:
        return {"role": self.role, "content": self.content.to_payload()}


@dataclasses.dataclass(frozen=True, slots=True)
class ChatRequest:
    """Backend-agnostic chat completion request."""

    model: str
    messages: tuple[ChatMessage, ...]
    extra_params: typing.Mapping[str, typing.Any] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    response_format: ResponseFormat = dataclasses.field(default_factory=NoFormat)

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))
        object.__setattr__(self, "extra_params", freeze_value(self.extra_params or {}))

    def to_payload(self) -> dict[str, typing.Any]:
        """Return the JSON body for an OpenAI-compatible chat completion.

        ``extra_params`` is overlaid after ``model``/``messages``; the
        ``response_format`` key is only present when a format is resolved.
        """
        payload: dict[str, typing.Any] = {
            "model": self.model,
            "messages": [m.to_payload() for m in self.messages],
        }
        payload.update(thaw_value(self.extra_params))
        response_format = self.response_format.to_payload()
        if response_format is not None:
            payload["response_format"] = response_format
        return payload
