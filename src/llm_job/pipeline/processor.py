"""Per-record transformation engine.

``RecordProcessor`` turns one InputRecord into one OutputRecord:

    render user prompt -> render system prompt -> build request
    -> backend call -> clean response -> merge under ``output_label``

The response format, compiled templates and backend handle are fixed when
the processor is created; nothing a record does changes them. Every failure
is returned as ``Failure(RecordError)`` so a bad record never aborts a batch
and never produces a partial output record.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from llm_job.core.types import (
    Failure,
    InputRecord,
    OutputRecord,
    Result,
    Success,
    decode_line,
)
from llm_job.exceptions import ParseError, RecordError
from llm_job.pipeline.request_builder import build_chat_request
from llm_job.pipeline.response_format import resolve_response_format
from llm_job.prompts.renderer import PromptRenderer
from llm_job.response.cleaner import clean_content
from llm_job.telemetry import TelemetryContext

if TYPE_CHECKING:
    from llm_job.client.backend import ChatBackend
    from llm_job.config import JobDefinition
    from llm_job.core.types import ResponseFormat
    from llm_job.telemetry import TelemetryContextProtocol

logger = logging.getLogger(__name__)


class RecordProcessor:
    """Drives every pipeline stage for one record at a time."""

    def __init__(
        self,
        job: JobDefinition,
        backend: ChatBackend,
        *,
        renderer: PromptRenderer | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Prepare a processor for ``job``.

        Raises:
            ConfigError: If a template does not compile.
            SchemaLoadError: If the declared schema file cannot be loaded.
        """
        self.job = job
        self._backend = backend
        self._renderer = renderer or PromptRenderer(job)
        self._response_format = resolve_response_format(job)
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()
        logger.debug(
            "Record processor ready for job %r (response format: %s)",
            job.id,
            type(self._response_format).__name__,
        )

    @property
    def response_format(self) -> ResponseFormat:
        return self._response_format

    def process_record(self, record: InputRecord) -> Result[OutputRecord, RecordError]:
        """Transform one record, returning its output or the error that stopped it."""
        with self._telemetry("record"):
            try:
                result: Result[OutputRecord, RecordError] = Success(self._transform(record))
            except RecordError as e:
                result = Failure(e)
            except Exception as e:  # Defensive normalization
                error = RecordError(f"Unexpected error: {e}")
                error.__cause__ = e
                result = Failure(error)

        if isinstance(result, Failure):
            logger.debug("Record %r failed: %s", record.id, result.error)
            self._telemetry.count("records.failed")
        else:
            self._telemetry.count("records.succeeded")
        return result

    def process_line(self, line: str | bytes) -> Result[OutputRecord, RecordError] | None:
        """Parse and transform one input line; blank lines yield None.

        Raw bytes are decoded as strict UTF-8 so an undecodable line fails on
        its own instead of stopping the stream.
        """
        try:
            if isinstance(line, bytes):
                line = decode_line(line)
            line = line.strip()
            if not line:
                return None
            record = InputRecord.from_json(line)
        except ParseError as e:
            self._telemetry.count("records.failed")
            return Failure(e)
        return self.process_record(record)

    def _transform(self, record: InputRecord) -> OutputRecord:
        with self._telemetry("render"):
            user_prompt = self._renderer.render_user(record)
            system_prompt = self._renderer.render_system(record)

        request = build_chat_request(
            self.job,
            record,
            user_prompt,
            system_prompt,
            self._response_format,
        )

        with self._telemetry("backend"):
            raw = self._backend.complete(request)

        with self._telemetry("clean"):
            answer = clean_content(raw)

        return OutputRecord.from_input(record, self.job.output_label, answer)
