"""Sequential JSON-lines read loop.

Records are processed strictly one at a time in input order. Each successful
record is written and flushed before the next line is read; each failure is
reported on the error stream and skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, TextIO

from llm_job.core.types import Failure
from llm_job.exceptions import ParseError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from llm_job.pipeline.processor import RecordProcessor

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunSummary:
    """Counts for one pass over an input stream."""

    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed


def run_stream(
    processor: RecordProcessor,
    lines: Iterable[str] | Iterable[bytes],
    out: TextIO,
    err: TextIO,
) -> RunSummary:
    """Process every line of ``lines``, writing results to ``out``.

    Args:
        processor: Processor holding the job, templates and backend handle.
        lines: Input lines, one JSON record each; blank lines are skipped.
            Raw byte lines are decoded per line, so invalid UTF-8 fails only
            that line.
        out: Stream receiving one compact JSON line per successful record.
        err: Stream receiving one diagnostic line per failed input line.

    Returns:
        A RunSummary with success, failure and blank-line counts.
    """
    summary = RunSummary()
    for line_number, line in enumerate(lines, start=1):
        result = processor.process_line(line)
        if result is None:
            summary.skipped += 1
            continue

        if isinstance(result, Failure):
            summary.failed += 1
            if isinstance(result.error, ParseError):
                err.write(f"Error parsing JSON line: {result.error}\n")
            else:
                err.write(f"Error processing item: {result.error}\n")
            err.flush()
            logger.info("Skipped input line %d: %s", line_number, result.error)
            continue

        out.write(result.value.to_json() + "\n")
        out.flush()
        summary.succeeded += 1

    logger.info(
        "Processed %d record(s): %d succeeded, %d failed",
        summary.processed,
        summary.succeeded,
        summary.failed,
    )
    return summary
