"""Command-line entry point.

Usage:
    llm-job JOB_DEFINITION < input.jsonl > output.jsonl
    python -m llm_job JOB_DEFINITION < input.jsonl > output.jsonl

Exit status is 1 for a usage error, a missing job file or an invalid job
definition, and 0 otherwise, even when individual records failed (those are
reported on stderr).
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, NoReturn, TextIO

from llm_job.client.backend import OpenAICompatibleClient
from llm_job.config import load_job_definition, load_settings
from llm_job.exceptions import ConfigError
from llm_job.pipeline.processor import RecordProcessor
from llm_job.pipeline.runner import run_stream
from llm_job.telemetry import SimpleReporter, TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    import httpx

    from llm_job.config import JobSettings

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="llm-job",
        description=(
            "Read JSON-lines records from stdin, run each through a language "
            "model as described by a job definition, and write augmented "
            "records to stdout."
        ),
    )
    parser.add_argument(
        "job_definition",
        help="Path to the YAML or JSON job definition",
    )
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run(
    job_path: Path,
    *,
    settings: JobSettings,
    stdin: Iterable[str] | Iterable[bytes],
    stdout: TextIO,
    stderr: TextIO,
    transport: httpx.BaseTransport | None = None,
) -> int:
    """Run one job over ``stdin`` and return the process exit status.

    ``stdin`` may yield text or raw byte lines; the console entry point passes
    the binary stream so each line is decoded on its own.
    """
    if not job_path.exists():
        stderr.write(f"Job definition file not found: {job_path}\n")
        return 1

    reporter = SimpleReporter() if settings.telemetry else None
    telemetry = TelemetryContext(reporter) if reporter is not None else TelemetryContext()

    try:
        job = load_job_definition(job_path)
        with OpenAICompatibleClient.from_job(job, settings, transport=transport) as backend:
            processor = RecordProcessor(job, backend, telemetry=telemetry)
            run_stream(processor, stdin, stdout, stderr)
    except ConfigError as e:
        stderr.write(f"Error: {e}\n")
        return 1

    if reporter is not None:
        stderr.write(reporter.get_report() + "\n")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    env_file = Path(DEFAULT_ENV_FILE)
    try:
        settings = load_settings(env_file=env_file if env_file.is_file() else None)
    except ConfigError as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1
    configure_logging(settings.log_level)
    logger.debug("Settings: %s", settings)
    return run(
        Path(args.job_definition),
        settings=settings,
        stdin=sys.stdin.buffer,
        stdout=sys.stdout,
        stderr=sys.stderr,
    )
