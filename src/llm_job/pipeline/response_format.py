"""Response-format negotiation.

Exactly one format is active per job, chosen by a fixed first-match-wins
priority:

1. inline ``json_schema``        -> SchemaJson(inline schema)
2. ``json_schema_filepath``      -> SchemaJson(schema loaded from file)
3. ``json_mode: true``           -> PlainJson
4. otherwise                     -> NoFormat (no ``response_format`` sent)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from llm_job.core.types import NoFormat, PlainJson, ResponseFormat, SchemaJson
from llm_job.exceptions import SchemaLoadError

if TYPE_CHECKING:
    from llm_job.config import JobDefinition

logger = logging.getLogger(__name__)


def load_schema(path: Path) -> dict[str, Any]:
    """Load a schema document written in YAML or JSON.

    Raises:
        SchemaLoadError: If the file is missing, unreadable, unparseable or
            not a mapping. The message names the resolved path.
    """
    if not path.exists():
        raise SchemaLoadError(f"JSON schema file not found: {path}")
    try:
        with path.open(encoding="utf-8") as f:
            schema = yaml.safe_load(f)
    except OSError as e:
        raise SchemaLoadError(f"Cannot read JSON schema file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SchemaLoadError(f"Failed to parse JSON schema file {path}: {e}") from e
    if not isinstance(schema, dict):
        raise SchemaLoadError(
            f"JSON schema file {path} must contain a mapping, got {type(schema).__name__}"
        )
    return schema


def resolve_response_format(job: JobDefinition) -> ResponseFormat:
    """Return the response format for ``job`` using the fixed priority order."""
    if job.json_schema_inline is not None:
        logger.debug("Using inline JSON schema for job %r", job.id)
        return SchemaJson(job.json_schema_inline)
    if job.json_schema_path is not None:
        logger.debug("Loading JSON schema for job %r from %s", job.id, job.json_schema_path)
        return SchemaJson(load_schema(job.json_schema_path))
    if job.json_mode:
        return PlainJson()
    return NoFormat()
