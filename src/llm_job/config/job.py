"""Job definition schema and loading.

A job definition is a YAML (or JSON) document describing the templates,
backend, model and output label of one batch run. It is loaded and validated
once, before any record is read, and is immutable afterwards.
"""

from collections.abc import Mapping
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
import yaml

from llm_job.core.types import freeze_value
from llm_job.exceptions import ConfigError, SchemaLoadError

from .paths import resolve_relative_path

logger = logging.getLogger(__name__)

# Keys as they appear on disk, in the order they are reported when missing.
REQUIRED_KEYS = (
    "id",
    "user_template_filepath",
    "backend_endpoint",
    "model",
    "output_label",
)

# Key names used by earlier job files, mapped to their current names.
LEGACY_KEYS = {
    "erb_filepath": "user_template_filepath",
    "system_erb_filepath": "system_template_filepath",
}

# Request fields owned by the request builder; ``params`` may not override them.
RESERVED_PARAMS = frozenset({"model", "messages", "response_format"})


class JobDefinition(BaseModel):
    """Validated, immutable job definition.

    Field aliases are the on-disk key names. All file paths are absolute once
    the definition has been produced by :func:`load_job_definition`.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",  # Unknown keys are documentation, not errors
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    id: str
    user_template_path: Path = Field(
        validation_alias=AliasChoices("user_template_filepath", "erb_filepath")
    )
    system_template_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("system_template_filepath", "system_erb_filepath"),
    )
    backend_endpoint: str = Field(min_length=1)
    model: str = Field(min_length=1)
    output_label: str = Field(min_length=1)
    use_images: bool = False
    json_mode: bool = False
    json_schema_path: Path | None = Field(default=None, alias="json_schema_filepath")
    json_schema_inline: Mapping[str, Any] | None = Field(default=None, alias="json_schema")
    extra_params: Mapping[str, Any] = Field(
        default_factory=dict, alias="params", validate_default=True
    )
    source_path: Path | None = None

    @field_validator("extra_params", mode="before")
    @classmethod
    def parse_extra_params(cls, v: Any) -> Any:
        """Treat an empty ``params:`` entry as no parameters."""
        return {} if v is None else v

    @field_validator("extra_params")
    @classmethod
    def reject_reserved_params(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        """Ensure params only add sampling knobs and never replace request fields."""
        clashes = sorted(RESERVED_PARAMS.intersection(v))
        if clashes:
            raise ValueError(
                f"params may not override reserved request fields: {', '.join(clashes)}"
            )
        return freeze_value(v)

    @field_validator("json_schema_inline")
    @classmethod
    def freeze_inline_schema(cls, v: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        """Store the inline schema as a read-only view shared by every request."""
        return None if v is None else freeze_value(v)

    @property
    def base_dir(self) -> Path | None:
        """Directory the job definition was loaded from, if known."""
        return self.source_path.parent if self.source_path else None


def _read_document(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read job definition {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse job definition {path}: {e}") from e


def _apply_legacy_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Rename earlier key names; a current key wins when both are present."""
    renamed = dict(data)
    for legacy, current in LEGACY_KEYS.items():
        if legacy not in renamed:
            continue
        value = renamed.pop(legacy)
        if renamed.get(current) is None:
            logger.debug("Job key %r is deprecated; use %r", legacy, current)
            renamed[current] = value
    return renamed


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def load_job_definition(path: str | os.PathLike[str]) -> JobDefinition:
    """Load, resolve and validate a job definition file.

    Template and schema paths are resolved relative to the directory holding
    the job definition. Every required key and every declared file is checked
    before returning, so a bad job fails before any record is processed.

    Args:
        path: Path to the YAML or JSON job definition.

    Returns:
        The validated JobDefinition with absolute file paths.

    Raises:
        ConfigError: If keys are missing, a template file does not exist or a
            field has an invalid value.
        SchemaLoadError: If the declared schema file does not exist.
    """
    job_path = Path(os.path.abspath(path))
    data = _read_document(job_path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Job definition {job_path} must be a mapping, got {type(data).__name__}"
        )

    data = _apply_legacy_keys(data)
    missing = [key for key in REQUIRED_KEYS if data.get(key) is None]
    if missing:
        raise ConfigError(f"Missing required configuration keys: {', '.join(missing)}")

    base_dir = job_path.parent
    resolved = dict(data)

    user_template = resolve_relative_path(str(data["user_template_filepath"]), base_dir)
    if not user_template.exists():
        raise ConfigError(f"User template file not found: {user_template}")
    resolved["user_template_filepath"] = user_template

    if data.get("system_template_filepath") is not None:
        system_template = resolve_relative_path(
            str(data["system_template_filepath"]), base_dir
        )
        if not system_template.exists():
            raise ConfigError(f"System template file not found: {system_template}")
        resolved["system_template_filepath"] = system_template

    if data.get("json_schema_filepath") is not None:
        schema_path = resolve_relative_path(str(data["json_schema_filepath"]), base_dir)
        if not schema_path.exists():
            raise SchemaLoadError(f"JSON schema file not found: {schema_path}")
        resolved["json_schema_filepath"] = schema_path

    resolved["source_path"] = job_path

    try:
        job = JobDefinition.model_validate(resolved)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid job definition {job_path}: {_format_validation_error(e)}"
        ) from e

    logger.debug("Loaded job definition %r from %s", job.id, job_path)
    return job
