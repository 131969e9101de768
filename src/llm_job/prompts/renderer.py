"""Prompt rendering from Jinja2 templates.

Templates see exactly two names, ``texts`` and ``images``, taken from the
record being processed. Undefined names and missing ``texts`` labels are
errors rather than silently rendering as empty strings.

Example template:

    Summarize the following text: {{ texts.content }}
    {% if images %}({{ images | length }} image(s) attached){% endif %}
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, StrictUndefined, Template, TemplateSyntaxError

from llm_job.exceptions import ConfigError, RenderError

if TYPE_CHECKING:
    from llm_job.config import JobDefinition
    from llm_job.core.types import InputRecord

logger = logging.getLogger(__name__)


class PromptEnvironment(Environment):
    """Environment where ``mapping.name`` looks up the key before the attribute.

    Text labels are chosen by whoever writes the input, so ``texts.items`` must
    render the ``items`` label rather than the dict method. Names that are not
    keys still resolve as attributes, so ``texts.items()`` keeps working.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except (KeyError, TypeError):
                pass
        return super().getattr(obj, attribute)


def create_environment() -> Environment:
    """Return the Jinja2 environment used for prompt templates.

    Prompts are plain text: no autoescaping, and a template's trailing newline
    is kept as written.
    """
    return PromptEnvironment(
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,  # noqa: S701
    )


_DEFAULT_ENV = create_environment()


def compile_template_file(path: Path, env: Environment | None = None) -> Template:
    """Read and compile a template file.

    Raises:
        ConfigError: If the file cannot be read or has a syntax error.
    """
    env = env or _DEFAULT_ENV
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read template {path}: {e}") from e
    try:
        return env.from_string(source)
    except TemplateSyntaxError as e:
        raise ConfigError(f"Template syntax error in {path}:{e.lineno}: {e.message}") from e


def render_template(template: Template | str, record: InputRecord) -> str:
    """Render ``template`` against the record's ``texts`` and ``images``.

    Raises:
        RenderError: If the template fails to compile or evaluate.
    """
    try:
        if isinstance(template, str):
            template = _DEFAULT_ENV.from_string(template)
        return template.render(record.template_context())
    except Exception as e:
        raise RenderError(f"Template rendering failed: {e}") from e


class PromptRenderer:
    """Renders the user and optional system prompt of a job."""

    def __init__(self, job: JobDefinition, env: Environment | None = None) -> None:
        env = env or _DEFAULT_ENV
        self._user_template = compile_template_file(job.user_template_path, env)
        self._system_template: Template | None = None
        if job.system_template_path is not None:
            self._system_template = compile_template_file(job.system_template_path, env)
        logger.debug(
            "Compiled prompt templates (system prompt: %s)",
            "yes" if self._system_template is not None else "no",
        )

    @property
    def has_system_prompt(self) -> bool:
        return self._system_template is not None

    def render_user(self, record: InputRecord) -> str:
        return render_template(self._user_template, record)

    def render_system(self, record: InputRecord) -> str | None:
        """Render the system prompt, or return None when none is configured.

        None and ``""`` differ: an empty rendering is still a rendered prompt.
        """
        if self._system_template is None:
            return None
        return render_template(self._system_template, record)
