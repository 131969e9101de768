"""Prompt templating for llm-job."""

from .renderer import (
    PromptEnvironment,
    PromptRenderer,
    compile_template_file,
    create_environment,
    render_template,
)

__all__ = [
    "PromptEnvironment",
    "PromptRenderer",
    "compile_template_file",
    "create_environment",
    "render_template",
]
