"""
Global test configuration: environment isolation, markers and job fixtures.
"""

from collections.abc import Callable
from contextlib import suppress
import os
from pathlib import Path
from typing import Any

import pytest
import yaml

from tests.helpers import FakeBackend


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-in escape hatch: mark a test with @pytest.mark.allow_dotenv
    to permit .env loading for that specific test.
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_llm_job_env(request, monkeypatch):
    """Ensure a clean LLM_JOB_* / OPENAI_API_KEY environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("LLM_JOB_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioral contracts of the public surface",
        "integration: End-to-end runs with a mocked backend",
        "allow_dotenv: Permit .env loading",
        "allow_env_pollution: Keep LLM_JOB_* variables from the outer environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Job Fixtures ---


@pytest.fixture
def write_job(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a job definition plus its template files.

    Usage:
        job_path = write_job(
            user_template="Test prompt: {{ texts.input }}",
            system_template="Be brief.",
            output_label="response",
        )

    Templates are written under ``<dir>/templates`` and referenced with
    relative paths. Extra keyword arguments become job definition keys.
    Returns the path of the written ``job.yml``.
    """

    def _write(
        *,
        user_template: str = "Test prompt: {{ texts.input }}",
        system_template: str | None = None,
        directory: Path | None = None,
        **overrides: Any,
    ) -> Path:
        job_dir = directory or tmp_path
        templates_dir = job_dir / "templates"
        templates_dir.mkdir(parents=True, exist_ok=True)
        (templates_dir / "user.j2").write_text(user_template, encoding="utf-8")

        config: dict[str, Any] = {
            "id": "test-job",
            "user_template_filepath": "templates/user.j2",
            "backend_endpoint": "http://llm.test/v1",
            "model": "test-model",
            "output_label": "response",
            "use_images": False,
        }
        if system_template is not None:
            (templates_dir / "system.j2").write_text(system_template, encoding="utf-8")
            config["system_template_filepath"] = "templates/system.j2"
        config.update(overrides)

        job_path = job_dir / "job.yml"
        job_path.write_text(
            yaml.safe_dump(config, allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
        return job_path

    return _write


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Backend stub returning ``"Mocked response from API"`` by default."""
    return FakeBackend("Mocked response from API")
