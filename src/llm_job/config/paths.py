"""Path and endpoint normalization helpers for job definitions."""

import os
from pathlib import Path
import re

_V1_SUFFIX = re.compile(r"/v1/?$")


def resolve_relative_path(path: str | os.PathLike[str], base_dir: str | os.PathLike[str]) -> Path:
    """Resolve ``path`` against ``base_dir`` unless it is already absolute.

    Relative paths are joined to the (absolute) base directory and normalized,
    collapsing ``..`` segments, so a job definition can be moved together with
    its templates. Absolute paths are returned unchanged.

    Example:
        resolve_relative_path("../parent.j2", "/jobs/sub")  # Path("/jobs/parent.j2")
    """
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return Path(os.path.normpath(Path(os.path.abspath(base_dir)) / candidate))


def normalize_endpoint(endpoint: str) -> str:
    """Strip one trailing ``/v1`` (or ``/v1/``) from a backend base URL.

    The transport appends its own versioned path, so ``https://host/v1`` and
    ``https://host`` address the same backend.
    """
    return _V1_SUFFIX.sub("", endpoint)
