"""Post-processing of raw backend responses."""

from .cleaner import REASONING_SPAN, clean_content

__all__ = ["REASONING_SPAN", "clean_content"]
