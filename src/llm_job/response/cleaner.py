"""Removal of reasoning markup from model output.

Some models emit their intermediate reasoning between ``<think>`` and
``</think>`` before the actual answer. Only complete, literally named spans
are removed; anything malformed is left exactly as the model wrote it.
"""

import re

# Non-greedy and DOTALL so each span ends at its own closing tag and may
# contain newlines. ``<thinking>`` and other tag names never match.
REASONING_SPAN = re.compile(r"<think>.*?</think>", re.DOTALL)


def clean_content(content: str | None) -> str:
    """Strip every well-formed ``<think>...</think>`` span from ``content``.

    - Empty or whitespace-only input yields ``""``.
    - Without a well-formed span (unterminated ``<think>``, orphan
      ``</think>``, other tag names) the input is returned unchanged,
      surrounding whitespace included.
    - Otherwise the spans are removed and the remainder is stripped. Text
      between spans keeps its order and newlines, so a span that sat on its
      own line leaves a blank-line paragraph break behind.

    Example:
        clean_content("<think>a</think>\\nX\\n<think>b</think>\\nY\\n")  # "X\\n\\nY"
    """
    if not content or not content.strip():
        return ""
    if REASONING_SPAN.search(content) is None:
        return content
    return REASONING_SPAN.sub("", content).strip()
