"""JSON extraction from free model text.

Backends do not always honour the output-shape contract: some return JSON
wrapped in markdown or surrounded by commentary.
"""

import json
import re
from typing import Any

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def parse_structured_text(text: str) -> Any | None:
    """Extract a JSON value from free text.

    Tries, in order:
    1. The whole trimmed text
    2. Each fenced ``` block
    3. The substring from the first `{` to the last `}`
    4. The substring from the first `[` to the last `]`

    Args:
        text: Raw model text

    Returns:
        The first candidate that parses, or None
    """
    trimmed = text.strip()
    if not trimmed:
        return None

    candidates: list[str] = []

    def push(value: str) -> None:
        value = value.strip()
        if value and value not in candidates:
            candidates.append(value)

    push(trimmed)
    for match in _FENCED_BLOCK.finditer(trimmed):
        push(match.group(1))
    for opener, closer in (("{", "}"), ("[", "]")):
        first = trimmed.find(opener)
        last = trimmed.rfind(closer)
        if first != -1 and last > first:
            push(trimmed[first : last + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
