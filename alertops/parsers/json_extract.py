"""Cleaning of model replies into a JSON object."""

import json
import re
from typing import Any, Optional

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_markdown_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", content))
    return content


def first_balanced_object(text: str) -> Optional[str]:
    """
    Find the first balanced { ... } in text using brace-depth counting.
    Respects quoted strings so braces inside strings are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        ch = text[i]
        if escape:
            escape = False
            continue
        if ch == "\\":
            if in_string:
                escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json_object(content: str) -> dict[str, Any]:
    """
    Turn a chat reply into a dict.

    Raises:
        ValueError: No JSON object could be recovered.
    """
    cleaned = strip_markdown_fences(content)
    span = first_balanced_object(cleaned)
    if span is None:
        raise ValueError(f"No JSON object in model reply: {cleaned[:120]!r}")
    data = json.loads(span)
    if not isinstance(data, dict):
        raise ValueError("Model reply JSON is not an object")
    return data
