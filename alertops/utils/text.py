"""String helpers shared by rule predicates and templates."""

import json
import re
from typing import Any, Iterable


def stringify(value: Any) -> str:
    """Render a field value the way operators read it in chat.

    Whole floats drop the trailing ".0" (80.0 -> "80"), booleans are lower
    case, and containers are rendered as compact JSON.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive whole-word search for any of the keywords."""
    for keyword in keywords:
        if re.search(rf"\b{re.escape(keyword)}\b", text, re.IGNORECASE):
            return True
    return False
