"""
Pattern Matcher - Evaluate One Policy Pattern Against Alert Text

Matching is case-insensitive. Named groups and the pattern's capture_groups
map are projected into fields; groups that did not participate in the match
are left out of the result rather than set to an empty string.
"""

import logging
from typing import Any, Optional

from alertops.models.policy import PatternSpec
from alertops.utils.error_handling import PolicyConfigError

logger = logging.getLogger(__name__)


# Field names containing any of these are numeric
NUMERIC_FIELD_MARKERS = ("percent", "threshold", "value")


def is_numeric_field(field_name: str) -> bool:
    return any(marker in field_name for marker in NUMERIC_FIELD_MARKERS)


def coerce_field(field_name: str, raw: str) -> Any:
    """Convert a captured string to the field's type."""
    if not is_numeric_field(field_name):
        return raw
    try:
        return float(raw.replace(",", ""))
    except ValueError as e:
        raise PolicyConfigError(
            f"Captured value {raw!r} for numeric field '{field_name}' is not a number; "
            f"fix the pattern's capture group"
        ) from e


def apply_pattern(pattern: PatternSpec, text: str) -> Optional[dict[str, Any]]:
    """
    Apply a single pattern.

    Args:
        pattern: Validated pattern spec.
        text: Alert text.

    Returns:
        Extracted fields, or None when the pattern does not match.
    """
    if pattern.type != "regex":
        # PatternSpec rejects other kinds at load time
        return None

    match = pattern.compiled.search(text)
    if match is None:
        return None

    extracted: dict[str, Any] = {}
    for field_name, raw in match.groupdict().items():
        if raw is not None:
            extracted[field_name] = coerce_field(field_name, raw)

    for field_name, group_index in pattern.capture_groups.items():
        raw = match.group(group_index)
        if raw is not None:
            extracted[field_name] = coerce_field(field_name, raw)

    logger.debug(f"[PatternMatcher] {pattern.pattern!r} matched, fields={sorted(extracted)}")
    return extracted
