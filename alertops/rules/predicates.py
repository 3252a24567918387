"""
Rule Predicates - Closed Set of Field Tests

A decision rule condition maps field names to predicate specs. Each spec is
parsed into one of a fixed set of predicate kinds:

    "x" / 5 / true        -> Equals
    null                  -> IsNull
    {"equals": v}         -> Equals
    {"is_null": bool}     -> IsNull (False means "is present")
    {"starts_with": s}    -> StartsWith
    {"contains": s}       -> Contains
    {"matches": regex}    -> MatchesRegex

Anything else becomes Unrecognized, which never holds. Comparisons run
against the field value rendered as a string.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Union

from alertops.utils.text import stringify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Equals:
    expected: Any

    def holds(self, value: Any) -> bool:
        if value is None:
            return False
        return stringify(value) == stringify(self.expected)


@dataclass(frozen=True)
class IsNull:
    expect_null: bool = True

    def holds(self, value: Any) -> bool:
        return (value is None) == self.expect_null


@dataclass(frozen=True)
class StartsWith:
    prefix: str

    def holds(self, value: Any) -> bool:
        return value is not None and stringify(value).startswith(self.prefix)


@dataclass(frozen=True)
class Contains:
    fragment: str

    def holds(self, value: Any) -> bool:
        return value is not None and self.fragment in stringify(value)


@dataclass(frozen=True)
class MatchesRegex:
    expression: str

    def holds(self, value: Any) -> bool:
        if value is None:
            return False
        try:
            return re.search(self.expression, stringify(value)) is not None
        except re.error as e:
            logger.warning(f"[Predicates] Invalid regex {self.expression!r} in decision rule: {e}")
            return False


@dataclass(frozen=True)
class Unrecognized:
    spec: Any

    def holds(self, value: Any) -> bool:
        return False


Predicate = Union[Equals, IsNull, StartsWith, Contains, MatchesRegex, Unrecognized]

_STRING_OPERATORS = {
    "starts_with": StartsWith,
    "contains": Contains,
    "matches": MatchesRegex,
}


def parse_predicate(spec: Any) -> Predicate:
    """Turn a condition value from the policy file into a predicate."""
    if spec is None:
        return IsNull(True)
    if isinstance(spec, (str, int, float, bool)):
        return Equals(spec)
    if isinstance(spec, dict) and len(spec) == 1:
        ((operator, operand),) = spec.items()
        if operator == "equals" and (operand is None or isinstance(operand, (str, int, float, bool))):
            return IsNull(True) if operand is None else Equals(operand)
        if operator == "is_null" and isinstance(operand, bool):
            return IsNull(operand)
        if operator in _STRING_OPERATORS and isinstance(operand, str):
            return _STRING_OPERATORS[operator](operand)
    return Unrecognized(spec)


def condition_holds(condition: dict[str, Any], fields: dict[str, Any]) -> bool:
    """AND over every field predicate of a condition."""
    for field_name, spec in condition.items():
        if not parse_predicate(spec).holds(fields.get(field_name)):
            return False
    return True
