"""
Policy-Based Parser - Deterministic First Pass

Policies are tried in declaration order and the first one whose guard
passes and one of whose patterns matches wins. The resulting record must
validate; a record that does not is a policy authoring bug and is raised,
not reported as a non-match.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from alertops.models.alert import ParsedAlert, PARSE_METHOD_POLICY
from alertops.models.policy import Policy, PolicyGuard
from alertops.parsers.pattern_matcher import apply_pattern
from alertops.policies.store import PolicyStore, get_policy_store
from alertops.utils.error_handling import PolicyConfigError
from alertops.utils.text import contains_keyword

logger = logging.getLogger(__name__)


DEFAULT_POLICY_CONFIDENCE = 0.9

# Applied only when neither the defaults nor the text supplied a value
REQUIRED_FIELD_FALLBACKS: dict[str, Any] = {
    "project_id": None,
    "instance_name": None,
    "threshold_percent": None,
    "value_percent": None,
    "metric_labels": {},
    "missing_fields": [],
    "confidence": DEFAULT_POLICY_CONFIDENCE,
}


@dataclass(frozen=True)
class PolicyParseResult:
    matched: bool
    parsed: Optional[ParsedAlert] = None
    policy: Optional[Policy] = None


def guard_allows(guard: Optional[PolicyGuard], text: str) -> bool:
    """Evaluate a policy's keyword guard."""
    if guard is None:
        return True
    if guard.require_any and not contains_keyword(text, guard.require_any):
        return False
    if guard.exclude_any and contains_keyword(text, guard.exclude_any):
        return False
    return True


def build_policy_record(policy: Policy, extracted: dict[str, Any]) -> dict[str, Any]:
    """Layer extraction defaults, extracted fields and required fallbacks."""
    record: dict[str, Any] = {**policy.extraction_defaults, **extracted}
    for field_name, fallback in REQUIRED_FIELD_FALLBACKS.items():
        if record.get(field_name) is None:
            # Fresh containers so records never share mutable defaults
            record[field_name] = type(fallback)() if isinstance(fallback, (dict, list)) else fallback
    record.setdefault("alert_type", policy.alert_type)
    record["parse_method"] = PARSE_METHOD_POLICY
    return record


class PolicyParser:
    """
    Parser driven purely by policy patterns.

    Input: alert text
    Output: PolicyParseResult (parsed alert + originating policy)
    Side Effects: none
    """

    def __init__(self, store: Optional[PolicyStore] = None):
        self._store = store

    @property
    def store(self) -> PolicyStore:
        return self._store or get_policy_store()

    def try_parse(self, text: str) -> PolicyParseResult:
        """Try every policy in order.

        Raises:
            PolicyConfigError: If the matching policy yields an invalid record.
        """
        for policy in self.store.load():
            if not policy.patterns:
                # Metadata-only policy, used by the model prompt
                continue

            if not guard_allows(policy.guard, text):
                logger.debug(f"[PolicyParser] Guard rejected policy {policy.alert_type}")
                continue

            extracted = self._first_match(policy, text)
            if extracted is None:
                continue

            record = build_policy_record(policy, extracted)
            try:
                parsed = ParsedAlert.model_validate(record)
            except ValidationError as e:
                raise PolicyConfigError(
                    f"Policy '{policy.alert_type}' produced an invalid record; "
                    f"check its extraction_defaults and patterns: {e}"
                ) from e

            logger.info(
                f"[PolicyParser] Matched policy {policy.alert_type} "
                f"(fields: {sorted(extracted)})"
            )
            return PolicyParseResult(matched=True, parsed=parsed, policy=policy)

        return PolicyParseResult(matched=False)

    @staticmethod
    def _first_match(policy: Policy, text: str) -> Optional[dict[str, Any]]:
        for pattern in policy.patterns:
            extracted = apply_pattern(pattern, text)
            if extracted is not None:
                return extracted
        return None
