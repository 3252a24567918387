# Rules Package
"""
Deterministic decision rules.

Rules come from the policy file; no rule is hard-coded per alert type.
"""

from alertops.rules.predicates import (
    Contains,
    Equals,
    IsNull,
    MatchesRegex,
    StartsWith,
    Unrecognized,
    condition_holds,
    parse_predicate,
)
from alertops.rules.decision_rules import RuleEngine, decide

__all__ = [
    "Contains",
    "Equals",
    "IsNull",
    "MatchesRegex",
    "StartsWith",
    "Unrecognized",
    "condition_holds",
    "parse_predicate",
    "RuleEngine",
    "decide",
]
