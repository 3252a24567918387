# Models Package
"""
Pydantic models for typed data contracts.

Policies are immutable once loaded; reports are immutable once built.
"""

from alertops.models.decision import Decision, DecisionState
from alertops.models.policy import (
    ActionTemplate,
    DecisionRule,
    PatternSpec,
    Policy,
    PolicyGuard,
    MCP_SENTINEL_PREFIX,
)
from alertops.models.alert import (
    ParsedAlert,
    ParseResult,
    PARSE_METHOD_LLM,
    PARSE_METHOD_POLICY,
)
from alertops.models.report import (
    ActionOption,
    Provenance,
    Report,
    ACTION_ERROR_PREFIX,
    is_action_error,
)

__all__ = [
    "Decision",
    "DecisionState",
    "ActionTemplate",
    "DecisionRule",
    "PatternSpec",
    "Policy",
    "PolicyGuard",
    "MCP_SENTINEL_PREFIX",
    "ParsedAlert",
    "ParseResult",
    "PARSE_METHOD_LLM",
    "PARSE_METHOD_POLICY",
    "ActionOption",
    "Provenance",
    "Report",
    "ACTION_ERROR_PREFIX",
    "is_action_error",
]
