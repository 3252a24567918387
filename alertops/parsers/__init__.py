# Parsers Package
"""
Alert text interpretation.

- pattern_matcher.py: One regex pattern -> typed fields
- policy_parser.py: Deterministic pass over all policies
- llm_parser.py: Model cascade fallback
- engine.py: Orchestration of both, denylist, field completion
"""

from alertops.parsers.pattern_matcher import apply_pattern
from alertops.parsers.policy_parser import PolicyParser, PolicyParseResult
from alertops.parsers.llm_parser import (
    LLMParser,
    LLMParseResult,
    AttemptStatus,
    ModelAttempt,
    candidate_models,
)
from alertops.parsers.engine import ParserEngine, get_parser_engine, parse_alert

__all__ = [
    "apply_pattern",
    "PolicyParser",
    "PolicyParseResult",
    "LLMParser",
    "LLMParseResult",
    "AttemptStatus",
    "ModelAttempt",
    "candidate_models",
    "ParserEngine",
    "get_parser_engine",
    "parse_alert",
]
