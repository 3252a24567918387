"""
Parser Engine - Policy First, Model Second

Orchestrates the two parsers:

1. The denylist of alert types is applied to every result, whichever
   parser produced it.
2. The policy parser runs first. Its result is returned directly unless the
   policy is field-critical and a critical field is missing, in which case
   the model is consulted on the same text.
3. The model parser runs when no policy matched (or to complete fields).
4. A field-completion result keeps the identified policy, layers model
   fields over the policy's extraction defaults and is tagged "llm".

Policy configuration errors propagate; backend trouble never does.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from alertops.config import get_config
from alertops.models.alert import ParsedAlert, ParseResult, PARSE_METHOD_LLM
from alertops.models.policy import Policy
from alertops.observability.metrics import get_metrics
from alertops.parsers.llm_parser import LLMParser, LLMParseResult
from alertops.parsers.policy_parser import PolicyParser
from alertops.policies.store import PolicyStore
from alertops.utils.error_handling import PolicyConfigError

logger = logging.getLogger(__name__)


def merge_field_completion(policy: Policy, model_parsed: ParsedAlert) -> ParsedAlert:
    """
    Layer model fields over the policy's extraction defaults.

    The alert type stays pinned to the deterministically identified policy.

    Raises:
        PolicyConfigError: The merged record does not validate.
    """
    # Null model fields do not erase policy defaults
    supplied = {k: v for k, v in model_parsed.as_dict().items() if v is not None}
    record = {**policy.extraction_defaults, **supplied}
    for required in ("project_id", "instance_name"):
        record.setdefault(required, None)
    if record.get("alert_type") != policy.alert_type:
        logger.warning(
            f"[ParserEngine] Model proposed alert_type={record.get('alert_type')} while completing "
            f"fields for policy {policy.alert_type}; keeping the policy's alert type"
        )
    record["alert_type"] = policy.alert_type
    record["parse_method"] = PARSE_METHOD_LLM
    try:
        return ParsedAlert.model_validate(record)
    except ValidationError as e:
        raise PolicyConfigError(
            f"Merging model fields into policy '{policy.alert_type}' defaults produced an invalid "
            f"record; check its extraction_defaults: {e}"
        ) from e


class ParserEngine:
    """
    Entry point for turning alert text into a ParsedAlert.

    Input: alert text
    Output: ParseResult
    Side Effects: model backend calls (only when needed)
    """

    def __init__(
        self,
        policy_parser: Optional[PolicyParser] = None,
        llm_parser: Optional[LLMParser] = None,
        store: Optional[PolicyStore] = None,
        denylist: Optional[frozenset[str]] = None,
    ):
        """
        Initialize engine.

        Args:
            policy_parser: Pattern parser (built on `store` by default).
            llm_parser: Model parser (built on `store` by default).
            store: Policy store shared by both parsers.
            denylist: Alert types never returned; read from config per call
                when not given.
        """
        self._policy_parser = policy_parser or PolicyParser(store=store)
        self._llm_parser = llm_parser or LLMParser(store=store)
        self._denylist = denylist

    @property
    def denylist(self) -> frozenset[str]:
        if self._denylist is not None:
            return self._denylist
        return get_config().parser.denylist

    async def parse_alert(self, text: str) -> ParseResult:
        """Parse one alert text; see module docstring for the contract."""
        denylist = self.denylist
        metrics = get_metrics()

        # Step 1: deterministic policies
        policy_result = self._policy_parser.try_parse(text)
        identified_policy: Optional[Policy] = None
        policy_error = "No policy pattern matched"

        if policy_result.matched:
            alert_type = policy_result.parsed.alert_type
            if alert_type in denylist:
                logger.info(f"[ParserEngine] Policy match {alert_type} is disabled; returning no match")
                metrics.record_parse("policy", "denylisted")
                return ParseResult.no_match(f"Alert type '{alert_type}' is disabled")

            missing = policy_result.policy.missing_critical_fields(policy_result.parsed.as_dict())
            if not missing:
                metrics.record_parse("policy", "matched")
                return ParseResult(
                    matched=True,
                    parsed=policy_result.parsed,
                    policy=policy_result.policy,
                )

            identified_policy = policy_result.policy
            policy_error = (
                f"Policy '{identified_policy.alert_type}' matched but critical fields are missing: "
                f"{', '.join(missing)}"
            )
            logger.info(f"[ParserEngine] {policy_error}; asking the model to complete them")

        # Step 2: model (fallback or field completion)
        llm_result = await self._llm_parser.try_parse(text)

        if llm_result.matched and llm_result.parsed.alert_type in denylist:
            logger.info(
                f"[ParserEngine] Model match {llm_result.parsed.alert_type} is disabled; returning no match"
            )
            metrics.record_parse("llm", "denylisted")
            return ParseResult.no_match(f"Alert type '{llm_result.parsed.alert_type}' is disabled")

        if llm_result.matched and identified_policy is not None:
            merged = merge_field_completion(identified_policy, llm_result.parsed)
            metrics.record_parse("llm", "completed")
            return ParseResult(
                matched=True,
                parsed=merged,
                policy=identified_policy,
                model_used=llm_result.model_used,
            )

        if llm_result.matched:
            metrics.record_parse("llm", "matched")
            return ParseResult(
                matched=True,
                parsed=llm_result.parsed,
                policy=llm_result.policy,
                model_used=llm_result.model_used,
            )

        metrics.record_parse("none", "negative" if llm_result.terminal_negative else "unmatched")
        return ParseResult(
            matched=False,
            model_used=llm_result.model_used,
            error=self._combined_error(policy_error, llm_result),
        )

    @staticmethod
    def _combined_error(policy_error: str, llm_result: LLMParseResult) -> str:
        return (
            f"Could not parse alert with policy or LLM. "
            f"Policy: {policy_error}. LLM: {llm_result.error or 'no match'}"
        )


# Global instance
_engine: Optional[ParserEngine] = None


def get_parser_engine() -> ParserEngine:
    global _engine
    if _engine is None:
        _engine = ParserEngine()
    return _engine


async def parse_alert(text: str) -> ParseResult:
    """Parse alert text with the process-wide engine."""
    return await get_parser_engine().parse_alert(text)
