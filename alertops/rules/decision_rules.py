"""
Decision Rules - Declarative Policy Rules

Evaluates a policy's decision_rules against a parsed alert:

1. No policy -> NO_ACTION
2. Rules in declaration order; the first whose condition holds wins
3. No rule holds -> the policy's default_decision, else NO_ACTION

decide() is total: it always returns exactly one DecisionState and never
raises, whatever the policy file contains.
"""

import logging
from typing import Optional

from alertops.models.alert import ParsedAlert
from alertops.models.decision import Decision, DecisionState
from alertops.models.policy import Policy
from alertops.observability.metrics import get_metrics
from alertops.rules.predicates import condition_holds

logger = logging.getLogger(__name__)


class RuleEngine:
    """Evaluates decision rules of one policy."""

    def evaluate(self, parsed: ParsedAlert, policy: Optional[Policy]) -> Decision:
        """
        Produce the decision for a parsed alert.

        Args:
            parsed: Validated parsed alert.
            policy: Policy attached by the parser engine (may be None).

        Returns:
            Decision with state, firing rule index and justification.
        """
        if policy is None:
            return Decision(
                decision_state=DecisionState.NO_ACTION,
                justification="No policy attached to this alert",
            )

        fields = parsed.as_dict()
        for index, rule in enumerate(policy.decision_rules):
            if condition_holds(rule.condition, fields):
                return Decision(
                    decision_state=rule.decision,
                    rule_index=index,
                    justification=f"Rule {index} of policy {policy.alert_type} matched",
                )

        if policy.default_decision is not None:
            return Decision(
                decision_state=policy.default_decision,
                justification=f"No rule matched; default decision of policy {policy.alert_type}",
            )

        return Decision(
            decision_state=DecisionState.NO_ACTION,
            justification=f"No rule matched and policy {policy.alert_type} has no default decision",
        )


_rule_engine = RuleEngine()


def decide(parsed: ParsedAlert, policy: Optional[Policy] = None) -> Decision:
    """Decide how to handle a parsed alert."""
    decision = _rule_engine.evaluate(parsed, policy)
    get_metrics().record_decision(decision.decision_state.value)
    logger.info(
        f"[DecisionEngine] alert_type={parsed.alert_type} "
        f"decision={decision.decision_state.value} ({decision.justification})"
    )
    return decision
