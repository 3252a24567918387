"""
Decision Model - Remediation Recommendation

Represents the output of the Decision Engine. The closed set of states is
what the transport layer switches on to offer (or auto-run) an action.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DecisionState(str, Enum):
    """Possible remediation decisions."""
    AUTO_REPLACE = "AUTO_REPLACE"
    NEEDS_APPROVAL = "NEEDS_APPROVAL"
    NO_ACTION = "NO_ACTION"


class Decision(BaseModel):
    """Structured output of the Decision Engine."""

    decision_state: DecisionState = Field(..., description="Recommended handling")
    rule_index: Optional[int] = Field(
        None,
        description="Index of the decision rule that fired (None for defaults)"
    )
    justification: str = Field(..., description="Human-readable explanation")

    class Config:
        frozen = True

    @property
    def requires_approval(self) -> bool:
        return self.decision_state == DecisionState.NEEDS_APPROVAL
