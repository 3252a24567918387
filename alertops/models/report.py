"""
Report Models - Per-request Remediation Report

A report bundles the parsed alert, the decision and the rendered action
options. It is created per request, never shared and never persisted.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from alertops.models.alert import ParsedAlert
from alertops.models.decision import Decision


# Prefix of an action string whose rendering failed. The transport layer
# must not offer an "approve" button for such an option.
ACTION_ERROR_PREFIX = "[action-error] "


def is_action_error(action: Optional[str]) -> bool:
    return bool(action) and action.startswith(ACTION_ERROR_PREFIX)


class ActionOption(BaseModel):
    """One rendered candidate action."""

    label: str
    description: Optional[str] = None
    action: str = Field(..., description="Display text (command, diff, ...) or error string")
    tool: Optional[str] = Field(None, description="Remote tool name for MCP sentinel templates")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Resolved parameters for deterministic later execution"
    )
    failed: bool = False

    class Config:
        frozen = True


class Provenance(BaseModel):
    """Where the report's content came from."""

    parse_method: str
    alert_type: str
    policy_alert_type: Optional[str] = None
    model_used: Optional[str] = None
    original_text: Optional[str] = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        frozen = True


class Report(BaseModel):
    """Final output of the pipeline for one alert."""

    parsed: ParsedAlert
    decision: Decision
    action: Optional[str] = Field(None, description="First option's action (single-action clients)")
    action_options: list[ActionOption] = Field(default_factory=list)
    summary: str
    provenance: Provenance

    class Config:
        frozen = True

    @property
    def approvable_options(self) -> list[ActionOption]:
        return [option for option in self.action_options if not option.failed]
