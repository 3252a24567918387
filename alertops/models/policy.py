"""
Policy Models - Hot-reloadable Alert Recipes

A policy maps one class of alert text to structured fields, decision rules
and candidate remediation actions. Policies are validated when the policy
file is loaded, so authoring mistakes surface before any alert is parsed.
"""

import re
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from alertops.models.decision import DecisionState


SUPPORTED_PATTERN_TYPES = ("regex",)

# Reserved template prefix delegating rendering to a remote tool
MCP_SENTINEL_PREFIX = "MCP:"


class PatternSpec(BaseModel):
    """One extraction pattern of a policy."""

    type: str = Field(default="regex", description="Pattern kind (only 'regex' today)")
    pattern: str = Field(..., min_length=1, description="Expression, matched case-insensitively")
    capture_groups: dict[str, int] = Field(
        default_factory=dict,
        description="Field name -> regex group index"
    )

    class Config:
        frozen = True

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in SUPPORTED_PATTERN_TYPES:
            raise ValueError(f"unsupported pattern type '{v}', expected one of {SUPPORTED_PATTERN_TYPES}")
        return v

    @model_validator(mode="after")
    def validate_expression(self) -> "PatternSpec":
        try:
            compiled = re.compile(self.pattern, re.IGNORECASE)
        except re.error as e:
            raise ValueError(f"invalid regex {self.pattern!r}: {e}") from e
        for field_name, index in self.capture_groups.items():
            if index < 0 or index > compiled.groups:
                raise ValueError(
                    f"capture group {index} for '{field_name}' does not exist in {self.pattern!r}"
                )
        return self

    @property
    def compiled(self) -> re.Pattern:
        # re keeps its own compile cache, so this is cheap after the first call
        return re.compile(self.pattern, re.IGNORECASE)


class PolicyGuard(BaseModel):
    """Keyword gate evaluated before any pattern of the policy is tried."""

    require_any: list[str] = Field(
        default_factory=list,
        description="At least one keyword must appear in the text"
    )
    exclude_any: list[str] = Field(
        default_factory=list,
        description="No keyword may appear in the text"
    )

    class Config:
        frozen = True


class ActionTemplate(BaseModel):
    """Recipe for one concrete remediation action."""

    label: str = Field(default="Default", description="Short option label shown to approvers")
    description: Optional[str] = Field(None, description="What the action does")
    template: str = Field(..., description="Placeholder string or 'MCP:<tool>' sentinel")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Tool-specific parameters; values may contain {field} placeholders"
    )

    class Config:
        frozen = True

    @property
    def tool_name(self) -> Optional[str]:
        """Remote tool name when the template is an MCP sentinel."""
        if self.template.startswith(MCP_SENTINEL_PREFIX):
            return self.template[len(MCP_SENTINEL_PREFIX):].strip()
        return None


class DecisionRule(BaseModel):
    """All predicates of the condition must hold for the decision to apply."""

    condition: dict[str, Any] = Field(default_factory=dict, description="Field -> predicate")
    decision: DecisionState = Field(..., description="Decision when the condition holds")

    class Config:
        frozen = True


class Policy(BaseModel):
    """
    Configuration recipe for one alert type.

    A policy without patterns is metadata-only: it is never selected by the
    pattern parser but still appears in the model prompt catalogue.
    """

    alert_type: str = Field(..., min_length=1, description="Unique alert type key")
    name: Optional[str] = Field(None, description="Human-readable name")
    description: Optional[str] = Field(None, description="Shown to the model in the catalogue")
    patterns: list[PatternSpec] = Field(default_factory=list)
    extraction_defaults: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extraction_defaults", "extraction_rules"),
        description="Base field values merged under extracted fields"
    )
    action_templates: list[ActionTemplate] = Field(default_factory=list)
    summary_template: Optional[str] = Field(None)
    decision_rules: list[DecisionRule] = Field(default_factory=list)
    default_decision: Optional[DecisionState] = Field(None)
    sample_texts: list[str] = Field(default_factory=list)
    critical_fields: list[str] = Field(
        default_factory=list,
        description="Fields that must be non-null before a pattern match is trusted"
    )
    guard: Optional[PolicyGuard] = Field(None)
    prompt_hints: list[str] = Field(
        default_factory=list,
        description="Extra disambiguation sentences for the model prompt"
    )

    class Config:
        frozen = True
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_action_template(cls, data: Any) -> Any:
        """Accept the single-string `action_template` of older policy files."""
        if isinstance(data, dict) and data.get("action_template") and not data.get("action_templates"):
            data = dict(data)
            data["action_templates"] = [{"label": "Default", "template": data.pop("action_template")}]
        return data

    @property
    def is_field_critical(self) -> bool:
        return bool(self.critical_fields)

    def missing_critical_fields(self, values: dict[str, Any]) -> list[str]:
        """Critical fields that are absent, null or blank in `values`."""
        missing = []
        for field_name in self.critical_fields:
            value = values.get(field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field_name)
        return missing
