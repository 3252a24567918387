"""
Alert Models - Canonical Parsed Alert

ParsedAlert is the single record shape produced by both the pattern parser
and the model parser. Alert-type-specific fields are optional and unknown
extra fields are preserved so policy authors can add fields without a code
change.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from alertops.models.policy import Policy


PARSE_METHOD_POLICY = "policy"
PARSE_METHOD_LLM = "llm"

ParseMethod = Literal["policy", "llm"]


class ParsedAlert(BaseModel):
    """
    Canonical representation of one interpreted alert.

    project_id and instance_name must be present but may be null.
    """

    alert_type: str = Field(..., min_length=1, description="Canonical alert type")
    project_id: Optional[str] = Field(..., description="Cloud project id")
    instance_name: Optional[str] = Field(..., description="Affected instance")
    metric_labels: dict[str, str] = Field(..., description="Labels of the alerting metric")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Parser confidence")
    missing_fields: list[str] = Field(..., description="Fields the parser could not fill")
    parse_method: ParseMethod = Field(..., description="Provenance tag")

    # Monitoring alert details
    threshold_percent: Optional[float] = None
    value_percent: Optional[float] = None
    policy_name: Optional[str] = None
    condition_name: Optional[str] = None
    violation_started_raw: Optional[str] = None
    gcp_alert_url: Optional[str] = None

    # Scaling requests
    user_intent: Optional[str] = None
    service_name: Optional[str] = None
    schedule_name: Optional[str] = None
    schedule_expression: Optional[str] = None
    duration_sec: Optional[str] = None
    min_replicas: Optional[str] = None

    # VM memory upgrades
    environment: Optional[str] = None
    current_machine_type: Optional[str] = None
    target_machine_type: Optional[str] = None

    class Config:
        frozen = True
        extra = "allow"

    def as_dict(self) -> dict[str, Any]:
        """All field values, extras included."""
        return self.model_dump()


class ParseResult(BaseModel):
    """Outcome of ParserEngine.parse_alert."""

    matched: bool
    parsed: Optional[ParsedAlert] = None
    policy: Optional[Policy] = None
    model_used: Optional[str] = None
    error: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def no_match(cls, error: str) -> "ParseResult":
        return cls(matched=False, error=error)
