"""Tests for policy model validation."""

import pytest
from pydantic import ValidationError

from alertops.models.decision import DecisionState
from alertops.models.policy import ActionTemplate, PatternSpec, Policy


def _policy(**overrides):
    data = {
        "alert_type": "disk_utilization_low",
        "extraction_defaults": {"alert_type": "disk_utilization_low", "project_id": None, "instance_name": None},
    }
    data.update(overrides)
    return Policy.model_validate(data)


class TestPatternSpec:

    def test_compiles_case_insensitive(self):
        spec = PatternSpec(pattern=r"disk (\S+)", capture_groups={"instance_name": 1})

        assert spec.compiled.search("DISK vm-1").group(1) == "vm-1"

    def test_rejects_unknown_type(self):
        with pytest.raises(ValidationError, match="unsupported pattern type"):
            PatternSpec(type="glob", pattern="disk*")

    def test_rejects_invalid_regex(self):
        with pytest.raises(ValidationError, match="invalid regex"):
            PatternSpec(pattern="disk (unclosed")

    def test_rejects_missing_capture_group(self):
        with pytest.raises(ValidationError, match="capture group 2"):
            PatternSpec(pattern=r"disk (\S+)", capture_groups={"instance_name": 2})


class TestPolicy:

    def test_metadata_only_policy_is_valid(self):
        policy = _policy()

        assert policy.patterns == []
        assert policy.action_templates == []
        assert policy.default_decision is None

    def test_extraction_rules_alias(self):
        policy = Policy.model_validate({
            "alert_type": "disk_utilization_low",
            "extraction_rules": {"alert_type": "disk_utilization_low", "confidence": 0.9},
        })

        assert policy.extraction_defaults["confidence"] == 0.9

    def test_legacy_single_action_template(self):
        policy = _policy(action_template="gcloud compute instances describe {instance_name}")

        assert len(policy.action_templates) == 1
        assert policy.action_templates[0].label == "Default"
        assert policy.action_templates[0].template.startswith("gcloud compute")

    def test_decision_states_are_validated(self):
        policy = _policy(
            decision_rules=[{"condition": {"instance_name": None}, "decision": "NO_ACTION"}],
            default_decision="NEEDS_APPROVAL",
        )

        assert policy.decision_rules[0].decision == DecisionState.NO_ACTION
        assert policy.default_decision == DecisionState.NEEDS_APPROVAL

        with pytest.raises(ValidationError):
            _policy(default_decision="MAYBE")

    def test_unknown_keys_are_ignored(self):
        assert _policy(owner="sre-team").alert_type == "disk_utilization_low"

    def test_missing_critical_fields(self):
        policy = _policy(critical_fields=["service_name", "current_machine_type", "target_machine_type"])

        missing = policy.missing_critical_fields({
            "service_name": "matchmaker",
            "current_machine_type": "  ",
            "target_machine_type": None,
        })

        assert policy.is_field_critical
        assert missing == ["current_machine_type", "target_machine_type"]

    def test_policy_is_immutable(self):
        policy = _policy()

        with pytest.raises(ValidationError):
            policy.alert_type = "other"


class TestActionTemplate:

    def test_tool_name_for_sentinel(self):
        assert ActionTemplate(template="MCP:machine_type_diff").tool_name == "machine_type_diff"

    def test_plain_template_has_no_tool(self):
        assert ActionTemplate(template="gcloud compute ssh {instance_name}").tool_name is None
