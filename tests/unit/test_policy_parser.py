"""
Tests for the deterministic policy parser.

Covers declaration order, metadata-only policies, keyword guards and the
record layering of defaults, extracted fields and fallbacks.
"""

import pytest

from alertops.models.policy import Policy, PolicyGuard
from alertops.parsers.policy_parser import (
    DEFAULT_POLICY_CONFIDENCE,
    PolicyParser,
    build_policy_record,
    guard_allows,
)
from alertops.policies.store import PolicyStore
from alertops.utils.error_handling import PolicyConfigError
from tests.conftest import DISK_ALERT_TEXT


@pytest.fixture
def parser(policy_store):
    return PolicyParser(store=policy_store)


class TestTryParse:

    def test_disk_alert(self, parser):
        result = parser.try_parse(DISK_ALERT_TEXT)

        assert result.matched
        assert result.policy.alert_type == "disk_utilization_low"
        parsed = result.parsed
        assert parsed.alert_type == "disk_utilization_low"
        assert parsed.parse_method == "policy"
        assert parsed.project_id == "project-123"
        assert parsed.instance_name == "instance-456"
        assert parsed.threshold_percent == 80.0
        assert parsed.value_percent == 65.5
        assert parsed.confidence == 0.95

    def test_no_policy_matches(self, parser):
        assert not parser.try_parse("hello there").matched

    def test_guard_skips_policy_with_loose_pattern(self, parser):
        # The memory policy's second pattern matches "is low", the guard does not allow it
        result = parser.try_parse("disk space is low")

        assert not result.matched

    def test_same_text_matches_without_guard(self, write_policies, policies_doc):
        del policies_doc["policies"][1]["guard"]
        parser = PolicyParser(store=PolicyStore(write_policies(policies_doc)))

        result = parser.try_parse("disk space is low")

        assert result.matched
        assert result.policy.alert_type == "add_memory_to_vm"

    def test_guard_allows_memory_text(self, parser):
        result = parser.try_parse("please add memory to matchmaker")

        assert result.matched
        assert result.parsed.service_name == "matchmaker"
        assert result.parsed.environment == "production"

    def test_first_policy_in_declaration_order_wins(self, write_policies, policies_doc):
        shadow = dict(policies_doc["policies"][0])
        shadow["alert_type"] = "disk_shadow"
        shadow["extraction_defaults"] = {**shadow["extraction_defaults"], "alert_type": "disk_shadow"}
        policies_doc["policies"].insert(0, shadow)
        parser = PolicyParser(store=PolicyStore(write_policies(policies_doc)))

        assert parser.try_parse(DISK_ALERT_TEXT).policy.alert_type == "disk_shadow"

    def test_metadata_only_policy_is_never_selected(self, write_policies, policies_doc):
        policies_doc["policies"] = [policies_doc["policies"][3]]
        parser = PolicyParser(store=PolicyStore(write_policies(policies_doc)))

        assert not parser.try_parse("CPU utilization for project-123 web-1 is above 90%").matched

    def test_invalid_record_is_a_config_error(self, write_policies, policies_doc):
        policies_doc["policies"][2]["extraction_defaults"] = {
            "alert_type": "scale_up_service",
            "confidence": "high",
        }
        parser = PolicyParser(store=PolicyStore(write_policies(policies_doc)))

        with pytest.raises(PolicyConfigError, match="scale_up_service"):
            parser.try_parse("scale up checkout to 4 replicas")

    def test_identity_fields_default_to_none(self, write_policies, policies_doc):
        policies_doc["policies"][2]["extraction_defaults"] = {"alert_type": "scale_up_service"}
        parser = PolicyParser(store=PolicyStore(write_policies(policies_doc)))

        result = parser.try_parse("scale up checkout to 4 replicas")

        assert result.matched
        assert result.parsed.project_id is None
        assert result.parsed.instance_name is None
        assert result.parsed.service_name == "checkout"


class TestBuildPolicyRecord:

    def test_layering_and_fallbacks(self):
        policy = Policy.model_validate({
            "alert_type": "scale_up_service",
            "extraction_defaults": {"project_id": None, "instance_name": None, "environment": "production"},
        })

        record = build_policy_record(policy, {"service_name": "checkout", "environment": "staging"})

        assert record["alert_type"] == "scale_up_service"
        assert record["environment"] == "staging"
        assert record["metric_labels"] == {}
        assert record["missing_fields"] == []
        assert record["confidence"] == DEFAULT_POLICY_CONFIDENCE
        assert record["parse_method"] == "policy"

    def test_records_do_not_share_containers(self):
        policy = Policy.model_validate({"alert_type": "x", "extraction_defaults": {}})

        first = build_policy_record(policy, {})
        second = build_policy_record(policy, {})

        assert first["metric_labels"] is not second["metric_labels"]


class TestGuardAllows:

    def test_no_guard(self):
        assert guard_allows(None, "anything")

    def test_exclude_any(self):
        guard = PolicyGuard(require_any=["memory"], exclude_any=["disk"])

        assert guard_allows(guard, "add memory to api")
        assert not guard_allows(guard, "add memory to api disk")
