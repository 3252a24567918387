"""
Tests for the policy store.

Covers source resolution, load-time validation and atomic reload.
"""

import json

import pytest

import alertops.policies.store as store_module
from alertops.config import reload_config
from alertops.policies.store import (
    PolicyStore,
    get_policy_store,
    parse_policies_file,
    resolve_policies_path,
    set_policy_store,
)
from alertops.utils.error_handling import PolicyConfigError


# ============================================================================
# Resolution
# ============================================================================

class TestResolvePoliciesPath:

    def test_explicit_override_wins(self, policies_file):
        assert resolve_policies_path(policies_file) == policies_file.resolve()

    def test_env_override(self, monkeypatch, policies_file):
        monkeypatch.setenv("POLICIES_PATH", str(policies_file))
        reload_config()

        assert resolve_policies_path() == policies_file.resolve()

    def test_default_location(self, monkeypatch, tmp_path):
        default = tmp_path / "config" / "policies.json"
        default.parent.mkdir()
        default.write_text('{"policies": []}')
        monkeypatch.setattr(store_module, "DEFAULT_POLICIES_PATH", default)

        assert resolve_policies_path() == default

    def test_legacy_location_with_warning(self, monkeypatch, tmp_path, caplog):
        legacy = tmp_path / "legacy.json"
        legacy.write_text('{"policies": []}')
        monkeypatch.setattr(store_module, "DEFAULT_POLICIES_PATH", tmp_path / "missing.json")
        monkeypatch.setattr(store_module, "LEGACY_POLICIES_PATH", legacy)

        assert resolve_policies_path() == legacy
        assert "legacy" in caplog.text

    def test_nothing_found(self, monkeypatch, tmp_path):
        monkeypatch.setattr(store_module, "DEFAULT_POLICIES_PATH", tmp_path / "a.json")
        monkeypatch.setattr(store_module, "LEGACY_POLICIES_PATH", tmp_path / "b.json")

        with pytest.raises(PolicyConfigError, match="POLICIES_PATH"):
            resolve_policies_path()


# ============================================================================
# Parsing
# ============================================================================

class TestParsePoliciesFile:

    def test_valid_file(self, policies_file):
        policies = parse_policies_file(policies_file)

        assert [p.alert_type for p in policies] == [
            "disk_utilization_low",
            "add_memory_to_vm",
            "scale_up_service",
            "cpu_utilization_high",
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(PolicyConfigError, match="not found"):
            parse_policies_file(tmp_path / "nope.json")

    def test_invalid_json(self, write_policies):
        path = write_policies("{ not json")

        with pytest.raises(PolicyConfigError, match="Invalid JSON"):
            parse_policies_file(path)

    def test_missing_policies_array(self, write_policies):
        path = write_policies({"rules": []})

        with pytest.raises(PolicyConfigError, match="'policies' array"):
            parse_policies_file(path)

    def test_invalid_policy_names_it(self, write_policies, policies_doc):
        policies_doc["policies"][1]["patterns"][0]["pattern"] = "(unclosed"
        path = write_policies(policies_doc)

        with pytest.raises(PolicyConfigError, match="add_memory_to_vm"):
            parse_policies_file(path)

    def test_duplicate_alert_type(self, write_policies, policies_doc):
        policies_doc["policies"].append(policies_doc["policies"][0])
        path = write_policies(policies_doc)

        with pytest.raises(PolicyConfigError, match="Duplicate alert_type 'disk_utilization_low'"):
            parse_policies_file(path)


# ============================================================================
# Store
# ============================================================================

class TestPolicyStore:

    def test_lazy_load_and_cache(self, policies_file):
        store = PolicyStore(policies_file)
        assert store.source is None

        first = store.load()
        policies_file.write_text(json.dumps({"policies": []}))

        assert store.load() == first
        assert store.source == policies_file.resolve()

    def test_reload_swaps_in_new_set(self, policy_store, policies_file, policies_doc):
        policy_store.load()
        policies_doc["policies"] = policies_doc["policies"][:1]
        policies_file.write_text(json.dumps(policies_doc))

        assert [p.alert_type for p in policy_store.reload()] == ["disk_utilization_low"]
        assert len(policy_store.load()) == 1

    def test_failed_reload_keeps_previous_set(self, policy_store, policies_file):
        before = policy_store.load()
        policies_file.write_text("{ broken")

        with pytest.raises(PolicyConfigError):
            policy_store.reload()

        assert policy_store.load() == before

    def test_reader_snapshot_is_not_mutated_by_reload(self, policy_store, policies_file, policies_doc):
        snapshot = policy_store.load()
        policies_doc["policies"] = []
        policies_file.write_text(json.dumps(policies_doc))

        policy_store.reload()

        assert len(snapshot) == 4

    def test_get_policy(self, policy_store):
        assert policy_store.get_policy("scale_up_service").name == "Scale up"
        assert policy_store.get_policy("unknown") is None
        assert policy_store.get_policy(None) is None

    def test_global_store_can_be_replaced(self, policy_store):
        set_policy_store(policy_store)

        assert get_policy_store() is policy_store
