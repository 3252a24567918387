"""
Shared fixtures: a policy file on disk, a policy store over it and a fake
Ollama backend served through httpx.MockTransport.
"""

import copy
import json
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

import alertops.config as config_module
import alertops.observability.metrics as metrics_module
import alertops.parsers.engine as engine_module
import alertops.report.formatter as formatter_module
from alertops.config import reload_config
from alertops.llm.ollama_client import OllamaClient
from alertops.observability.metrics import PipelineMetrics
from alertops.parsers.engine import ParserEngine
from alertops.parsers.llm_parser import LLMParser
from alertops.parsers.policy_parser import PolicyParser
from alertops.policies.store import PolicyStore, set_policy_store


OLLAMA_TEST_URL = "http://ollama.test:11434"

DISK_ALERT_TEXT = "Disk utilization for project-123 instance-456 threshold of 80.0 with a value of 65.5"


# ============================================================================
# Policies
# ============================================================================

TEST_POLICIES: dict[str, Any] = {
    "policies": [
        {
            "alert_type": "disk_utilization_low",
            "name": "Disk utilization",
            "description": "Disk utilization alert for a VM instance",
            "patterns": [
                {
                    "type": "regex",
                    "pattern": r"Disk utilization for (\S+) (\S+) threshold of ([\d.]+) with a value of ([\d.]+)",
                    "capture_groups": {
                        "project_id": 1,
                        "instance_name": 2,
                        "threshold_percent": 3,
                        "value_percent": 4,
                    },
                }
            ],
            "extraction_defaults": {
                "alert_type": "disk_utilization_low",
                "project_id": None,
                "instance_name": None,
                "metric_labels": {},
                "confidence": 0.95,
                "missing_fields": [],
            },
            "decision_rules": [
                {"condition": {"instance_name": {"starts_with": "tmp-"}}, "decision": "AUTO_REPLACE"},
            ],
            "default_decision": "NEEDS_APPROVAL",
            "action_templates": [
                {
                    "label": "Inspect",
                    "template": "gcloud compute instances describe {instance_name} --project={project_id}",
                }
            ],
            "summary_template": "Disk on {instance_name}: {value_percent}% (threshold {threshold_percent}%). {action_options}",
            "sample_texts": [DISK_ALERT_TEXT],
        },
        {
            "alert_type": "add_memory_to_vm",
            "name": "VM memory upgrade",
            "description": "Give a service more memory",
            "guard": {"require_any": ["memory", "ram"]},
            "patterns": [
                {
                    "type": "regex",
                    "pattern": r"(?:add|more)\s+(?:memory|ram)\s+(?:to|for)\s+(?P<service_name>[a-z0-9-]+)",
                },
                # Deliberately loose; only the guard keeps disk texts out
                {"type": "regex", "pattern": r"\bis\s+low\b"},
            ],
            "extraction_defaults": {
                "alert_type": "add_memory_to_vm",
                "project_id": None,
                "instance_name": None,
                "environment": "production",
                "metric_labels": {},
                "confidence": 0.85,
                "missing_fields": [],
            },
            "critical_fields": ["service_name", "current_machine_type", "target_machine_type"],
            "default_decision": "NEEDS_APPROVAL",
            "action_templates": [
                {"label": "Change machine type", "template": "MCP:machine_type_diff"},
            ],
        },
        {
            "alert_type": "scale_up_service",
            "name": "Scale up",
            "description": "Scale a service up to a minimum replica count",
            "patterns": [
                {
                    "type": "regex",
                    "pattern": r"scale up (?P<service_name>[a-z0-9-]+) to (?P<min_replicas>\d+) replicas",
                }
            ],
            "extraction_defaults": {
                "alert_type": "scale_up_service",
                "project_id": None,
                "instance_name": None,
                "metric_labels": {},
                "confidence": 0.9,
                "missing_fields": [],
            },
            "default_decision": "NEEDS_APPROVAL",
            "action_templates": [
                {
                    "label": "Immediate scale up",
                    "description": "Raise the minimum instance count now",
                    "template": "MCP:gcloud_scale_up",
                    "parameters": {
                        "gcloud_command": "gcloud compute instance-groups managed set-autoscaling {service_name} --min-num-replicas={min_replicas}"
                    },
                },
                {
                    "label": "Autoscaler schedule",
                    "description": "Pull request adding a scheduled autoscaler",
                    "template": "MCP:terragrunt_autoscaler_diff",
                },
            ],
            "summary_template": "Scale up {service_name}.\n{action_options}",
        },
        {
            "alert_type": "cpu_utilization_high",
            "name": "CPU utilization",
            "description": "CPU above threshold; model only",
            "extraction_defaults": {
                "alert_type": "cpu_utilization_high",
                "project_id": None,
                "instance_name": None,
                "metric_labels": {},
                "confidence": 0.8,
                "missing_fields": [],
            },
            "sample_texts": ["CPU utilization for project-123 web-1 is above 90%"],
        },
    ]
}


@pytest.fixture
def policies_doc() -> dict[str, Any]:
    """A private deep copy of the test policy document."""
    return copy.deepcopy(TEST_POLICIES)


@pytest.fixture
def write_policies(tmp_path: Path) -> Callable[..., Path]:
    """Write a policy document (or raw text) to a file under tmp_path."""

    def _write(doc: Any, name: str = "policies.json") -> Path:
        path = tmp_path / name
        if isinstance(doc, str):
            path.write_text(doc, encoding="utf-8")
        else:
            path.write_text(json.dumps(doc), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def policies_file(write_policies, policies_doc) -> Path:
    return write_policies(policies_doc)


@pytest.fixture
def policy_store(policies_file) -> PolicyStore:
    return PolicyStore(policies_file)


@pytest.fixture
def policies(policy_store):
    return {policy.alert_type: policy for policy in policy_store.load()}


# ============================================================================
# Isolation
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Clear alertops env vars and process-wide singletons around each test."""
    for name in (
        "POLICIES_PATH",
        "LOG_LEVEL",
        "OLLAMA_URL",
        "OLLAMA_HOST",
        "OLLAMA_MODEL",
        "OLLAMA_HEALTH_TIMEOUT",
        "OLLAMA_CHAT_TIMEOUT",
        "OLLAMA_TEMPERATURE",
        "PARSER_DISABLED_ALERT_TYPES",
    ):
        monkeypatch.delenv(name, raising=False)
    reload_config()

    monkeypatch.setattr(metrics_module, "_metrics", PipelineMetrics())
    monkeypatch.setattr(engine_module, "_engine", None)
    monkeypatch.setattr(formatter_module, "_default_tools", None)
    set_policy_store(None)

    yield

    set_policy_store(None)
    # Rebuilt lazily; env set by the test may be invalid
    config_module._config = None


# ============================================================================
# Fake Ollama backend
# ============================================================================

class FakeOllama:
    """
    In-memory Ollama served through httpx.MockTransport.

    replies maps a model name to what /api/chat answers for it:
    a str (message content), a dict (JSON-encoded content), a
    (status, body) tuple, or a callable taking the request. tags_body
    replaces the /api/tags catalogue built from models.
    """

    def __init__(
        self,
        models: Optional[list[str]] = None,
        replies: Optional[dict[str, Any]] = None,
        tags_status: int = 200,
        unreachable: bool = False,
        tags_body: Any = None,
    ):
        self.models = ["llama3:latest"] if models is None else models
        self.replies = replies or {}
        self.tags_status = tags_status
        self.unreachable = unreachable
        self.tags_body = tags_body
        self.chat_calls: list[dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)

        if request.url.path == "/api/tags":
            if self.tags_status != 200:
                return httpx.Response(self.tags_status, text="backend down")
            if self.tags_body is not None:
                return httpx.Response(200, json=self.tags_body)
            return httpx.Response(200, json={"models": [{"name": m} for m in self.models]})

        if request.url.path == "/api/chat":
            body = json.loads(request.content)
            self.chat_calls.append(body)
            reply = self.replies.get(body["model"])
            if reply is None:
                return httpx.Response(404, json={"error": f"model '{body['model']}' not found"})
            if callable(reply):
                return reply(request)
            if isinstance(reply, tuple):
                status, text = reply
                return httpx.Response(status, text=text)
            if isinstance(reply, dict):
                reply = json.dumps(reply)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": reply}})

        return httpx.Response(404, text="not found")

    def client(self, model: str = "llama3") -> OllamaClient:
        return OllamaClient(
            base_url=OLLAMA_TEST_URL,
            model=model,
            transport=httpx.MockTransport(self.handler),
        )

    @property
    def models_called(self) -> list[str]:
        return [call["model"] for call in self.chat_calls]


def model_reply(alert_type: Optional[str], **fields: Any) -> dict[str, Any]:
    """A schema-valid model payload."""
    payload: dict[str, Any] = {
        "alert_type": alert_type,
        "project_id": None,
        "instance_name": None,
        "metric_labels": {},
        "confidence": 0.7,
        "missing_fields": [],
        "parse_method": "llm",
    }
    payload.update(fields)
    return payload


@pytest.fixture
def make_engine(policy_store):
    """Build a ParserEngine over the test store and a FakeOllama."""

    def _make(backend: FakeOllama, denylist: Optional[frozenset[str]] = None) -> ParserEngine:
        return ParserEngine(
            policy_parser=PolicyParser(store=policy_store),
            llm_parser=LLMParser(client=backend.client(), store=policy_store),
            store=policy_store,
            denylist=denylist if denylist is not None else frozenset(),
        )

    return _make
