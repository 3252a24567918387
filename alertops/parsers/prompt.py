"""
Prompt construction for the model-backed parser.

The prompt carries the whole alert-type catalogue so that the model picks
from the configured types only, plus the disambiguation rules that keep
look-alike requests apart.
"""

import json

from alertops.models.policy import Policy


SYSTEM_PROMPT = (
    "You are a JSON parser. Always return valid JSON only, "
    "no markdown formatting, no code blocks."
)

DISAMBIGUATION_RULES = [
    "Choose disk_utilization_low ONLY when the text is about disk, storage or "
    "filesystem usage. Never choose a memory or RAM alert type for disk/storage text.",
    "Choose a memory upgrade alert type ONLY when the text explicitly mentions memory "
    "or RAM (for example 'add memory', 'increase RAM', 'out of memory').",
    "A generic question (\"how do I scale?\", \"what is a MIG?\") is NOT a remediation "
    "request. Only choose a scaling or upgrade alert type when the text asks for the "
    "change to be made (\"please scale up api\", \"add memory to matchmaker\").",
    "If no alert type fits, return {\"alert_type\": null} and nothing else. Do not guess.",
    "Never invent values. Use null for any field not present in the text and list it in "
    "missing_fields.",
]

OUTPUT_SHAPE = {
    "alert_type": "string (one of the listed alert types) or null",
    "project_id": "string or null",
    "instance_name": "string or null",
    "metric_labels": {},
    "threshold_percent": "number or null",
    "value_percent": "number or null",
    "policy_name": "string or null",
    "condition_name": "string or null",
    "violation_started_raw": "string or null",
    "gcp_alert_url": "string or null",
    "service_name": "string or null",
    "environment": "string or null",
    "current_machine_type": "string or null",
    "target_machine_type": "string or null",
    "confidence": 0.7,
    "missing_fields": ["array of missing field names"],
    "parse_method": "llm",
}


def policy_catalogue(policies: list[Policy]) -> list[dict]:
    return [
        {
            "alert_type": p.alert_type,
            "name": p.name,
            "description": p.description,
            "sample_texts": p.sample_texts,
        }
        for p in policies
    ]


def build_parse_prompt(text: str, policies: list[Policy]) -> str:
    """
    Build the user prompt for one alert.

    Args:
        text: Original alert text.
        policies: Active policy set (catalogue source).

    Returns:
        Prompt string.
    """
    alert_types = ", ".join(p.alert_type for p in policies)
    rules = list(DISAMBIGUATION_RULES)
    for policy in policies:
        rules.extend(f"[{policy.alert_type}] {hint}" for hint in policy.prompt_hints)

    numbered_rules = "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, start=1))

    return f"""You are an alert parser. Parse the following alert text and extract structured information.

Available alert types and examples:
{json.dumps(policy_catalogue(policies), indent=2)}

Disambiguation rules:
{numbered_rules}

Alert text to parse:
{text}

Return a JSON object with the following structure (alert_type is one of: {alert_types}):
{json.dumps(OUTPUT_SHAPE, indent=2)}

Only return valid JSON, no other text."""


def build_messages(text: str, policies: list[Policy]) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_parse_prompt(text, policies)},
    ]
