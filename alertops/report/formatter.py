"""
Report Formatter - Action Options and Summary

Renders every action template of the policy into an ActionOption, then the
summary. Options are rendered independently: a template that fails becomes
an option whose action starts with ACTION_ERROR_PREFIX and the remaining
options are unaffected.
"""

import logging
from typing import Optional

from alertops.models.alert import ParsedAlert
from alertops.models.decision import Decision
from alertops.models.policy import ActionTemplate, Policy
from alertops.models.report import ACTION_ERROR_PREFIX, ActionOption, Provenance, Report
from alertops.observability.metrics import get_metrics
from alertops.report.action_tools import ActionToolRegistry
from alertops.report.templates import render_template
from alertops.utils.error_handling import ToolRenderError

logger = logging.getLogger(__name__)

APPROVAL_REQUIRED_TEXT = "Approval required"

# Summary placeholders replaced by the action aggregate before field substitution
AGGREGATE_PLACEHOLDERS = ("{action_options}", "{action}")

_default_tools: Optional[ActionToolRegistry] = None


def get_action_tools() -> ActionToolRegistry:
    global _default_tools
    if _default_tools is None:
        _default_tools = ActionToolRegistry()
    return _default_tools


async def render_option(
    template: ActionTemplate,
    fields: dict,
    tools: ActionToolRegistry,
) -> ActionOption:
    """Render one action template; never raises."""
    tool = template.tool_name
    if tool is None:
        return ActionOption(
            label=template.label,
            description=template.description,
            action=render_template(template.template, fields),
        )

    try:
        rendering = await tools.render(tool, template.parameters, fields)
    except ToolRenderError as e:
        logger.warning(f"[Formatter] Action '{template.label}' ({tool}) failed to render: {e}")
        get_metrics().record_render_failure(tool)
        return ActionOption(
            label=template.label,
            description=template.description,
            action=f"{ACTION_ERROR_PREFIX}{e}",
            tool=tool,
            failed=True,
        )

    return ActionOption(
        label=template.label,
        description=template.description,
        action=rendering.text,
        tool=tool,
        parameters=rendering.parameters,
    )


def aggregate_actions(options: list[ActionOption]) -> Optional[str]:
    """
    Text standing in for {action_options} in the summary.

    One option: its full action text. Several: labels and descriptions only,
    the per-option bodies are carried separately in the report.
    """
    if not options:
        return None
    if len(options) == 1:
        return options[0].action
    lines = []
    for index, option in enumerate(options, start=1):
        line = f"{index}. {option.label}"
        if option.description:
            line += f": {option.description}"
        if option.failed:
            line += " (unavailable)"
        lines.append(line)
    return "\n".join(lines)


def render_summary(
    summary_template: Optional[str],
    options: list[ActionOption],
    fields: dict,
) -> str:
    aggregate = aggregate_actions(options)
    if not summary_template:
        return aggregate if aggregate is not None else APPROVAL_REQUIRED_TEXT

    # Fields first, so braces inside rendered actions are never substituted again
    summary = render_template(summary_template, fields)
    for placeholder in AGGREGATE_PLACEHOLDERS:
        summary = summary.replace(placeholder, aggregate if aggregate is not None else APPROVAL_REQUIRED_TEXT)
    return summary


async def format_report(
    parsed: ParsedAlert,
    decision: Decision,
    policy: Optional[Policy],
    original_text: Optional[str] = None,
    model_used: Optional[str] = None,
    tools: Optional[ActionToolRegistry] = None,
) -> Report:
    """
    Build the remediation report for one parsed alert.

    Args:
        parsed: Validated parsed alert.
        decision: Decision produced for the alert.
        policy: Policy attached by the parser engine, if any.
        original_text: Alert text as received.
        model_used: Model that produced the record, for model-parsed alerts.
        tools: Tool registry for MCP sentinel templates (default: built-in).

    Returns:
        Report with one option per action template, in policy order.
    """
    tools = tools or get_action_tools()
    fields = parsed.as_dict()

    options: list[ActionOption] = []
    if policy is not None:
        for template in policy.action_templates:
            options.append(await render_option(template, fields, tools))

    summary = render_summary(policy.summary_template if policy else None, options, fields)

    provenance = Provenance(
        parse_method=parsed.parse_method,
        alert_type=parsed.alert_type,
        policy_alert_type=policy.alert_type if policy else None,
        model_used=model_used,
        original_text=original_text,
    )

    failed = sum(1 for option in options if option.failed)
    logger.info(
        f"[Formatter] Report for {parsed.alert_type}: {len(options)} option(s), {failed} failed, "
        f"decision={decision.decision_state.value}"
    )

    return Report(
        parsed=parsed,
        decision=decision,
        action=options[0].action if options else None,
        action_options=options,
        summary=summary,
        provenance=provenance,
    )
