# Report Package
"""
Action rendering and report assembly.

- templates.py: {field} placeholder compiler
- action_tools.py: Closed set of remote tool renderers ("MCP:<tool>")
- formatter.py: Per-option rendering, summary, provenance
"""

from alertops.report.templates import CompiledTemplate, compile_template, render_template
from alertops.report.action_tools import (
    ActionToolRegistry,
    ToolRendering,
    ToolSpec,
    TOOL_SPECS,
    resolve_parameters,
)
from alertops.report.formatter import (
    APPROVAL_REQUIRED_TEXT,
    aggregate_actions,
    format_report,
    get_action_tools,
)

__all__ = [
    "CompiledTemplate",
    "compile_template",
    "render_template",
    "ActionToolRegistry",
    "ToolRendering",
    "ToolSpec",
    "TOOL_SPECS",
    "resolve_parameters",
    "APPROVAL_REQUIRED_TEXT",
    "aggregate_actions",
    "format_report",
    "get_action_tools",
]
