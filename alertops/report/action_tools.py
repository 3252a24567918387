"""
Remote Action Tools - Renderers for "MCP:<tool>" Action Templates

An action template of the form "MCP:<tool>" is not substituted in place;
it is handed to a named tool from a closed set. Each tool has a fixed
parameter schema and a renderer that turns resolved parameters into the
display text an approver sees (a command, a diff, a pull request plan).
Nothing here executes anything: the remote executor receives the tool name
and the resolved parameters later, after the decision allows it.

Renderers are async so a deployment can swap in one backed by the remote
automation server; the built-in ones render locally and deterministically.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

from alertops.report.templates import compile_template
from alertops.utils.error_handling import ToolRenderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolRendering:
    text: str
    parameters: dict[str, Any]


ToolRenderer = Callable[[dict[str, Any]], Awaitable[ToolRendering]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    required: tuple[str, ...]
    defaults: Mapping[str, Any] = field(default_factory=dict)
    description: str = ""


async def render_gcloud_command(params: dict[str, Any]) -> ToolRendering:
    command = str(params["command"]).strip()
    if not command.startswith("gcloud"):
        raise ToolRenderError("Only gcloud commands are allowed")
    return ToolRendering(text=command, parameters={**params, "command": command})


async def render_gcloud_scale_up(params: dict[str, Any]) -> ToolRendering:
    command = str(params["gcloud_command"]).strip()
    if not command:
        raise ToolRenderError("gcloud command is required")
    return ToolRendering(text=command, parameters={**params, "gcloud_command": command})


async def render_terragrunt_autoscaler_diff(params: dict[str, Any]) -> ToolRendering:
    autoscaler_block = (
        "  autoscaler {\n"
        f"    name = \"{params['schedule_name']}\"\n"
        f"    schedule = \"{params['schedule_expression']}\"\n"
        f"    duration_sec = {params['duration_sec']}\n"
        f"    min_required_replicas = {params['min_replicas']}\n"
        f"    time_zone = \"{params['time_zone']}\"\n"
        "  }\n"
        "  // Autoscaler"
    )
    path = f"{params['environment']}/{params['service_name']}/terragrunt.hcl"
    added = "\n".join(f"+{line}" for line in autoscaler_block.split("\n"))
    diff = (
        f"--- a/{path}\n"
        f"+++ b/{path}\n"
        "@@ -283,6 +283,14 @@\n"
        f"{added}"
    )
    return ToolRendering(text=diff, parameters={**params, "autoscaler_block": autoscaler_block})


async def render_machine_type_diff(params: dict[str, Any]) -> ToolRendering:
    path = f"{params['environment']}/{params['service_name']}/terragrunt.hcl"
    diff = (
        f"diff --git a/{path} b/{path}\n"
        f"--- a/{path}\n"
        f"+++ b/{path}\n"
        "@@ -90,7 +90,7 @@ inputs = merge(\n"
        "     // Instance Template\n"
        "     instance_template = {\n"
        "       name         = local.tf_var_files.name\n"
        f"-      machine_type = \"{params['current_machine_type']}\"\n"
        f"+      machine_type = \"{params['target_machine_type']}\"\n"
        "       tags         = local.tf_var_files.default_network_tags"
    )
    return ToolRendering(text=diff, parameters=dict(params))


async def render_github_pr_append(params: dict[str, Any]) -> ToolRendering:
    block = str(params["block"])
    text = (
        f"Open pull request on {params['repository']} (base {params['base_branch']}): "
        f"{params['title']}\n"
        f"Append to {params['file_path']}:\n"
        f"{block}"
    )
    return ToolRendering(text=text, parameters=dict(params))


TOOL_SPECS: dict[str, ToolSpec] = {
    "gcloud_command": ToolSpec(
        name="gcloud_command",
        required=("command",),
        description="Run a literal gcloud command",
    ),
    "gcloud_scale_up": ToolSpec(
        name="gcloud_scale_up",
        required=("gcloud_command",),
        defaults={"service_name": None},
        description="Scale up a service with the policy's exact gcloud command",
    ),
    "terragrunt_autoscaler_diff": ToolSpec(
        name="terragrunt_autoscaler_diff",
        required=("service_name", "schedule_name", "schedule_expression", "duration_sec", "min_replicas"),
        defaults={"time_zone": "Etc/UTC", "environment": "production"},
        description="Render a terragrunt autoscaler schedule diff",
    ),
    "machine_type_diff": ToolSpec(
        name="machine_type_diff",
        required=("environment", "service_name", "current_machine_type", "target_machine_type"),
        description="Render a terragrunt machine type change diff",
    ),
    "github_pr_append": ToolSpec(
        name="github_pr_append",
        required=("repository", "file_path", "block", "title"),
        defaults={"base_branch": "main"},
        description="Open a pull request appending a fixed block to a file",
    ),
}

BUILTIN_RENDERERS: dict[str, ToolRenderer] = {
    "gcloud_command": render_gcloud_command,
    "gcloud_scale_up": render_gcloud_scale_up,
    "terragrunt_autoscaler_diff": render_terragrunt_autoscaler_diff,
    "machine_type_diff": render_machine_type_diff,
    "github_pr_append": render_github_pr_append,
}


def resolve_parameters(
    spec: ToolSpec,
    template_parameters: Mapping[str, Any],
    fields: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Resolve tool parameters for one parsed alert.

    Template parameters win (their {field} placeholders are filled from the
    parsed alert); a required or defaulted parameter not given by the
    template is taken from the same-named parsed field, then the default.

    Raises:
        ToolRenderError: A required parameter is missing or still holds an
            unresolved placeholder.
    """
    resolved: dict[str, Any] = {}
    for name, value in template_parameters.items():
        if isinstance(value, str):
            compiled = compile_template(value)
            if compiled.unresolved(fields):
                resolved[name] = None
                continue
            value = compiled.render(fields)
        resolved[name] = value

    for name in (*spec.required, *spec.defaults):
        if resolved.get(name) is None:
            resolved[name] = fields.get(name)
        if resolved.get(name) is None and name in spec.defaults:
            resolved[name] = spec.defaults[name]

    missing = [name for name in spec.required if resolved.get(name) in (None, "")]
    if missing:
        raise ToolRenderError(
            f"Missing required parameters for {spec.name}: {', '.join(missing)}"
        )
    return resolved


class ActionToolRegistry:
    """
    Closed registry of remote tools.

    Renderers may be replaced (e.g. by a client of the remote automation
    server) but no tool outside TOOL_SPECS can be added.
    """

    def __init__(self, renderers: Optional[Mapping[str, ToolRenderer]] = None):
        self._renderers: dict[str, ToolRenderer] = dict(BUILTIN_RENDERERS)
        for name, renderer in (renderers or {}).items():
            self.register(name, renderer)

    def register(self, name: str, renderer: ToolRenderer) -> None:
        if name not in TOOL_SPECS:
            raise ValueError(f"Unknown tool '{name}'; expected one of {sorted(TOOL_SPECS)}")
        self._renderers[name] = renderer

    async def render(
        self,
        name: str,
        template_parameters: Mapping[str, Any],
        fields: Mapping[str, Any],
    ) -> ToolRendering:
        """
        Resolve parameters and render one tool action.

        Raises:
            ToolRenderError: Unknown tool, missing parameters or renderer
                failure.
        """
        spec = TOOL_SPECS.get(name)
        if spec is None:
            raise ToolRenderError(f"Unknown tool '{name}'")

        params = resolve_parameters(spec, template_parameters, fields)
        try:
            rendering = await self._renderers[name](params)
        except ToolRenderError:
            raise
        except Exception as e:
            raise ToolRenderError(f"{name} failed: {e}") from e

        logger.debug(f"[ActionTools] Rendered {name} with parameters {sorted(rendering.parameters)}")
        return rendering
