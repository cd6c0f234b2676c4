"""Workflow tool handlers and the maintenance threshold check."""

from typing import Any, Dict

from ...constants import DEFAULT_AUTO_APPROVE_THRESHOLD
from ...models import ToolContext
from ...result import Failure, Success, ToolResult


def _describe(workflow_name: str):
    async def handler(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
        if ctx.workflows is None:
            return Failure("Workflow orchestrator is not configured")
        return await ctx.workflows.describe(workflow_name, args, actor_id)

    handler.__name__ = workflow_name
    return handler


workflow_find_tenant = _describe("workflow_find_tenant")
workflow_onboard_tenant = _describe("workflow_onboard_tenant")
workflow_end_tenancy = _describe("workflow_end_tenancy")
workflow_maintenance_lifecycle = _describe("workflow_maintenance_lifecycle")
workflow_arrears_escalation = _describe("workflow_arrears_escalation")


async def check_maintenance_threshold(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    if args.get("estimated_cost") is None:
        return Failure("Missing required parameter: estimated_cost")
    try:
        cost = float(args["estimated_cost"])
    except (TypeError, ValueError):
        return Failure("Invalid input: estimated_cost must be a number")

    if ctx.workflows is not None:
        threshold = await ctx.workflows.resolve_threshold(actor_id)
    else:
        threshold = float(ctx.setting("workflow", "auto_approve_threshold", DEFAULT_AUTO_APPROVE_THRESHOLD))

    return Success({
        "estimated_cost": cost,
        "threshold": threshold,
        "within_threshold": cost <= threshold,
        "requires_approval": cost > threshold,
    })
