"""
Planning tool handlers.

These hand reasoning back to the model: they return the material to think
about plus guidance on what to produce, and never decide anything
themselves. check_plan is the exception, it only counts.
"""

from typing import Any, Dict

from ...models import ToolContext
from ...result import Failure, Success, ToolResult

PLAN_TASK_GUIDANCE = (
    "Break this request into ordered steps. For each step, specify: the tool to use, "
    "the inputs needed, and any dependencies on previous steps. Return JSON: "
    '{ "steps": [{ "step": 1, "tool": "...", "description": "...", "inputs": {...}, '
    '"depends_on": [] }] }'
)

REPLAN_GUIDANCE = (
    "The original plan needs revision. Review what has been completed, what failed, "
    "and why. Create a new plan that accounts for the failure and finds an alternative "
    "path to the goal."
)


async def plan_task(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    if not args.get("request"):
        return Failure("Missing required parameter: request")
    return Success(
        {"request": args["request"], "context": args.get("context") or {}},
        guidance=PLAN_TASK_GUIDANCE,
    )


async def check_plan(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    steps = args.get("steps") or []
    if not isinstance(steps, list):
        return Failure("Invalid input: steps must be a list")

    completed = [s for s in steps if isinstance(s, dict) and s.get("status") == "completed"]
    pending = [s for s in steps if not (isinstance(s, dict) and s.get("status") == "completed")]
    total = len(steps)
    return Success({
        "total_steps": total,
        "completed": len(completed),
        "pending": len(pending),
        "next_step": pending[0] if pending else None,
        "progress_pct": round(len(completed) / total * 100) if total else 0,
    })


async def replan(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    return Success(
        {
            "original_plan": args.get("original_plan"),
            "reason": args.get("reason"),
            "context": args.get("context") or {},
        },
        guidance=REPLAN_GUIDANCE,
    )
