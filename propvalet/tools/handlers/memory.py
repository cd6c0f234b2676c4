"""Memory tool handlers: remember, recall, search_precedent, get_owner_rules."""

from typing import Any, Dict

from ...models import ToolContext
from ...result import Failure, Success, ToolResult

NOT_CONFIGURED = "Semantic memory is not configured"


async def remember(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    if ctx.memory is None:
        return Failure(NOT_CONFIGURED)
    key = args.get("key")
    if not key or "value" not in args:
        return Failure("Missing required parameter: key and value")

    try:
        row = await ctx.memory.remember(
            actor_id,
            key,
            args["value"],
            scope_id=args.get("property_id"),
            confidence=args.get("confidence"),
            source=args.get("source"),
        )
    except ValueError as e:
        return Failure(f"Invalid input: {e}")

    return Success({"remembered": True, "key": key, **row})


async def recall(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    if ctx.memory is None:
        return Failure(NOT_CONFIGURED)
    context = args.get("context")
    result = await ctx.memory.recall(
        actor_id,
        query=context if isinstance(context, str) else None,
        category=args.get("category"),
        scope_id=args.get("property_id"),
    )
    return Success({
        "context": context,
        "preferences": result.items,
        "search_type": result.search_mode.value,
    })


async def search_precedent(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    if ctx.memory is None:
        return Failure(NOT_CONFIGURED)
    query = args.get("query")
    limit = args.get("limit")
    if limit is not None:
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            limit = 0
        if limit < 1:
            return Failure("Invalid input: limit must be a positive integer")
    result = await ctx.memory.search_precedent(
        actor_id,
        query=query if isinstance(query, str) else None,
        tool_name=args.get("tool_name"),
        limit=limit,
    )
    return Success({
        "query": query,
        "precedents": result.items,
        "search_type": result.search_mode.value,
    })


async def get_owner_rules(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    if ctx.memory is None:
        return Failure(NOT_CONFIGURED)
    rules = await ctx.memory.owner_rules(actor_id, scope_id=args.get("property_id"))
    return Success({"rules": rules})
