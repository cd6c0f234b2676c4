"""Handlers for registered integrations that are not live yet."""

from typing import Any, Dict

from ...models import ToolContext
from ...result import Failure, ToolResult
from ..registry import DEFAULT_STUB_MESSAGE, STUB_MESSAGES


def integration_stub(tool_name: str):
    """Build a handler that answers with the tool's "coming soon" workaround."""
    message = STUB_MESSAGES.get(tool_name, DEFAULT_STUB_MESSAGE)

    async def handler(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
        return Failure(message)

    handler.__name__ = tool_name
    return handler


STUB_HANDLERS = {name: integration_stub(name) for name in STUB_MESSAGES}
