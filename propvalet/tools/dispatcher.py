"""
PropValet Tool Dispatcher - turns a model-emitted tool call into one result

The dispatcher is the failure boundary between the model and the backend:
whatever a handler does, the model gets back exactly one Success or
Failure, never an exception.

Resolution order for a tool name:
1. In HANDLERS             -> run the handler (exceptions become Failure)
2. In TOOL_META only       -> "registered ... but its handler is not yet implemented"
3. Neither                 -> "Unknown tool: <name>"

Usage:
    dispatcher = ToolDispatcher(context)
    result = await dispatcher.execute("get_property", {"property_id": "p-1"}, "owner-1")
    outcome = await dispatcher.dispatch(ToolCall("get_property", {...}, "owner-1"))
    outcome.error  # ClassifiedError or None
"""

import logging
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from ..audit_logger import AuditLogger
from ..learning.classifier import ClassifiedError, classify_tool_error, summarise_input
from ..models import ToolCall, ToolContext
from ..result import Failure, Success, ToolResult
from .handlers import email, memory, planning, queries, workflow
from .handlers.stubs import STUB_HANDLERS
from .registry import TOOL_META, ToolRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any], str, ToolContext], Awaitable[ToolResult]]


def build_handler_map(handlers: Mapping[str, Handler]) -> Mapping[str, Handler]:
    """Freeze a name -> handler map, rejecting names the registry does not know."""
    unknown = sorted(set(handlers) - set(TOOL_META))
    if unknown:
        raise ValueError(f"Handlers registered for unknown tools: {', '.join(unknown)}")
    return MappingProxyType(dict(handlers))


HANDLERS: Mapping[str, Handler] = build_handler_map({
    # query
    "get_property": queries.get_property,
    "get_properties": queries.get_properties,
    "get_tenancy": queries.get_tenancy,
    "get_arrears_detail": queries.get_arrears_detail,
    "check_maintenance_threshold": workflow.check_maintenance_threshold,
    # action
    "log_arrears_action": queries.log_arrears_action,
    # workflow
    "workflow_find_tenant": workflow.workflow_find_tenant,
    "workflow_onboard_tenant": workflow.workflow_onboard_tenant,
    "workflow_end_tenancy": workflow.workflow_end_tenancy,
    "workflow_maintenance_lifecycle": workflow.workflow_maintenance_lifecycle,
    "workflow_arrears_escalation": workflow.workflow_arrears_escalation,
    # memory
    "remember": memory.remember,
    "recall": memory.recall,
    "search_precedent": memory.search_precedent,
    # planning
    "plan_task": planning.plan_task,
    "check_plan": planning.check_plan,
    "replan": planning.replan,
    "get_owner_rules": memory.get_owner_rules,
    # integration
    "send_email": email.send_email,
    **STUB_HANDLERS,
})


@dataclass
class DispatchOutcome:
    """Result of ``dispatch``: the tool result plus its classification."""
    call: ToolCall
    result: ToolResult
    duration_ms: int
    error: Optional[ClassifiedError] = None

    @property
    def success(self) -> bool:
        return self.result.success

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool_name": self.call.name,
            "result": self.result.to_dict(),
            "duration_ms": self.duration_ms,
            "error": self.error.to_dict() if self.error else None,
        }


class ToolDispatcher:
    """
    Resolves tool names to handlers and executes them.

    Stateless per call; all side effects belong to the handlers.
    """

    def __init__(
        self,
        context: Optional[ToolContext] = None,
        registry: Optional[ToolRegistry] = None,
        handlers: Optional[Mapping[str, Handler]] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.context = context or ToolContext()
        self.registry = registry or ToolRegistry.get_instance()
        self.handlers = handlers if handlers is not None else HANDLERS
        self._audit = audit or AuditLogger()

    @property
    def implemented_count(self) -> int:
        return len(self.handlers)

    async def execute(self, tool_name: str, tool_input: Any, actor_id: str) -> ToolResult:
        """Run one tool. Never raises."""
        handler = self.handlers.get(tool_name) if isinstance(tool_name, str) else None

        if handler is None:
            meta = self.registry.get(tool_name) if isinstance(tool_name, str) else None
            if meta is not None:
                return Failure(
                    f"Tool '{tool_name}' is registered (category: {meta.category.value}) "
                    "but its handler is not yet implemented."
                )
            return Failure(f"Unknown tool: {tool_name}")

        if tool_input is None:
            tool_input = {}
        if not isinstance(tool_input, dict):
            return Failure(
                f"Invalid input for tool '{tool_name}': expected an object, "
                f"got {type(tool_input).__name__}"
            )

        try:
            result = await handler(dict(tool_input), actor_id, self.context)
        except Exception as e:
            logger.error(f"Tool '{tool_name}' execution failed: {e}", exc_info=True)
            return Failure(f"Tool '{tool_name}' execution error: {e}")

        if not isinstance(result, (Success, Failure)):
            logger.error(f"Tool '{tool_name}' returned {type(result).__name__}, not a ToolResult")
            return Failure(
                f"Tool '{tool_name}' execution error: handler returned {type(result).__name__}"
            )
        return result

    async def dispatch(self, call: ToolCall) -> DispatchOutcome:
        """``execute`` plus error classification and audit logging."""
        start = time.monotonic()
        result = await self.execute(call.name, call.input, call.actor_id)
        duration_ms = int((time.monotonic() - start) * 1000)

        tool_input = call.input if isinstance(call.input, dict) else {}
        error = None
        if not result.success:
            error = classify_tool_error(call.name, tool_input, result.message)
            self._audit.log_classified_error(
                call.name, error.kind.value, error.suggested_action, actor_id=call.actor_id
            )

        self._audit.log_tool_execution(
            tool_name=call.name,
            args_summary=summarise_input(tool_input),
            success=result.success,
            duration_ms=duration_ms,
            error=None if result.success else result.message,
            actor_id=call.actor_id,
        )
        logger.info(f"Tool '{call.name}' executed: {'success' if result.success else 'error'}")
        return DispatchOutcome(call=call, result=result, duration_ms=duration_ms, error=error)
