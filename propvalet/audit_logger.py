"""
Structured audit logging for guardrail decisions.

Produces JSON log entries via Python's standard logging module under
the ``propvalet.audit`` logger name.  Each entry includes a timestamp,
event_type, the acting user, and event-specific fields.

Usage::

    audit = AuditLogger()
    audit.log_tool_execution(
        tool_name="get_property",
        args_summary={"property_id": "p-1"},
        success=False,
        duration_ms=12,
        error="Property not found",
        actor_id="owner-1",
    )
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_audit_logger = logging.getLogger("propvalet.audit")


class AuditLogger:
    """Structured audit logger for tool executions and guard decisions."""

    def __init__(self, actor_id: Optional[str] = None) -> None:
        self._default_actor_id = actor_id

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _emit(self, event_type: str, fields: Dict[str, Any]) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        entry.update(fields)
        _audit_logger.info(json.dumps(entry, default=str))

    def _aid(self, actor_id: Optional[str] = None) -> str:
        return actor_id or self._default_actor_id or ""

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def log_tool_execution(
        self,
        tool_name: str,
        args_summary: Dict[str, Any],
        success: bool,
        duration_ms: int,
        error: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> None:
        """Log a tool execution result."""
        fields: Dict[str, Any] = {
            "actor_id": self._aid(actor_id),
            "tool_name": tool_name,
            "args_summary": args_summary,
            "success": success,
            "duration_ms": duration_ms,
        }
        if error is not None:
            fields["error"] = error
        self._emit("tool_execution", fields)

    def log_classified_error(
        self,
        tool_name: str,
        kind: str,
        suggested_action: str,
        actor_id: Optional[str] = None,
    ) -> None:
        """Log the taxonomy label assigned to a failed tool call."""
        self._emit("classified_error", {
            "actor_id": self._aid(actor_id),
            "tool_name": tool_name,
            "kind": kind,
            "suggested_action": suggested_action,
        })

    def log_email_decision(
        self,
        context_type: str,
        allowed: bool,
        reason: str,
        recipient_type: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> None:
        """Log an email context guard decision."""
        self._emit("email_decision", {
            "actor_id": self._aid(actor_id),
            "context_type": context_type,
            "allowed": allowed,
            "reason": reason,
            "recipient_type": recipient_type,
        })

    def log_workflow_described(
        self,
        workflow: str,
        plan_steps: int,
        actor_id: Optional[str] = None,
    ) -> None:
        """Log that workflow guidance was returned to the model."""
        self._emit("workflow_described", {
            "actor_id": self._aid(actor_id),
            "workflow": workflow,
            "plan_steps": plan_steps,
        })
