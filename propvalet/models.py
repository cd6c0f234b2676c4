"""
PropValet Models - Shared dataclasses used across the framework

ToolCall is what the model emits; ToolContext is what a handler receives
alongside the call's arguments and the acting user's id.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ToolCall:
    """
    A single tool invocation requested by the model.

    Attributes:
        name: Tool name as emitted by the model (opaque until resolved)
        input: Parsed arguments dict
        actor_id: Authenticated user on whose behalf the call executes
        id: Tool-use id from the LLM response, if any
    """
    name: str
    input: Dict[str, Any]
    actor_id: str
    id: str = ""


@dataclass
class ToolContext:
    """Collaborators available to tool handlers.

    ``db`` is the datastore client every handler needs. The remaining
    collaborators are optional; handlers that need one which is not
    configured return a Failure instead of raising.
    """

    db: Any = None
    memory: Any = None            # SemanticMemory
    email_guard: Any = None       # EmailContextGuard
    email_sender: Any = None      # BaseEmailSender
    notifier: Any = None          # NotificationDispatcher
    workflows: Any = None         # WorkflowOrchestrator
    settings: Any = None          # PropValetConfig
    metadata: Dict[str, Any] = field(default_factory=dict)

    def setting(self, section: str, name: str, default: Optional[Any] = None) -> Any:
        """Read ``settings.<section>.<name>`` with a default when unset."""
        if self.settings is None:
            return default
        group = getattr(self.settings, section, None)
        if group is None:
            return default
        return getattr(group, name, default)
