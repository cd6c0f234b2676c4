"""
PropValet Tool Models - Static metadata describing every known tool
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ToolCategory(str, Enum):
    """Tool categories. Each has different default autonomy and risk profiles."""
    QUERY = "query"
    ACTION = "action"
    GENERATE = "generate"
    EXTERNAL = "external"
    WORKFLOW = "workflow"
    MEMORY = "memory"
    PLANNING = "planning"
    INTEGRATION = "integration"


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AutonomyLevel(int, Enum):
    """How much the agent may do without the owner.

    A tool is allowed when the owner's configured level is at least the
    tool's level.
    """
    INFORM = 0      # always needs owner approval
    SUGGEST = 1     # proposes action, needs confirmation
    DRAFT = 2       # prepares action for review
    EXECUTE = 3     # does it, reports after
    AUTONOMOUS = 4  # silent execution


@dataclass(frozen=True)
class ToolMeta:
    """
    Registry entry for one tool name.

    Attributes:
        name: Tool name (snake_case, as offered to the model)
        category: Tool category
        autonomy_level: Minimum autonomy needed to run without approval
        risk_level: Escalation profile
        reversible: Whether the effect can be undone
        compensation_tool: Tool that undoes this one, if any
        is_stub: Registered and discoverable, but answers "coming soon"
    """
    name: str
    category: ToolCategory
    autonomy_level: AutonomyLevel
    risk_level: RiskLevel
    reversible: bool = False
    compensation_tool: Optional[str] = None
    is_stub: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "autonomy_level": int(self.autonomy_level),
            "risk_level": self.risk_level.value,
            "reversible": self.reversible,
            "compensation_tool": self.compensation_tool,
            "is_stub": self.is_stub,
        }
