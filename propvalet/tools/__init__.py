"""PropValet tools - registry metadata.

The dispatcher and handler set live in ``propvalet.tools.dispatcher``.
"""

from .models import AutonomyLevel, RiskLevel, ToolCategory, ToolMeta
from .registry import DEFAULT_STUB_MESSAGE, STUB_MESSAGES, TOOL_META, ToolRegistry

__all__ = [
    "AutonomyLevel",
    "RiskLevel",
    "ToolCategory",
    "ToolMeta",
    "DEFAULT_STUB_MESSAGE",
    "STUB_MESSAGES",
    "TOOL_META",
    "ToolRegistry",
]
