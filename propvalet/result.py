"""
PropValet Result - The uniform outcome of every tool execution.

A tool either succeeds with data or fails with a human-readable message.
Nothing else crosses the model-facing boundary: no exceptions, no stack
traces, no raw driver errors.

Handlers that hand reasoning back to the model (workflow, planning and
generate tools) attach ``guidance``: natural-language instructions the model
acts on. The framework never executes that guidance itself.

Example:
    return Success({"property": row})
    return Success({"plan": steps}, guidance="Ask for approval before step 3.")
    return Failure("Property not found")
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class Success:
    """Successful tool execution."""
    data: Any = None
    guidance: Optional[str] = None

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the model-facing tool_result block."""
        payload: Dict[str, Any] = {"success": True, "data": self.data}
        if self.guidance:
            payload["guidance"] = self.guidance
        return payload


@dataclass(frozen=True)
class Failure:
    """Failed tool execution with a message the model can relay or act on."""
    message: str

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


ToolResult = Union[Success, Failure]
