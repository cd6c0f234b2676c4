"""
Error classifier - buckets failed tool calls into a four-way taxonomy.

Each kind routes to a different learning artifact downstream:
    TOOL_MISUSE      -> better tool docs / parameter guidance
    CONTEXT_MISSING  -> pre-call existence checks
    FACTUAL_ERROR    -> corrective rules
    REASONING_ERROR  -> prompt-level guidance

Classification is substring matching over the lower-cased error message,
checked in that priority order. It never raises; anything unmatched is a
REASONING_ERROR. The kind names are a wire contract with the learning
pipeline and must not be renamed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..constants import INPUT_SUMMARY_MAX_CHARS
from ..tools.registry import TOOL_META


class ErrorKind(str, Enum):
    TOOL_MISUSE = "TOOL_MISUSE"
    CONTEXT_MISSING = "CONTEXT_MISSING"
    FACTUAL_ERROR = "FACTUAL_ERROR"
    REASONING_ERROR = "REASONING_ERROR"


_MISUSE_PHRASES = ("unknown tool", "not yet implemented", "missing required")
_CONTEXT_PHRASES = (
    "not found",
    "no data",
    "does not exist",
    "no rows",
    "permission denied",
    "access denied",
    "no matching",
)
_FACTUAL_PHRASES = (
    "constraint",
    "duplicate",
    "already exists",
    "violates",
    "out of range",
    "invalid date",
    "type mismatch",
)

CONTEXT_MISSING_ACTION = "Verify entity exists and user has access before calling this tool"
FACTUAL_ERROR_ACTION = "Check data assumptions before executing this tool"
REASONING_ERROR_ACTION = "Review the reasoning chain that led to this tool call"


@dataclass(frozen=True)
class ClassifiedError:
    """A failed tool call with its taxonomy label.

    Derived only; persisting it is the consumer's decision.
    """
    kind: ErrorKind
    message: str
    tool_name: str
    input_summary: Dict[str, Any] = field(default_factory=dict)
    suggested_action: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": {
                "tool_name": self.tool_name,
                "input_summary": self.input_summary,
                "suggested_action": self.suggested_action,
            },
        }


def summarise_input(tool_input: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy ``tool_input`` with long top-level strings cut to 100 chars + '...'."""
    summary: Dict[str, Any] = {}
    for key, value in (tool_input or {}).items():
        if isinstance(value, str) and len(value) > INPUT_SUMMARY_MAX_CHARS:
            summary[key] = value[:INPUT_SUMMARY_MAX_CHARS] + "..."
        else:
            summary[key] = value
    return summary


def _is_misuse(msg: str) -> bool:
    if any(p in msg for p in _MISUSE_PHRASES):
        return True
    if "invalid" in msg and ("parameter" in msg or "input" in msg):
        return True
    return "expected" in msg and "got" in msg


def classify_tool_error(
    tool_name: str,
    tool_input: Optional[Dict[str, Any]],
    error_message: str,
) -> ClassifiedError:
    """Assign a taxonomy label to a failed tool call.

    Deterministic: identical arguments always yield the identical result.
    """
    message = error_message or ""
    msg = message.lower()
    summary = summarise_input(tool_input)

    if _is_misuse(msg):
        meta = TOOL_META.get(tool_name)
        category = meta.category.value if meta else "unknown"
        kind = ErrorKind.TOOL_MISUSE
        action = f'Review tool "{tool_name}" parameters. Category: {category}'
    elif any(p in msg for p in _CONTEXT_PHRASES):
        kind = ErrorKind.CONTEXT_MISSING
        action = CONTEXT_MISSING_ACTION
    elif any(p in msg for p in _FACTUAL_PHRASES):
        kind = ErrorKind.FACTUAL_ERROR
        action = FACTUAL_ERROR_ACTION
    else:
        kind = ErrorKind.REASONING_ERROR
        action = REASONING_ERROR_ACTION

    return ClassifiedError(
        kind=kind,
        message=message,
        tool_name=tool_name,
        input_summary=summary,
        suggested_action=action,
    )
