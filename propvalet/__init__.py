"""
PropValet - tool execution and guardrail layer for an LLM property-management assistant

Surrounding the language model, PropValet:
- dispatches model-emitted tool calls to handlers with a uniform Success/Failure result
- classifies failures into a four-way taxonomy for the learning pipeline
- gates every outbound email through a closed context allowlist
- carries semantic memory (preferences, decision precedent) with deterministic fallback
- returns step-by-step plans for multi-step business workflows

Quick Start:
    from propvalet import PropValet, ToolCall

    app = PropValet("config.yaml")
    outcome = await app.dispatch(ToolCall("get_property", {"property_id": "p-1"}, "owner-1"))
    if outcome.error:
        print(outcome.error.kind)
"""

__version__ = "0.1.0"

from .app import PropValet
from .config import PropValetConfig, load_config
from .errors import EmailGuardError, EmbeddingUnavailableError, PropValetError
from .models import ToolCall, ToolContext
from .result import Failure, Success, ToolResult

__all__ = [
    "PropValet",
    "PropValetConfig",
    "load_config",
    "EmailGuardError",
    "EmbeddingUnavailableError",
    "PropValetError",
    "ToolCall",
    "ToolContext",
    "Failure",
    "Success",
    "ToolResult",
]
