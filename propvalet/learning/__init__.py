"""PropValet learning - failure taxonomy consumed by the correction pipeline."""

from .classifier import (
    ClassifiedError,
    ErrorKind,
    classify_tool_error,
    summarise_input,
)

__all__ = [
    "ClassifiedError",
    "ErrorKind",
    "classify_tool_error",
    "summarise_input",
]
