"""Conversational session engine for the KontrakPro assistant."""

from .core.orchestrator import TurnOrchestrator, TurnResult, TurnState
from .errors import (
    AssistantError,
    InvariantError,
    ModelInvocationError,
    StoreError,
    ToolError,
)

__version__ = "0.1.0"

__all__ = [
    "TurnOrchestrator",
    "TurnResult",
    "TurnState",
    "AssistantError",
    "InvariantError",
    "ModelInvocationError",
    "StoreError",
    "ToolError",
]
