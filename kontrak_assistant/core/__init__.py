"""Turn orchestration."""

from .locks import UserLocks
from .orchestrator import TurnOrchestrator, TurnResult, TurnState, splice_new_messages

__all__ = [
    "UserLocks",
    "TurnOrchestrator",
    "TurnResult",
    "TurnState",
    "splice_new_messages",
]
