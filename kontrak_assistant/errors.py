"""Exception types raised by the session engine."""

from typing import Any, List, Optional


class AssistantError(Exception):
    """Base class for all session engine errors."""


class StoreError(AssistantError):
    """Raised when the session store cannot be read or written.

    Covers an unreachable backend as well as a row that cannot be decoded.
    """

    def __init__(
        self, message: str, user_id: Optional[str] = None, operation: str = "unknown"
    ):
        super().__init__(message)
        self.user_id = user_id
        self.operation = operation


class ModelInvocationError(AssistantError):
    """Raised when the model collaborator fails or returns nothing usable."""


class InvariantError(AssistantError):
    """Raised by transcript validation when messages break role/part rules."""

    def __init__(self, violations: List[str]):
        summary = "; ".join(violations) if violations else "invalid transcript"
        super().__init__(f"Transcript invariant violated: {summary}")
        self.violations = list(violations)


class ToolError(AssistantError):
    """Raised by a tool handler when it cannot produce its normal output.

    The registry turns it into ordinary payload data for the model, so it
    never reaches the turn orchestrator.
    """

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        output: Optional[Any] = None,
    ):
        super().__init__(message)
        self.tool_name = tool_name or "unknown_tool"
        self.output = output

    def to_output(self) -> Any:
        """Return the structured payload reported back to the model."""
        if self.output is not None:
            return self.output
        return {"error": str(self)}
