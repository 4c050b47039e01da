"""Contract between the turn orchestrator and the language model."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..transcript.models import Message
from ..transcript.projector import RenderMessage


@dataclass
class ModelReply:
    """What a model collaborator produced for one turn.

    Attributes:
        final_text: The answer shown to the user
        new_messages: Messages produced during this turn, in order (tool
            requests, tool responses, final model text). Preferred over
            ``full_sequence`` when set.
        full_sequence: The whole sequence the model operated over: the echoed
            history, the user message, then the new messages. Only used when
            ``new_messages`` is not provided.
        fallback_message: The single final message, used when neither of the
            above yields new messages
    """

    final_text: Optional[str] = None
    new_messages: Optional[List[Message]] = None
    full_sequence: Optional[List[Message]] = None
    fallback_message: Optional[Message] = None

    def is_empty(self) -> bool:
        """True when the reply holds nothing the orchestrator can use."""
        return not (
            self.final_text
            or self.new_messages
            or self.full_sequence
            or self.fallback_message
        )


class ModelCollaborator(ABC):
    """Produces a model turn from rendered history and the new user message.

    Implementations may call tools any number of times before answering.
    """

    @abstractmethod
    async def generate(
        self, render_history: List[RenderMessage], user_message: str
    ) -> ModelReply:
        """Run one model turn.

        Raises:
            ModelInvocationError: If the model call fails
        """
