"""Turn orchestration for the chat assistant.

One turn loads the user's session, projects it for the prompt, invokes the
model, splices the newly produced messages onto the canonical transcript
and persists it. Failures degrade the turn instead of surfacing to the user.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..config.settings import DEFAULT_FALLBACK_ANSWER
from ..errors import AssistantError, InvariantError, ModelInvocationError, StoreError
from ..model.base import ModelCollaborator, ModelReply
from ..store.adapter import SessionStore
from ..transcript.models import Message, validate
from ..transcript.projector import to_render_form
from .locks import UserLocks

logger = logging.getLogger(__name__)

EventSink = Callable[[Dict[str, Any]], Awaitable[None]]


class TurnState(Enum):
    """Stage a turn has reached."""

    IDLE = "idle"
    LOADING = "loading"
    PROJECTING = "projecting"
    INVOKING = "invoking"
    SPLICING = "splicing"
    PERSISTING = "persisting"
    DONE = "done"
    ERRORED = "errored"


@dataclass
class TurnResult:
    """Outcome of one turn.

    Attributes:
        answer: Text returned to the user
        state: Final state, DONE or ERRORED
        appended: Messages added to the transcript this turn
        persisted: Whether the transcript was saved
        errors: Recoverable errors met during the turn
    """

    answer: str
    state: TurnState
    appended: List[Message] = field(default_factory=list)
    persisted: bool = False
    errors: List[AssistantError] = field(default_factory=list)


def splice_new_messages(reply: ModelReply, history_length: int) -> List[Message]:
    """Pick the messages a model reply adds to the transcript.

    Preference order: the explicit ``new_messages``; the tail of
    ``full_sequence`` past the echoed history and user message; the
    ``fallback_message``; a model message synthesized from ``final_text``.
    Always returns at least one message.

    Args:
        reply: The model collaborator's reply
        history_length: Number of history messages sent to the model
    """
    if reply.new_messages:
        return list(reply.new_messages)

    if reply.full_sequence is not None:
        start = history_length + 1
        tail = reply.full_sequence[start:]
        if tail:
            return list(tail)
        logger.warning(
            f"Model sequence of length {len(reply.full_sequence)} holds no messages "
            f"past index {start}, falling back to the final message"
        )

    if reply.fallback_message is not None and reply.fallback_message.parts:
        return [reply.fallback_message]

    return [Message.model_text(reply.final_text or "")]


class TurnOrchestrator:
    """Drives conversational turns for any number of users.

    Turns for the same user run one at a time in submission order; turns for
    different users run concurrently.
    """

    def __init__(
        self,
        store: SessionStore,
        model: ModelCollaborator,
        fallback_answer: str = DEFAULT_FALLBACK_ANSWER,
        model_timeout: Optional[float] = None,
        event_sink: Optional[EventSink] = None,
    ):
        """Initialize the orchestrator.

        Args:
            store: Session store adapter
            model: Model collaborator producing each turn
            fallback_answer: Answer given when the model fails
            model_timeout: Seconds allowed for one model turn (None for no limit)
            event_sink: Async callable receiving structured turn events
        """
        self.store = store
        self.model = model
        self.fallback_answer = fallback_answer
        self.model_timeout = model_timeout
        self.event_sink = event_sink
        self._locks = UserLocks()

    async def process_turn(self, user_id: str, user_message: str) -> str:
        """Run a turn and return only the answer text."""
        result = await self.run_turn(user_id, user_message)
        return result.answer

    async def run_turn(self, user_id: str, user_message: str) -> TurnResult:
        """Run one turn for a user.

        Raises:
            ValueError: If the user id or message is blank
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValueError("user_id must be a non-empty string")
        if not isinstance(user_message, str) or not user_message.strip():
            raise ValueError("user_message must be a non-empty string")

        async with self._locks.hold(user_id):
            return await self._run_locked(user_id, user_message)

    async def clear_history(self, user_id: str) -> None:
        """Discard a user's conversation.

        Raises:
            StoreError: If the session could not be deleted
        """
        async with self._locks.hold(user_id):
            await self.store.clear(user_id)
        await self._log_event("history_cleared", user_id)

    async def _run_locked(self, user_id: str, user_message: str) -> TurnResult:
        errors: List[AssistantError] = []
        await self._log_event("turn_started", user_id)

        self._enter(user_id, TurnState.LOADING)
        history: List[Message] = []
        try:
            session = await self.store.load(user_id)
        except StoreError as e:
            logger.warning(f"Could not load session for user {user_id}, starting fresh: {e}")
            errors.append(e)
        else:
            if session is not None:
                history = list(session.messages)
        await self._log_event("session_loaded", user_id, messages=len(history))

        self._enter(user_id, TurnState.PROJECTING)
        render_history = to_render_form(history)

        self._enter(user_id, TurnState.INVOKING)
        user_entry = Message.user_text(user_message)
        try:
            reply = await self._invoke_model(render_history, user_message)
        except ModelInvocationError as e:
            logger.error(f"Model turn failed for user {user_id}: {e}")
            self._enter(user_id, TurnState.ERRORED)
            errors.append(e)
            await self._log_event("model_failed", user_id, error=str(e))
            messages = history + [user_entry]
            await self._check_transcript(user_id, messages, errors)
            persisted = await self._persist(user_id, messages, errors)
            await self._log_event(
                "turn_completed",
                user_id,
                state=TurnState.ERRORED.value,
                appended=1,
                persisted=persisted,
            )
            return TurnResult(
                answer=self.fallback_answer,
                state=TurnState.ERRORED,
                appended=[user_entry],
                persisted=persisted,
                errors=errors,
            )

        self._enter(user_id, TurnState.SPLICING)
        appended = [user_entry] + splice_new_messages(reply, len(render_history))
        messages = history + appended
        await self._check_transcript(user_id, messages, errors)

        self._enter(user_id, TurnState.PERSISTING)
        persisted = await self._persist(user_id, messages, errors)

        self._enter(user_id, TurnState.DONE)
        answer = reply.final_text or self._answer_from(appended) or self.fallback_answer
        await self._log_event(
            "turn_completed",
            user_id,
            state=TurnState.DONE.value,
            appended=len(appended),
            persisted=persisted,
        )
        return TurnResult(
            answer=answer,
            state=TurnState.DONE,
            appended=appended,
            persisted=persisted,
            errors=errors,
        )

    async def _invoke_model(self, render_history, user_message: str) -> ModelReply:
        """Call the model, normalising every failure to ModelInvocationError."""
        try:
            if self.model_timeout is not None:
                reply = await asyncio.wait_for(
                    self.model.generate(render_history, user_message),
                    timeout=self.model_timeout,
                )
            else:
                reply = await self.model.generate(render_history, user_message)
        except ModelInvocationError:
            raise
        except asyncio.TimeoutError as e:
            raise ModelInvocationError(
                f"Model turn timed out after {self.model_timeout} seconds"
            ) from e
        except Exception as e:
            raise ModelInvocationError(f"Model turn failed: {e}") from e

        if reply is None or reply.is_empty():
            raise ModelInvocationError("Model returned nothing usable")
        return reply

    async def _check_transcript(
        self, user_id: str, messages: List[Message], errors: List[AssistantError]
    ) -> None:
        """Validate before saving; violations are reported, never raised."""
        try:
            validate(messages)
        except InvariantError as e:
            logger.warning(f"Transcript for user {user_id} failed validation: {e}")
            errors.append(e)
            await self._log_event("invariant_violation", user_id, violations=e.violations)

    async def _persist(
        self, user_id: str, messages: List[Message], errors: List[AssistantError]
    ) -> bool:
        try:
            await self.store.save(user_id, messages)
        except StoreError as e:
            logger.error(f"Failed to persist session for user {user_id}: {e}")
            errors.append(e)
            await self._log_event("persist_failed", user_id, error=str(e))
            return False
        await self._log_event("turn_persisted", user_id, messages=len(messages))
        return True

    @staticmethod
    def _enter(user_id: str, state: TurnState) -> None:
        logger.debug(f"Turn for user {user_id}: {state.value}")

    @staticmethod
    def _answer_from(appended: List[Message]) -> str:
        for message in reversed(appended[1:]):
            if message.text.strip():
                return message.text.strip()
        return ""

    async def _log_event(self, event_type: str, user_id: str, **kwargs: Any) -> None:
        """Send a structured event to the caller-supplied sink, if any."""
        if not self.event_sink:
            return

        event_data = {
            "timestamp": datetime.now().isoformat(),
            "event_type": event_type,
            "user_id": user_id,
        }
        event_data.update(kwargs)

        try:
            await self.event_sink(event_data)
        except Exception as e:
            logger.warning(f"Event sink failed for {event_type}: {e}")
