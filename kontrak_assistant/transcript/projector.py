"""Projection of the canonical transcript into the prompt-template form.

Prompt templates only accept strings, so structured tool payloads are
serialised to canonical JSON. The projection is one-directional: the render
form is discarded after the prompt is built and is never merged back into
the canonical transcript.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from .models import Message, Role, TextPart, ToolRequestPart, ToolResponsePart

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderToolCall:
    """A tool name with its serialised payload."""

    name: str
    payload: str


@dataclass(frozen=True)
class RenderPart:
    """One rendered part; exactly one field is set."""

    text: Optional[str] = None
    tool_request: Optional[RenderToolCall] = None
    tool_response: Optional[RenderToolCall] = None

    def to_template_dict(self) -> Dict[str, Any]:
        if self.tool_request is not None:
            return {
                "toolRequest": {
                    "name": self.tool_request.name,
                    "input": self.tool_request.payload,
                }
            }
        if self.tool_response is not None:
            return {
                "toolResponse": {
                    "name": self.tool_response.name,
                    "output": self.tool_response.payload,
                }
            }
        return {"text": self.text or ""}


class RoleFlags(NamedTuple):
    is_user: bool
    is_model: bool
    is_tool: bool


@dataclass(frozen=True)
class RenderMessage:
    """A transcript message with every structured payload stringified."""

    role: Role
    parts: Tuple[RenderPart, ...]

    def to_template_dict(self) -> Dict[str, Any]:
        """Shape consumed by the prompt template, including role flags."""
        flags = role_flags(self)
        return {
            "role": self.role.value,
            "parts": [part.to_template_dict() for part in self.parts],
            "isUser": flags.is_user,
            "isModel": flags.is_model,
            "isTool": flags.is_tool,
        }


def canonical_json(value: Any) -> str:
    """Serialise a tool payload deterministically.

    Raises:
        TypeError: If the value holds a non-JSON type
        ValueError: For circular references or non-finite floats
    """
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def role_flags(message: RenderMessage) -> RoleFlags:
    return RoleFlags(
        is_user=message.role is Role.USER,
        is_model=message.role is Role.MODEL,
        is_tool=message.role is Role.TOOL,
    )


def _render_part(part, message_index: int) -> Optional[RenderPart]:
    if isinstance(part, TextPart):
        return RenderPart(text=part.text)

    if isinstance(part, ToolRequestPart):
        name, value, field_name = part.tool_name, part.input, "tool_request"
    elif isinstance(part, ToolResponsePart):
        name, value, field_name = part.tool_name, part.output, "tool_response"
    else:
        logger.warning(
            f"Dropping unknown part type {type(part).__name__} "
            f"in message {message_index}"
        )
        return None

    try:
        payload = canonical_json(value)
    except (TypeError, ValueError) as e:
        logger.warning(
            f"Dropping {field_name} part for '{name}' in message {message_index}: "
            f"payload is not serialisable ({e})"
        )
        return None

    return RenderPart(**{field_name: RenderToolCall(name=name, payload=payload)})


def to_render_form(messages: Iterable[Message]) -> List[RenderMessage]:
    """Project canonical messages into render form.

    Unserialisable parts are dropped individually; the message itself is
    always kept, in its original position.
    """
    rendered: List[RenderMessage] = []
    for index, message in enumerate(messages):
        parts = []
        for part in message.parts:
            render_part = _render_part(part, index)
            if render_part is not None:
                parts.append(render_part)
        rendered.append(RenderMessage(role=message.role, parts=tuple(parts)))
    return rendered
