"""Canonical transcript types and their storage codec."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Set, Union

from ..errors import InvariantError


class Role(Enum):
    """Author of a transcript message."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass(frozen=True)
class TextPart:
    """Plain text content."""

    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class ToolRequestPart:
    """A model-initiated call to a named tool with structured input."""

    tool_name: str
    input: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"toolRequest": {"name": self.tool_name, "input": self.input}}


@dataclass(frozen=True)
class ToolResponsePart:
    """The structured result of a tool call."""

    tool_name: str
    output: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"toolResponse": {"name": self.tool_name, "output": self.output}}


Part = Union[TextPart, ToolRequestPart, ToolResponsePart]


def _tool_name(payload: Dict[str, Any]) -> str:
    # An empty name decodes as written; validation reports it
    name = payload.get("name") if isinstance(payload, dict) else None
    if not isinstance(name, str):
        raise ValueError("Tool part is missing a name")
    return name


def part_from_dict(data: Dict[str, Any]) -> Part:
    """Decode a stored part.

    Raises:
        ValueError: If the dict is not one of the known part shapes
    """
    if not isinstance(data, dict):
        raise ValueError(f"Part must be an object, got {type(data).__name__}")
    if "text" in data:
        return TextPart(text=str(data["text"]))
    if "toolRequest" in data:
        request = data["toolRequest"] or {}
        return ToolRequestPart(
            tool_name=_tool_name(request), input=request.get("input")
        )
    if "toolResponse" in data:
        response = data["toolResponse"] or {}
        return ToolResponsePart(
            tool_name=_tool_name(response), output=response.get("output")
        )
    raise ValueError(f"Unknown part shape: {sorted(data.keys())}")


@dataclass
class Message:
    """A single transcript message."""

    role: Role
    parts: List[Part] = field(default_factory=list)

    @classmethod
    def user_text(cls, text: str) -> "Message":
        return cls(role=Role.USER, parts=[TextPart(text=text)])

    @classmethod
    def model_text(cls, text: str) -> "Message":
        return cls(role=Role.MODEL, parts=[TextPart(text=text)])

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored dictionary form."""
        return {
            "role": self.role.value,
            "parts": [part.to_dict() for part in self.parts],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Create from the stored dictionary form.

        Raises:
            ValueError: If the role or any part is not recognised
        """
        if not isinstance(data, dict):
            raise ValueError(f"Message must be an object, got {type(data).__name__}")
        try:
            role = Role(data["role"])
        except KeyError:
            raise ValueError("Message is missing a role")
        parts = [part_from_dict(p) for p in data.get("parts") or []]
        return cls(role=role, parts=parts)


@dataclass
class Session:
    """A user's conversation as owned by the session store."""

    user_id: str
    messages: List[Message]
    last_updated_at: datetime


def messages_to_dicts(messages: Iterable[Message]) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in messages]


def messages_from_dicts(data: Iterable[Dict[str, Any]]) -> List[Message]:
    return [Message.from_dict(item) for item in data]


# Part kinds each role may carry
_ALLOWED_PARTS = {
    Role.USER: (TextPart,),
    Role.SYSTEM: (TextPart,),
    Role.MODEL: (TextPart, ToolRequestPart),
    Role.TOOL: (ToolRequestPart, ToolResponsePart),
}


def find_violations(messages: Iterable[Message]) -> List[str]:
    """Return a description of every invariant the transcript breaks."""
    violations: List[str] = []
    requested: Set[str] = set()

    for index, message in enumerate(messages):
        if not isinstance(message.role, Role):
            violations.append(f"message {index} has unknown role {message.role!r}")
            continue
        if not message.parts:
            violations.append(f"message {index} ({message.role.value}) has no parts")
            continue

        allowed = _ALLOWED_PARTS[message.role]
        for part in message.parts:
            if not isinstance(part, allowed):
                violations.append(
                    f"message {index} ({message.role.value}) carries "
                    f"{type(part).__name__}"
                )
            if isinstance(part, (ToolRequestPart, ToolResponsePart)) and not part.tool_name:
                violations.append(f"message {index} has a tool part without a name")
            if isinstance(part, ToolRequestPart):
                requested.add(part.tool_name)
            elif isinstance(part, ToolResponsePart) and part.tool_name not in requested:
                violations.append(
                    f"message {index} responds to '{part.tool_name}' "
                    f"without a preceding request"
                )

    return violations


def validate(messages: Iterable[Message]) -> None:
    """Check role/part consistency and tool request/response pairing.

    Raises:
        InvariantError: Listing every violation found
    """
    violations = find_violations(messages)
    if violations:
        raise InvariantError(violations)
