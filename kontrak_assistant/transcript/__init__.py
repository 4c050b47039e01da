"""Canonical transcript types and the render-form projection."""

from .models import (
    Message,
    Part,
    Role,
    Session,
    TextPart,
    ToolRequestPart,
    ToolResponsePart,
    find_violations,
    validate,
)
from .projector import (
    RenderMessage,
    RenderPart,
    RenderToolCall,
    RoleFlags,
    canonical_json,
    role_flags,
    to_render_form,
)

__all__ = [
    "Message",
    "Part",
    "Role",
    "Session",
    "TextPart",
    "ToolRequestPart",
    "ToolResponsePart",
    "find_violations",
    "validate",
    "RenderMessage",
    "RenderPart",
    "RenderToolCall",
    "RoleFlags",
    "canonical_json",
    "role_flags",
    "to_render_form",
]
