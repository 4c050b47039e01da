"""Formats render-form history into the text block the chat prompt embeds."""

from typing import Iterable, List

from ..transcript.projector import RenderMessage, role_flags


def format_history(history: Iterable[RenderMessage]) -> str:
    """Render history as "User:", "AI:" and tool lines, one message per line.

    System messages carry no role flag and are left out.
    """
    lines: List[str] = []
    for message in history:
        flags = role_flags(message)
        text = "".join(part.text for part in message.parts if part.text is not None)

        if flags.is_user:
            lines.append(f"User: {text}")
        elif flags.is_model and text:
            lines.append(f"AI: {text}")

        if flags.is_model or flags.is_tool:
            for part in message.parts:
                if part.tool_request is not None:
                    lines.append(
                        f"Tool Request: {part.tool_request.name} "
                        f"arguments: {part.tool_request.payload}"
                    )
                elif part.tool_response is not None:
                    lines.append(
                        f"Tool Response (for {part.tool_response.name}): "
                        f"{part.tool_response.payload}"
                    )
    return "\n".join(lines)
