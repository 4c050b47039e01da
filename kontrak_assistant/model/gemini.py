"""Gemini-backed model collaborator with manual function calling."""

import logging
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config.settings import AssistantSettings
from ..errors import ModelInvocationError
from ..prompts.history import format_history
from ..prompts.service import PromptService
from ..tools.base import ToolRegistry
from ..tools.contracts import CONTRACT_DETAILS_TOOL
from ..transcript.models import (
    Message,
    Part,
    Role,
    TextPart,
    ToolRequestPart,
    ToolResponsePart,
)
from ..transcript.projector import RenderMessage
from .base import ModelCollaborator, ModelReply

logger = logging.getLogger(__name__)


def message_from_content(content: types.Content) -> Message:
    """Convert a model-authored Gemini content into a canonical message.

    Thought parts, nameless function calls and non-text media are skipped.
    """
    parts: List[Part] = []
    for part in content.parts or []:
        if part.thought:
            continue
        if part.function_call is not None:
            if not part.function_call.name:
                logger.warning("Skipping function call without a name")
                continue
            parts.append(
                ToolRequestPart(
                    tool_name=part.function_call.name,
                    input=dict(part.function_call.args or {}),
                )
            )
        elif part.text:
            parts.append(TextPart(text=part.text))
    return Message(role=Role.MODEL, parts=parts)


def _as_function_response(output: Any) -> Dict[str, Any]:
    # The API only accepts objects as function responses
    if isinstance(output, dict):
        return output
    return {"result": output}


class GeminiModel(ModelCollaborator):
    """Runs a chat turn against Gemini, resolving tool calls through a registry."""

    def __init__(
        self,
        tools: ToolRegistry,
        settings: Optional[AssistantSettings] = None,
        client: Optional[genai.Client] = None,
        prompts: Optional[PromptService] = None,
    ):
        """Initialize the Gemini collaborator.

        Args:
            tools: Registry resolving the model's function calls
            settings: Model id, temperature and tool-round limit
            client: Pre-built client; created from the API key if omitted
            prompts: Prompt loader; defaults to the packaged prompts

        Raises:
            ValueError: If no client is given and no API key is configured
        """
        self.tools = tools
        self.settings = settings or AssistantSettings()
        self.prompts = prompts or PromptService()

        if client is None:
            api_key = self.settings.resolve_api_key()
            if not api_key:
                raise ValueError(
                    "API key not provided. Set GOOGLE_API_KEY or GEMINI_API_KEY "
                    "environment variable or add api_key to config.json."
                )
            client = genai.Client(api_key=api_key)
        self._client = client

    def build_prompt(self, render_history: List[RenderMessage], user_message: str) -> str:
        """Render the turn prompt that embeds the chat history."""
        history = format_history(render_history)
        history_block = f"Chat History:\n{history}" if history else ""
        prompt = self.prompts.render_prompt(
            "turn", {"history": history_block, "user_message": user_message}
        )
        return prompt.strip()

    def build_config(self) -> types.GenerateContentConfig:
        system_instruction = self.prompts.render_prompt(
            "system", {"contract_tool": CONTRACT_DETAILS_TOOL}
        )
        declarations = self.tools.function_declarations()
        return types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.settings.temperature,
            tools=[types.Tool(function_declarations=declarations)] if declarations else None,
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )

    async def _generate_content(
        self, contents: List[types.Content], config: types.GenerateContentConfig
    ) -> types.GenerateContentResponse:
        try:
            return await self._client.aio.models.generate_content(
                model=self.settings.model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            raise ModelInvocationError(f"Gemini API call failed: {e}") from e

    async def generate(
        self, render_history: List[RenderMessage], user_message: str
    ) -> ModelReply:
        """Run one turn, executing requested tools until the model answers.

        Returns:
            A reply whose ``new_messages`` holds every model and tool message
            produced in this turn

        Raises:
            ModelInvocationError: On API failure, an empty response, or when
                the model keeps calling tools past the round limit
        """
        prompt = self.build_prompt(render_history, user_message)
        config = self.build_config()
        contents = [types.Content(role="user", parts=[types.Part(text=prompt)])]
        new_messages: List[Message] = []

        for round_number in range(self.settings.max_tool_rounds + 1):
            response = await self._generate_content(contents, config)

            candidates = response.candidates or []
            if not candidates or candidates[0].content is None:
                raise ModelInvocationError("Gemini returned no candidates")
            if len(candidates) > 1:
                logger.debug(f"Gemini returned {len(candidates)} candidates, using the first")

            content = candidates[0].content
            message = message_from_content(content)
            if not message.parts:
                raise ModelInvocationError("Gemini returned an empty response")

            contents.append(content)
            new_messages.append(message)

            calls = [p for p in message.parts if isinstance(p, ToolRequestPart)]
            if not calls:
                return ModelReply(
                    final_text=message.text.strip(),
                    new_messages=new_messages,
                    fallback_message=message,
                )

            logger.debug(
                f"Round {round_number + 1}: model requested "
                f"{', '.join(call.tool_name for call in calls)}"
            )
            response_parts: List[Part] = []
            api_parts: List[types.Part] = []
            for call in calls:
                output = await self.tools.invoke(call.tool_name, call.input)
                response_parts.append(ToolResponsePart(tool_name=call.tool_name, output=output))
                api_parts.append(
                    types.Part.from_function_response(
                        name=call.tool_name, response=_as_function_response(output)
                    )
                )

            contents.append(types.Content(role="user", parts=api_parts))
            new_messages.append(Message(role=Role.TOOL, parts=response_parts))

        raise ModelInvocationError(
            f"Model exceeded {self.settings.max_tool_rounds} tool-call rounds"
        )
