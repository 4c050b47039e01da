"""Tests for the Gemini model collaborator."""

from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from kontrak_assistant.config.settings import AssistantSettings
from kontrak_assistant.errors import ModelInvocationError
from kontrak_assistant.model.gemini import GeminiModel, message_from_content
from kontrak_assistant.tools.base import ToolRegistry
from kontrak_assistant.tools.contracts import (
    CONTRACT_DETAILS_TOOL,
    ContractRecord,
    InMemoryContractRepository,
)
from kontrak_assistant.tools.specs import register_default_specs
from kontrak_assistant.transcript.models import (
    Message,
    Role,
    TextPart,
    ToolRequestPart,
    ToolResponsePart,
)
from kontrak_assistant.transcript.projector import to_render_form


def text_response(text: str) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=[types.Part(text=text)])
            )
        ]
    )


def call_response(
    name: str, args: dict, text: Optional[str] = None
) -> types.GenerateContentResponse:
    parts = []
    if text:
        parts.append(types.Part(text=text))
    parts.append(types.Part(function_call=types.FunctionCall(name=name, args=args)))
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )


@pytest.fixture
def registry():
    registry = ToolRegistry()
    register_default_specs(
        registry,
        InMemoryContractRepository(
            [ContractRecord(id="c-1", title="Acme NDA", status="active", type="NDA")]
        ),
    )
    return registry


@pytest.fixture
def client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


@pytest.fixture
def settings():
    return AssistantSettings(model="gemini-test", temperature=0.2, max_tool_rounds=2)


@pytest.fixture
def model(registry, client, settings):
    return GeminiModel(registry, settings=settings, client=client)


class TestMessageFromContent:
    """Test conversion of Gemini content to transcript messages."""

    def test_text_and_call(self):
        """Test text and function calls map to text and tool request parts."""
        content = call_response(
            CONTRACT_DETAILS_TOOL, {"contractName": "Acme"}, text="Let me check."
        ).candidates[0].content

        message = message_from_content(content)

        assert message == Message(
            Role.MODEL,
            [
                TextPart("Let me check."),
                ToolRequestPart(CONTRACT_DETAILS_TOOL, {"contractName": "Acme"}),
            ],
        )

    def test_nameless_call_is_skipped(self):
        """Test a function call without a name never reaches the transcript."""
        content = types.Content(
            role="model",
            parts=[
                types.Part(text="Checking."),
                types.Part(function_call=types.FunctionCall(args={"contractName": "Acme"})),
            ],
        )

        assert message_from_content(content) == Message.model_text("Checking.")

    def test_thoughts_are_skipped(self):
        """Test thought parts never reach the transcript."""
        content = types.Content(
            role="model",
            parts=[types.Part(text="thinking...", thought=True), types.Part(text="Hi")],
        )

        assert message_from_content(content).text == "Hi"


class TestGeminiModel:
    """Test GeminiModel turn execution."""

    def test_requires_api_key(self, registry, monkeypatch):
        """Test construction fails without a client or key."""
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(ValueError, match="API key not provided"):
            GeminiModel(registry, settings=AssistantSettings())

    def test_build_prompt_with_history(self, model):
        """Test the turn prompt embeds the formatted history."""
        history = to_render_form(
            [Message.user_text("Hello"), Message.model_text("Hi, how can I help?")]
        )

        prompt = model.build_prompt(history, "Thanks")

        assert prompt == (
            "Chat History:\nUser: Hello\nAI: Hi, how can I help?\n\n"
            "Current User Message:\nUser: Thanks\nAI:"
        )

    def test_build_prompt_without_history(self, model):
        """Test an empty history leaves no history block."""
        assert model.build_prompt([], "Hello") == "Current User Message:\nUser: Hello\nAI:"

    def test_build_config(self, model):
        """Test the config carries the system prompt, temperature and tools."""
        config = model.build_config()

        assert "KontrakPro AI" in config.system_instruction
        assert config.temperature == 0.2
        assert config.tools[0].function_declarations[0].name == CONTRACT_DETAILS_TOOL
        assert config.automatic_function_calling.disable is True

    @pytest.mark.asyncio
    async def test_plain_answer(self, model, client):
        """Test a text-only response becomes the final answer."""
        client.aio.models.generate_content.return_value = text_response("Hi, how can I help?")

        reply = await model.generate([], "Hello")

        assert reply.final_text == "Hi, how can I help?"
        assert reply.new_messages == [Message.model_text("Hi, how can I help?")]
        assert reply.fallback_message == Message.model_text("Hi, how can I help?")
        call = client.aio.models.generate_content.call_args
        assert call.kwargs["model"] == "gemini-test"

    @pytest.mark.asyncio
    async def test_tool_round(self, model, client):
        """Test a function call is executed and its result sent back."""
        client.aio.models.generate_content.side_effect = [
            call_response(CONTRACT_DETAILS_TOOL, {"contractName": "acme"}),
            text_response("The Acme NDA is active."),
        ]

        reply = await model.generate([], "What's the status of the Acme NDA?")

        assert reply.final_text == "The Acme NDA is active."
        assert [m.role for m in reply.new_messages] == [Role.MODEL, Role.TOOL, Role.MODEL]
        response_part = reply.new_messages[1].parts[0]
        assert isinstance(response_part, ToolResponsePart)
        assert response_part.tool_name == CONTRACT_DETAILS_TOOL
        assert response_part.output["found"] is True
        assert response_part.output["status"] == "active"

        second_call = client.aio.models.generate_content.call_args_list[1]
        contents = second_call.kwargs["contents"]
        assert contents[2].role == "user"
        function_response = contents[2].parts[0].function_response
        assert function_response.name == CONTRACT_DETAILS_TOOL
        assert function_response.response["found"] is True

    @pytest.mark.asyncio
    async def test_tool_round_limit(self, model, client):
        """Test a model that never stops calling tools is cut off."""
        client.aio.models.generate_content.return_value = call_response(
            CONTRACT_DETAILS_TOOL, {"contractName": "acme"}
        )

        with pytest.raises(ModelInvocationError, match="exceeded 2 tool-call rounds"):
            await model.generate([], "loop")

        assert client.aio.models.generate_content.call_count == 3

    @pytest.mark.asyncio
    async def test_no_candidates(self, model, client):
        """Test an empty candidate list is a model failure."""
        client.aio.models.generate_content.return_value = types.GenerateContentResponse(
            candidates=[]
        )

        with pytest.raises(ModelInvocationError, match="no candidates"):
            await model.generate([], "Hello")

    @pytest.mark.asyncio
    async def test_first_of_several_candidates(self, model, client):
        """Test only the first candidate is used."""
        response = text_response("first")
        response.candidates.append(
            types.Candidate(content=types.Content(role="model", parts=[types.Part(text="second")]))
        )
        client.aio.models.generate_content.return_value = response

        reply = await model.generate([], "Hello")

        assert reply.final_text == "first"

    @pytest.mark.asyncio
    async def test_empty_content(self, model, client):
        """Test a candidate with no usable parts is a model failure."""
        client.aio.models.generate_content.return_value = types.GenerateContentResponse(
            candidates=[types.Candidate(content=types.Content(role="model", parts=[]))]
        )

        with pytest.raises(ModelInvocationError, match="empty response"):
            await model.generate([], "Hello")

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self, model, client):
        """Test API errors surface as ModelInvocationError."""
        client.aio.models.generate_content.side_effect = genai_errors.ServerError(
            500, {"error": {"code": 500, "message": "backend", "status": "INTERNAL"}}
        )

        with pytest.raises(ModelInvocationError, match="Gemini API call failed"):
            await model.generate([], "Hello")
