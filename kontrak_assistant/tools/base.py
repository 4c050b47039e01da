"""Tool spec and registry primitives for assistant tools.

This layer separates tool metadata (name, description, parameters) from the
concrete handler implementation (async callable), and owns invocation so
that every tool outcome, including failures, reaches the model as data.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from google.genai import types
from pydantic import BaseModel, ValidationError

from ..errors import ToolError

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 30.0


@dataclass(frozen=True)
class ToolSpec:
    """Specification describing a tool the model can call.

    - `parameters` follows a JSONSchema-like shape sent to the model.
    - `input_model` / `output_model` validate payloads at the tool boundary.
    """

    name: str
    description: str
    parameters: Dict[str, Any]
    handler: Callable[..., Awaitable[Any]]
    required: List[str] = field(default_factory=list)
    input_model: Optional[Type[BaseModel]] = None
    output_model: Optional[Type[BaseModel]] = None
    timeout: float = DEFAULT_TOOL_TIMEOUT

    def __post_init__(self) -> None:
        unknown = set(self.required) - set(self.parameters)
        if unknown:
            raise ValueError(
                f"ToolSpec '{self.name}' requires undeclared parameters: {sorted(unknown)}"
            )

    def function_declaration(self) -> types.FunctionDeclaration:
        """Describe this tool to the Gemini API."""
        return types.FunctionDeclaration(
            name=self.name,
            description=self.description,
            parameters=types.Schema(
                type="object",
                properties=self.parameters,
                required=list(self.required) or None,
            ),
        )


def _dump_output(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    return value


class ToolRegistry:
    """In-memory registry of tool specifications."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def all(self) -> List[ToolSpec]:
        return list(self._tools.values())

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def __len__(self) -> int:
        return len(self._tools)

    def function_declarations(self) -> List[types.FunctionDeclaration]:
        return [spec.function_declaration() for spec in self._tools.values()]

    async def invoke(self, name: str, tool_input: Optional[Dict[str, Any]] = None) -> Any:
        """Run a tool and return its output as structured data.

        Failures are reported in the returned payload instead of being
        raised, so the model can phrase an answer around them.

        Args:
            name: Registered tool name
            tool_input: Arguments produced by the model

        Returns:
            The tool's JSON-compatible output
        """
        tool_input = dict(tool_input or {})
        spec = self._tools.get(name)
        if spec is None:
            logger.warning(f"Model requested unknown tool '{name}'")
            return {"error": f"Tool '{name}' not found in registry"}

        arguments = tool_input
        if spec.input_model is not None:
            try:
                arguments = spec.input_model.model_validate(tool_input).model_dump()
            except ValidationError as e:
                logger.warning(f"Invalid input for tool '{name}': {e}")
                return {"error": f"Invalid input for tool '{name}': {e}"}

        logger.debug(f"Invoking tool '{name}' with {arguments}")
        try:
            result = await asyncio.wait_for(spec.handler(**arguments), timeout=spec.timeout)
        except ToolError as e:
            logger.info(f"Tool '{name}' reported an error: {e}")
            return _dump_output(e.to_output())
        except asyncio.TimeoutError:
            logger.warning(f"Tool '{name}' timed out after {spec.timeout} seconds")
            return {"error": f"Tool execution timed out after {spec.timeout} seconds"}
        except Exception as e:
            logger.error(f"Tool '{name}' failed: {e}", exc_info=True)
            return {"error": f"Tool execution failed: {e}"}

        if spec.output_model is not None and not isinstance(result, BaseModel):
            try:
                result = spec.output_model.model_validate(result)
            except ValidationError as e:
                logger.error(f"Tool '{name}' returned invalid output: {e}")
                return {"error": f"Tool '{name}' returned invalid output"}

        return _dump_output(result)
