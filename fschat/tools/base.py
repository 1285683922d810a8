"""
Tool Base Class.

Tools are the filesystem "hands" the model can call. Each tool declares
its name, description and JSON schemas as static data, and turns a
FunctionCall into a FunctionResponse carrying the same id and name.

Error Handling:
    Argument problems and execution failures are reported IN the
    response payload, not raised. The model reads the error and can
    correct itself on the next round.

Usage:
    class EchoTool(Tool):
        name = "echo"
        description = "Echo the input back"
        input_schema = {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        }

        async def execute(self, call: FunctionCall) -> FunctionResponse:
            try:
                text = require_string_arg(call.args, "text")
            except ToolArgumentError as e:
                return self.respond(call, {"error": str(e)})
            return self.respond(call, {"result": text})
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from fschat.conversation.turn import FunctionCall, FunctionResponse
from fschat.conversation.value import NullValue, StringValue, StructValue, value_from_python


class ToolArgumentError(Exception):
    """A tool argument is absent, null, or of the wrong type."""

    pass


def require_string_arg(args: StructValue | None, key: str) -> str:
    """
    Extract a required string argument.

    Each failure mode has its own message so the model can tell them apart.

    Raises:
        ToolArgumentError: If args is absent or the key is missing, null,
            or not a string
    """
    if args is None:
        raise ToolArgumentError("Argument is none")
    if key not in args.fields:
        raise ToolArgumentError(f"Required argument '{key}' is missing")
    value = args.fields[key]
    if isinstance(value, NullValue):
        raise ToolArgumentError(f"Required argument '{key}' is null")
    if not isinstance(value, StringValue):
        raise ToolArgumentError(f"String argument '{key}' is not a string")
    return value.value


class Tool(ABC):
    """
    Base class for model-callable tools.

    Contract:
        - name: Unique, case-sensitive identifier
        - description: What the tool does, for the model
        - input_schema: JSON Schema of the arguments
        - response_schema: JSON Schema of the response payload
        - execute: Async; never raises for expected failures
    """

    name: ClassVar[str]
    description: ClassVar[str]
    input_schema: ClassVar[dict[str, Any]]
    response_schema: ClassVar[dict[str, Any] | None] = None

    @abstractmethod
    async def execute(self, call: FunctionCall) -> FunctionResponse:
        """Run the tool for one call."""
        ...

    def respond(self, call: FunctionCall, payload: dict[str, Any]) -> FunctionResponse:
        """Build the FunctionResponse for call from a plain payload dict."""
        return FunctionResponse(
            id=call.id,
            name=call.name,
            response=value_from_python(payload),
        )

    def to_function_declaration(self) -> dict[str, Any]:
        """Declaration handed to the model so it knows the tool exists."""
        declaration = {
            "name": self.name,
            "description": self.description,
            "parameters": self.input_schema,
        }
        if self.response_schema:
            declaration["response"] = self.response_schema
        return declaration

    def __repr__(self) -> str:
        return f"<Tool {self.name}>"


__all__ = [
    "Tool",
    "ToolArgumentError",
    "require_string_arg",
]
