"""
Tool Registry.

Maps function names to tools and dispatches model-issued calls:
- Registration with validation
- Exact, case-sensitive lookup by name
- Declaration export for the generation client

Usage:
    registry = create_default_registry()

    try:
        response = await registry.dispatch(call)
    except ToolDispatchError as e:
        part = Part.text(str(e))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fschat.conversation.turn import FunctionCall, FunctionResponse

    from .base import Tool

logger = logging.getLogger(__name__)


class ToolRegistryError(Exception):
    """Error in tool registry operations."""

    pass


class ToolDispatchError(Exception):
    """
    A call could not be turned into a FunctionResponse.

    Raised for unknown tool names and for unexpected exceptions escaping a
    tool. The failure is local to that one call.
    """

    pass


class ToolRegistry:
    """
    Registry of tools the model may call.

    Tools are registered once at startup and not changed while
    conversations run.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """
        Register a tool.

        Raises:
            ToolRegistryError: If the name is taken or the tool is malformed
        """
        self._validate_tool(tool)

        if tool.name in self._tools:
            raise ToolRegistryError(
                f"Tool '{tool.name}' already registered. Use a unique name."
            )

        self._tools[tool.name] = tool
        logger.info(f"[tool_registry] Registered tool: {tool.name}")

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def function_declarations(self) -> list[dict[str, Any]]:
        """Declarations of every registered tool, in registration order."""
        return [tool.to_function_declaration() for tool in self._tools.values()]

    async def dispatch(self, call: FunctionCall) -> FunctionResponse:
        """
        Run the tool named by call.

        Raises:
            ToolDispatchError: If no tool has that name, or the tool raised
        """
        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning(f"[tool_registry] Unknown function requested: {call.name!r}")
            raise ToolDispatchError(f"Unknown function '{call.name}'")

        logger.info(f"[tool_registry] Dispatching {call.name} (id={call.id!r})")
        try:
            return await tool.execute(call)
        except Exception as e:
            logger.error(f"[tool_registry] Tool {call.name} raised: {e}", exc_info=True)
            raise ToolDispatchError(f"Function '{call.name}' failed: {e}") from e

    def _validate_tool(self, tool: Tool) -> None:
        if not getattr(tool, "name", None) or not isinstance(tool.name, str):
            raise ToolRegistryError(f"Tool must have a valid name: {tool!r}")

        if not getattr(tool, "description", None) or not isinstance(tool.description, str):
            raise ToolRegistryError(f"Tool '{tool.name}' must have a description")

        schema = getattr(tool, "input_schema", None)
        if not isinstance(schema, dict):
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must be a dict")

        if schema.get("type") != "object":
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must have type: 'object'")

        if "properties" not in schema:
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must have 'properties'")

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"<ToolRegistry tools={list(self._tools.keys())}>"


def create_default_registry(read_max_bytes: int | None = None) -> ToolRegistry:
    """
    Registry with the built-in filesystem tools.

    Args:
        read_max_bytes: Optional size cap for read_fs (None = unlimited)
    """
    from .read_fs import ReadFsTool
    from .search_fs import SearchFsTool

    registry = ToolRegistry()
    registry.register(SearchFsTool())
    registry.register(ReadFsTool(max_bytes=read_max_bytes))
    return registry


__all__ = [
    "ToolDispatchError",
    "ToolRegistry",
    "ToolRegistryError",
    "create_default_registry",
]
