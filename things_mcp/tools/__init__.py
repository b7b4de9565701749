"""
Tool registration utilities.

Each module in this package exposes a `register_tools(registry, things_client)`
function that adds its tools to the registry used by the MCP server.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from mcp import types

from ..errors import DuplicateToolError, HandlerFault, UnknownToolError
from ..models import coerce_result, error_result

logger = logging.getLogger(__name__)


ToolFunction = Callable[
    [Dict[str, Any]],
    Union[Awaitable[Any], Any],
]


@dataclass(frozen=True)
class ToolHandler:
    """
    A tool descriptor bound to the function that implements it.

    The function may be a coroutine function or a plain callable; plain callables
    run in the default executor so they never block the event loop.
    """

    tool: types.Tool
    function: ToolFunction

    @property
    def name(self) -> str:
        return self.tool.name

    async def execute(self, arguments: Dict[str, Any]) -> types.CallToolResult:
        if inspect.iscoroutinefunction(self.function):
            value = await self.function(arguments)
        else:
            loop = asyncio.get_running_loop()
            value = await loop.run_in_executor(
                None, functools.partial(self.function, arguments)
            )
            if inspect.isawaitable(value):
                value = await value
        return coerce_result(value)


class ToolRegistry:
    """
    In-memory registry mapping MCP tool names to their handlers.

    Populated once at startup; listing follows registration order.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolHandler] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, handler: ToolHandler) -> None:
        name = handler.name
        if not name:
            raise ValueError("Tool name must be a non-empty string")
        if name in self._tools:
            raise DuplicateToolError(name)
        self._tools[name] = handler
        logger.debug("Registered tool %s", name)

    def add_tool(self, tool: types.Tool, function: ToolFunction) -> ToolHandler:
        handler = ToolHandler(tool=tool, function=function)
        self.register(handler)
        return handler

    def list_tools(self) -> List[types.Tool]:
        return [handler.tool for handler in self._tools.values()]

    def lookup(self, name: str) -> Optional[ToolHandler]:
        return self._tools.get(name)

    def get_handler(self, name: str) -> ToolHandler:
        handler = self.lookup(name)
        if handler is None:
            raise UnknownToolError(name)
        return handler

    async def dispatch(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> types.CallToolResult:
        """
        Resolve ``name`` and run its handler once, without a deadline.

        Unknown tools and handler exceptions come back as error results; nothing
        raised by a single call escapes this method.
        """
        try:
            handler = self.get_handler(name)
        except UnknownToolError as exc:
            logger.warning("Call to unknown tool %r", name)
            return error_result(str(exc))

        try:
            return await handler.execute(dict(arguments or {}))
        except Exception as exc:
            fault = HandlerFault(name, exc)
            logger.warning("Tool %s failed: %s", name, fault)
            return error_result(str(fault))
