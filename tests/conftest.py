from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest
from mcp import types

from things_mcp.dispatcher import Dispatcher
from things_mcp.models import text_result
from things_mcp.tools import ToolHandler, ToolRegistry


@pytest.fixture
def anyio_backend() -> str:
    # The dispatcher races asyncio tasks.
    return "asyncio"


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


def make_handler(name: str, function: Any = None, description: str = "") -> ToolHandler:
    async def _ok(arguments: Dict[str, Any]) -> types.CallToolResult:
        return text_result("ok")

    return ToolHandler(
        tool=types.Tool(
            name=name,
            description=description or f"{name} tool",
            inputSchema={"type": "object"},
        ),
        function=function or _ok,
    )


def make_dispatcher(registry: ToolRegistry, timeout_seconds: float = 1.0) -> Dispatcher:
    return Dispatcher(registry, timeout_seconds=timeout_seconds)


class FakeThingsClient:
    """Records automation calls instead of talking to macOS."""

    def __init__(
        self,
        todos: Optional[List[Dict[str, str]]] = None,
        auth_token: Optional[str] = "secret-token",
    ) -> None:
        self.todos = todos or []
        self.auth_token = auth_token
        self.opened: List[Tuple[str, Dict[str, Any]]] = []
        self.containers: List[str] = []

    async def open_url(self, command: str, params: Optional[Dict[str, Any]] = None) -> str:
        self.opened.append((command, dict(params or {})))
        return f"things:///{command}"

    async def list_todos(self, container: str) -> List[Dict[str, str]]:
        self.containers.append(container)
        return list(self.todos)

    async def is_available(self) -> bool:
        return True


@pytest.fixture
def things_client() -> FakeThingsClient:
    return FakeThingsClient(
        todos=[
            {"id": "A1", "name": "Buy milk", "status": "open"},
            {"id": "B2", "name": "Call mom", "status": "open"},
            {"id": "C3", "name": "File taxes", "status": "completed"},
        ]
    )
