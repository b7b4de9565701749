from __future__ import annotations

from typing import Any, Dict

import pytest
from mcp import types

from things_mcp.errors import DuplicateToolError
from things_mcp.models import text_result
from things_mcp.tools import ToolHandler, ToolRegistry

from .conftest import make_handler


def test_register_and_lookup(registry: ToolRegistry) -> None:
    handler = make_handler("echo")
    registry.register(handler)

    assert registry.lookup("echo") is handler
    assert "echo" in registry
    assert len(registry) == 1


def test_duplicate_registration_raises_and_keeps_count(registry: ToolRegistry) -> None:
    original = make_handler("sample")
    registry.register(original)

    with pytest.raises(DuplicateToolError) as excinfo:
        registry.register(make_handler("sample", description="other"))

    assert "sample" in str(excinfo.value)
    assert len(registry) == 1
    assert registry.lookup("sample") is original


def test_duplicate_error_is_a_value_error() -> None:
    assert issubclass(DuplicateToolError, ValueError)


def test_empty_name_rejected(registry: ToolRegistry) -> None:
    with pytest.raises(ValueError):
        registry.register(make_handler(""))
    assert len(registry) == 0


def test_list_tools_follows_registration_order(registry: ToolRegistry) -> None:
    names = ["zeta", "alpha", "mid", "beta"]
    handlers = [make_handler(n) for n in names]
    for handler in handlers:
        registry.register(handler)

    listed = registry.list_tools()

    assert [t.name for t in listed] == names
    assert listed == [h.tool for h in handlers]
    # listing has no side effects
    assert registry.list_tools() == listed


def test_lookup_is_exact(registry: ToolRegistry) -> None:
    registry.register(make_handler("things_add"))

    assert registry.lookup("Things_Add") is None
    assert registry.lookup("things_ad") is None
    assert registry.lookup("things_add ") is None


def test_add_tool_wraps_function(registry: ToolRegistry) -> None:
    tool = types.Tool(name="t", description="d", inputSchema={"type": "object"})

    def fn(arguments: Dict[str, Any]) -> str:
        return "ok"

    handler = registry.add_tool(tool, fn)

    assert isinstance(handler, ToolHandler)
    assert handler.name == "t"
    assert registry.lookup("t") is handler


@pytest.mark.anyio
async def test_dispatch_unknown_tool_returns_error(registry: ToolRegistry) -> None:
    result = await registry.dispatch("nonexistent", {})

    assert result.isError is True
    assert result.content[0].type == "text"
    assert "nonexistent" in result.content[0].text


@pytest.mark.anyio
async def test_dispatch_converts_handler_exception(registry: ToolRegistry) -> None:
    async def broken(arguments: Dict[str, Any]) -> types.CallToolResult:
        raise ValueError("boom")

    registry.register(make_handler("broken", broken))

    result = await registry.dispatch("broken", {})

    assert result.isError is True
    assert result.content[0].text == "boom"


@pytest.mark.anyio
async def test_dispatch_runs_sync_handlers(registry: ToolRegistry) -> None:
    seen = {}

    def sync_handler(arguments: Dict[str, Any]) -> types.CallToolResult:
        seen.update(arguments)
        return text_result("sync ok")

    registry.register(make_handler("sync", sync_handler))

    result = await registry.dispatch("sync", {"x": 1})

    assert not result.isError
    assert result.content[0].text == "sync ok"
    assert seen == {"x": 1}
