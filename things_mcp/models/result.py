from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from mcp import types


def text_result(text: str) -> types.CallToolResult:
    """Success result carrying a single text item."""
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)])


def error_result(text: str) -> types.CallToolResult:
    """Failure result. Same wire shape as a success, with ``isError`` set."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=True,
    )


def is_error(result: types.CallToolResult) -> bool:
    return bool(result.isError)


def coerce_result(value: Any) -> types.CallToolResult:
    """
    Normalize whatever a handler returned into a ``CallToolResult``.

    - ``CallToolResult`` instances are returned as-is (same object).
    - Mappings in the wire shape (``{"content": [...], "isError": ...}``) are
      validated into a ``CallToolResult``.
    - Strings become a single text item.
    - Anything else is serialized to JSON text.
    """
    if isinstance(value, types.CallToolResult):
        return value
    if isinstance(value, Mapping) and "content" in value:
        return types.CallToolResult.model_validate(dict(value))
    if isinstance(value, str):
        return text_result(value)
    return text_result(json.dumps(value, default=str))
