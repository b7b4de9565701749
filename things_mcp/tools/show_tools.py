from __future__ import annotations

from functools import partial
from typing import Any, Dict

from mcp import types

from ..models import error_result, text_result
from ..things_client import ThingsClient
from . import ToolRegistry


async def _handle_show(
    things_client: ThingsClient,
    arguments: Dict[str, Any],
) -> types.CallToolResult:
    item_id = arguments.get("id")
    query = arguments.get("query")
    if not item_id and not query:
        return error_result("Provide 'id' or 'query'")

    tag_filter = arguments.get("filter")
    if tag_filter is not None and not isinstance(tag_filter, list):
        return error_result("Field 'filter' must be a list of tag names")

    await things_client.open_url(
        "show",
        {"id": item_id, "query": query, "filter": tag_filter or None},
    )
    return text_result(f"Showing '{item_id or query}' in Things")


def register_tools(registry: ToolRegistry, things_client: ThingsClient) -> None:
    show_schema: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "id": {
                "type": "string",
                "description": "Item id, or a built-in list id such as 'today' or 'inbox'.",
            },
            "query": {
                "type": "string",
                "description": "Name of an area, project, tag or built-in list to open.",
            },
            "filter": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Only show items carrying these tags.",
            },
        },
        "additionalProperties": False,
    }

    registry.add_tool(
        types.Tool(
            name="things_show",
            description="Navigate Things to a list, project, area, tag or item.",
            inputSchema=show_schema,
        ),
        partial(_handle_show, things_client),
    )
