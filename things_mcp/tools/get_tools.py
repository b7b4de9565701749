from __future__ import annotations

from functools import partial
from typing import Any, Dict

from mcp import types

from ..models import error_result, text_result
from ..things_client import ThingsClient, applescript_string
from . import ToolRegistry

BUILT_IN_LISTS: Dict[str, str] = {
    "inbox": "Inbox",
    "today": "Today",
    "anytime": "Anytime",
    "upcoming": "Upcoming",
    "someday": "Someday",
    "logbook": "Logbook",
}


async def _handle_get(
    things_client: ThingsClient,
    arguments: Dict[str, Any],
) -> types.CallToolResult:
    """
    List to-dos from a built-in list, a project, or an area.
    """
    project = arguments.get("project")
    area = arguments.get("area")
    list_name = arguments.get("list")

    for key in ("list", "project", "area"):
        value = arguments.get(key)
        if value is not None and not isinstance(value, str):
            return error_result(f"Field '{key}' must be a string")

    chosen = [key for key in ("list", "project", "area") if arguments.get(key)]
    if len(chosen) > 1:
        return error_result(
            f"Provide only one of 'list', 'project' or 'area' (got {', '.join(chosen)})"
        )

    limit = arguments.get("limit")
    if limit is not None and (
        isinstance(limit, bool) or not isinstance(limit, int) or limit < 1
    ):
        return error_result("Field 'limit' must be a positive integer")

    if project:
        container = f"project {applescript_string(project)}"
        label = f"project '{project}'"
    elif area:
        container = f"area {applescript_string(area)}"
        label = f"area '{area}'"
    else:
        key = (list_name or "today").lower()
        if key not in BUILT_IN_LISTS:
            return error_result(
                f"Unknown list '{list_name}'; expected one of: {', '.join(BUILT_IN_LISTS)}"
            )
        container = f"list {applescript_string(BUILT_IN_LISTS[key])}"
        label = BUILT_IN_LISTS[key]

    todos = await things_client.list_todos(container)
    if limit is not None:
        todos = todos[:limit]
    if not todos:
        return text_result(f"No to-dos found in {label}")

    lines = [f"- {t['name']} (id: {t['id']}, status: {t['status']})" for t in todos]
    return text_result("\n".join([f"To-dos in {label}:", *lines]))


def register_tools(registry: ToolRegistry, things_client: ThingsClient) -> None:
    get_schema: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "list": {
                "type": "string",
                "enum": list(BUILT_IN_LISTS),
                "description": "Built-in list to read (default: today).",
            },
            "project": {"type": "string", "description": "Project title to read to-dos from."},
            "area": {"type": "string", "description": "Area title to read to-dos from."},
            "limit": {"type": "integer", "minimum": 1, "description": "Maximum number of to-dos."},
        },
        "additionalProperties": False,
    }

    registry.add_tool(
        types.Tool(
            name="things_get",
            description="List to-dos from a Things list, project, or area.",
            inputSchema=get_schema,
        ),
        partial(_handle_get, things_client),
    )
