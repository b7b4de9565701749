from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp import types

from ..models import error_result, text_result
from ..things_client import ThingsClient
from . import ToolRegistry

_ITEM_TYPES = ("to-do", "project")


def _string_list(arguments: Dict[str, Any], key: str) -> Optional[List[str]]:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"Field '{key}' must be a list of strings")
    return value


def add_tools(things_client: ThingsClient) -> Dict[str, Any]:
    """
    Factory to produce the `things_add` handler with a bound Things client.
    """

    async def add(arguments: Dict[str, Any]) -> types.CallToolResult:
        title = arguments.get("title")
        if not title or not isinstance(title, str):
            return error_result("Missing required field 'title'")

        item_type = arguments.get("type") or "to-do"
        if item_type not in _ITEM_TYPES:
            return error_result(
                f"Invalid type '{item_type}'; expected one of: {', '.join(_ITEM_TYPES)}"
            )

        try:
            tags = _string_list(arguments, "tags")
            checklist = _string_list(arguments, "checklist_items")
            todos = _string_list(arguments, "todos")
        except TypeError as exc:
            return error_result(str(exc))

        params: Dict[str, Any] = {
            "title": title,
            "notes": arguments.get("notes"),
            "when": arguments.get("when"),
            "deadline": arguments.get("deadline"),
            "tags": tags,
        }

        if item_type == "project":
            if checklist:
                return error_result("Checklist items are only supported on to-dos")
            params.update(
                {
                    "area": arguments.get("area"),
                    "area-id": arguments.get("area_id"),
                    "to-dos": todos,
                }
            )
            command = "add-project"
        else:
            if todos:
                return error_result("Field 'todos' is only supported on projects")
            params.update(
                {
                    "checklist-items": checklist,
                    "list": arguments.get("list"),
                    "list-id": arguments.get("list_id"),
                    "heading": arguments.get("heading"),
                }
            )
            command = "add"

        if arguments.get("reveal"):
            params["reveal"] = True

        await things_client.open_url(command, params)
        return text_result(f"Created {item_type} '{title}' in Things")

    add_input_schema: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "title": {"type": "string", "description": "Title of the to-do or project."},
            "type": {
                "type": "string",
                "enum": list(_ITEM_TYPES),
                "description": "Kind of item to create. Defaults to 'to-do'.",
            },
            "notes": {"type": "string", "description": "Notes text."},
            "when": {
                "type": "string",
                "description": "today, tomorrow, evening, anytime, someday, or a date (YYYY-MM-DD).",
            },
            "deadline": {"type": "string", "description": "Deadline date (YYYY-MM-DD)."},
            "tags": {"type": "array", "items": {"type": "string"}},
            "checklist_items": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Checklist entries (to-dos only).",
            },
            "list": {"type": "string", "description": "Project or area title to file a to-do under."},
            "list_id": {"type": "string", "description": "Project or area id to file a to-do under."},
            "heading": {"type": "string", "description": "Heading inside the target project."},
            "area": {"type": "string", "description": "Area title for a new project."},
            "area_id": {"type": "string", "description": "Area id for a new project."},
            "todos": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Titles of to-dos to create inside a new project.",
            },
            "reveal": {"type": "boolean", "description": "Navigate to the new item."},
        },
        "required": ["title"],
        "additionalProperties": False,
    }

    return {
        "things_add": {
            "schema": add_input_schema,
            "handler": add,
            "description": "Create a new to-do or project in Things.",
        },
    }


def register_tools(registry: ToolRegistry, things_client: ThingsClient) -> None:
    tool_defs = add_tools(things_client)
    for name, meta in tool_defs.items():
        registry.add_tool(
            types.Tool(
                name=name,
                description=meta["description"],
                inputSchema=meta["schema"],
            ),
            meta["handler"],
        )
