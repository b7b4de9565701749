from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from mcp import types

from ..models import error_result, text_result
from ..things_client import ThingsClient
from . import ToolRegistry

_OPERATIONS = ("create", "update")


def _validate_items(items: Any, auth_token: Any) -> Optional[str]:
    """Return an error message for the first invalid item, or None."""
    if not isinstance(items, list) or not items:
        return "Field 'items' must be a non-empty array"
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            return f"Item {index} must be an object"
        if not item.get("type"):
            return f"Item {index} is missing 'type'"
        operation = item.get("operation", "create")
        if operation not in _OPERATIONS:
            return f"Item {index} has invalid operation '{operation}'"
        if operation == "update":
            if not item.get("id"):
                return f"Item {index} is an update and needs an 'id'"
            if not auth_token:
                return (
                    "Updating items requires a Things auth token; "
                    "set THINGS_MCP_THINGS_AUTH_TOKEN"
                )
    return None


def json_tools(things_client: ThingsClient) -> Dict[str, Any]:
    async def update_json(arguments: Dict[str, Any]) -> types.CallToolResult:
        items = arguments.get("items")
        problem = _validate_items(items, things_client.auth_token)
        if problem:
            return error_result(problem)

        needs_token = any(item.get("operation") == "update" for item in items)
        params: Dict[str, Any] = {"data": json.dumps(items, separators=(",", ":"))}
        if needs_token:
            params["auth-token"] = things_client.auth_token
        if arguments.get("reveal"):
            params["reveal"] = True

        await things_client.open_url("json", params)

        counts: Dict[str, int] = {}
        for item in items:
            op = item.get("operation", "create")
            counts[op] = counts.get(op, 0) + 1
        summary: List[str] = [f"{n} {op}" for op, n in sorted(counts.items())]
        return text_result(f"Sent {len(items)} item(s) to Things ({', '.join(summary)})")

    update_json_schema: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "items": {
                "type": "array",
                "description": "Things JSON command objects.",
                "items": {
                    "type": "object",
                    "properties": {
                        "type": {
                            "type": "string",
                            "description": "to-do, project, heading or checklist-item.",
                        },
                        "operation": {"type": "string", "enum": list(_OPERATIONS)},
                        "id": {"type": "string", "description": "Target id for updates."},
                        "attributes": {"type": "object"},
                    },
                    "required": ["type"],
                },
            },
            "reveal": {"type": "boolean", "description": "Navigate to the first item."},
        },
        "required": ["items"],
        "additionalProperties": False,
    }

    return {
        "things_update_json": {
            "schema": update_json_schema,
            "handler": update_json,
            "description": "Create or update Things items in bulk using the Things JSON format.",
        },
    }


def register_tools(registry: ToolRegistry, things_client: ThingsClient) -> None:
    for name, meta in json_tools(things_client).items():
        registry.add_tool(
            types.Tool(
                name=name,
                description=meta["description"],
                inputSchema=meta["schema"],
            ),
            meta["handler"],
        )
