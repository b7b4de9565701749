from __future__ import annotations

import json
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from things_mcp.http_server import create_http_app
from things_mcp.main import build_registry

from .conftest import FakeThingsClient, make_dispatcher


@pytest.fixture
def client(things_client: FakeThingsClient) -> TestClient:
    dispatcher = make_dispatcher(build_registry(things_client))
    return TestClient(create_http_app(dispatcher))


def _rpc(client: TestClient, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    response = client.post(
        "/mcp/stream",
        json={"jsonrpc": "2.0", "id": 7, "method": method, "params": params or {}},
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    body = response.text.strip()
    assert body.startswith("data: ")
    return json.loads(body[len("data: "):])


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.json() == {"status": "ok", "service": "things-mcp"}


def test_root_reports_tool_count(client: TestClient) -> None:
    assert client.get("/").json()["tools"] == 4


def test_initialize(client: TestClient) -> None:
    message = _rpc(client, "initialize")

    assert message["id"] == 7
    assert message["result"]["serverInfo"] == {"name": "things-mcp", "version": "1.0.0"}
    assert message["result"]["capabilities"]["tools"] == {"listChanged": False}


def test_tools_list(client: TestClient) -> None:
    tools = _rpc(client, "tools/list")["result"]["tools"]

    assert [t["name"] for t in tools][0] == "things_add"
    assert "inputSchema" in tools[0]


def test_tools_call_success(client: TestClient, things_client: FakeThingsClient) -> None:
    message = _rpc(client, "tools/call", {"name": "things_show", "arguments": {"id": "inbox"}})

    result = message["result"]
    assert result["isError"] is False
    assert result["content"][0]["type"] == "text"
    assert things_client.opened[-1][0] == "show"


def test_tools_call_unknown_tool_is_a_result(client: TestClient) -> None:
    message = _rpc(client, "tools/call", {"name": "nonexistent"})

    assert "error" not in message
    assert message["result"]["isError"] is True
    assert "nonexistent" in message["result"]["content"][0]["text"]


def test_tools_call_requires_name(client: TestClient) -> None:
    message = _rpc(client, "tools/call", {"arguments": {}})

    assert message["error"]["code"] == -32602


def test_unknown_method(client: TestClient) -> None:
    message = _rpc(client, "prompts/list")

    assert message["error"]["code"] == -32601


def test_malformed_requests(client: TestClient) -> None:
    bad_json = client.post("/mcp/stream", content=b"{not json")
    assert bad_json.status_code == 400
    assert bad_json.json()["error"]["code"] == -32700

    wrong_version = client.post("/mcp/stream", json={"jsonrpc": "1.0", "id": 1, "method": "x"})
    assert wrong_version.status_code == 400
    assert wrong_version.json()["error"]["code"] == -32600

    no_method = client.post("/mcp/stream", json={"jsonrpc": "2.0", "id": 2})
    assert no_method.json()["error"]["code"] == -32600
