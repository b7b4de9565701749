from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

import anyio
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from .config import RuntimeContext
from .dispatcher import Dispatcher
from .things_client import ThingsClient

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def _error(message_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": message_id,
        "error": {"code": code, "message": message},
    }


def _result(message_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "result": result}


def create_http_app(
    dispatcher: Dispatcher,
    context: Optional[RuntimeContext] = None,
) -> FastAPI:
    """
    Create FastAPI app that exposes the tool registry over HTTP/SSE.

    MCP over HTTP/SSE:
    - Client sends POST requests with JSON-RPC messages in body
    - Server responds with SSE stream containing JSON-RPC responses
    - Each SSE event format: "data: <json-rpc-response>\\n\\n"
    """
    name = context.server_name if context else "things-mcp"
    version = context.server_version if context else "1.0.0"

    app = FastAPI(
        title="Things MCP",
        version=version,
        description="MCP server for the Things 3 task manager",
    )

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "service": name}

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "service": name,
            "version": version,
            "protocol": "mcp",
            "transport": "http/sse",
            "tools": len(dispatcher.registry),
            "endpoints": {
                "health": "/health",
                "mcp_stream": "/mcp/stream",
            },
        }

    @app.post("/mcp/stream")
    async def mcp_stream(request: Request):
        """
        MCP SSE stream endpoint.

        Supported MCP methods:
        - initialize: Server initialization handshake
        - tools/list: List available tools
        - tools/call: Execute a tool
        """
        body = await request.body()
        if not body:
            return JSONResponse(
                _error(None, INVALID_REQUEST, "Invalid Request: empty body"),
                status_code=400,
            )

        try:
            message = json.loads(body)
        except json.JSONDecodeError as e:
            return JSONResponse(
                _error(None, PARSE_ERROR, f"Parse error: {e}"),
                status_code=400,
            )

        if not isinstance(message, dict) or message.get("jsonrpc") != "2.0":
            message_id = message.get("id") if isinstance(message, dict) else None
            return JSONResponse(
                _error(message_id, INVALID_REQUEST, "Invalid Request: jsonrpc must be '2.0'"),
                status_code=400,
            )

        method = message.get("method")
        message_id = message.get("id")
        params = message.get("params") or {}

        if not method:
            return JSONResponse(
                _error(message_id, INVALID_REQUEST, "Invalid Request: method is required"),
                status_code=400,
            )

        async def generate_sse() -> AsyncIterator[str]:
            try:
                response = await handle_mcp_request(
                    dispatcher, method, params, message_id, name, version
                )
            except Exception as e:
                logger.exception("Error handling MCP request")
                response = _error(message_id, INTERNAL_ERROR, f"Internal error: {e}")
            yield f"data: {json.dumps(response)}\n\n"

        return StreamingResponse(
            generate_sse(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering
            },
        )

    return app


async def handle_mcp_request(
    dispatcher: Dispatcher,
    method: str,
    params: Dict[str, Any],
    message_id: Any,
    server_name: str = "things-mcp",
    server_version: str = "1.0.0",
) -> Dict[str, Any]:
    """
    Answer one JSON-RPC request.

    Tool outcomes, failures and timeouts included, are always JSON-RPC results;
    only malformed requests produce JSON-RPC errors.
    """
    if method == "initialize":
        return _result(
            message_id,
            {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": {"name": server_name, "version": server_version},
            },
        )

    if method == "tools/list":
        tools = dispatcher.registry.list_tools()
        return _result(
            message_id,
            {"tools": [t.model_dump(mode="json", by_alias=True, exclude_none=True) for t in tools]},
        )

    if method == "tools/call":
        tool_name = params.get("name")
        if not tool_name or not isinstance(tool_name, str):
            return _error(message_id, INVALID_PARAMS, "Invalid params: 'name' is required")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            return _error(message_id, INVALID_PARAMS, "Invalid params: 'arguments' must be an object")

        result = await dispatcher.invoke(tool_name, arguments)
        return _result(
            message_id,
            result.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    return _error(message_id, METHOD_NOT_FOUND, f"Method not found: {method}")


async def run_http_server(
    app: FastAPI,
    host: str = "127.0.0.1",
    port: int = 8000,
    things_client: Optional[ThingsClient] = None,
) -> None:
    """Run the HTTP server using uvicorn."""
    import uvicorn

    from .main import check_things_available

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="info",
        access_log=True,
    )
    server = uvicorn.Server(config)
    logger.info("Things MCP server started successfully on %s:%d", host, port)
    async with anyio.create_task_group() as tg:
        if things_client is not None:
            tg.start_soon(check_things_available, things_client)
        await server.serve()
        tg.cancel_scope.cancel()
