from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Dict, List, Optional

import anyio
from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .config import RuntimeContext, Settings, get_settings
from .dispatcher import Dispatcher
from .errors import DuplicateToolError
from .things_client import ThingsClient
from .tools import ToolRegistry
from .tools import add_tools, get_tools, json_tools, show_tools

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Send all log records to stderr; stdout carries the stdio transport."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def build_registry(things_client: ThingsClient) -> ToolRegistry:
    """
    Create the registry with every Things tool.

    Raises `DuplicateToolError` if two modules claim the same tool name.
    """
    registry = ToolRegistry()

    add_tools.register_tools(registry, things_client)
    get_tools.register_tools(registry, things_client)
    show_tools.register_tools(registry, things_client)
    json_tools.register_tools(registry, things_client)

    return registry


def create_server(
    dispatcher: Dispatcher,
    context: Optional[RuntimeContext] = None,
) -> Server:
    """
    Create the MCP server and route list/call requests to the dispatcher.
    """
    name = context.server_name if context else "things-mcp"
    version = context.server_version if context else "1.0.0"
    registry = dispatcher.registry

    server = Server(name, version=version)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return registry.list_tools()

    @server.call_tool()
    async def call_tool(
        name: str,
        arguments: Optional[Dict[str, Any]],
    ) -> types.CallToolResult:
        return await dispatcher.invoke(name, arguments)

    return server


async def check_things_available(things_client: ThingsClient) -> None:
    """Best-effort startup probe; only ever logs."""
    try:
        available = await things_client.is_available()
    except Exception as exc:
        logger.warning("Could not check Things availability: %s", exc)
        return
    if not available:
        logger.warning("Things 3 does not appear to be running")


async def run_stdio(server: Server, things_client: Optional[ThingsClient] = None) -> None:
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Things MCP server started successfully")
        async with anyio.create_task_group() as tg:
            if things_client is not None:
                tg.start_soon(check_things_available, things_client)
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
            tg.cancel_scope.cancel()


def _handle_shutdown(signum: int, frame: Any) -> None:
    logger.info("Server shutting down")
    sys.exit(0)


def main() -> None:
    """
    Entrypoint for running the MCP server.

    Supports two transport modes:
    - stdio: For direct process-to-process communication (default)
    - http: JSON-RPC over HTTP/SSE, for use behind a reverse proxy
    """
    settings = get_settings()
    configure_logging(settings)
    signal.signal(signal.SIGTERM, _handle_shutdown)

    try:
        context = RuntimeContext(settings=settings)
        things_client = ThingsClient(settings)
        registry = build_registry(things_client)
        dispatcher = Dispatcher(registry, settings.tool_call_timeout_seconds)

        if settings.transport == "http":
            from .http_server import create_http_app, run_http_server

            app = create_http_app(dispatcher, context)
            anyio.run(
                run_http_server,
                app,
                settings.server_host,
                settings.server_port,
                things_client,
            )
        else:
            server = create_server(dispatcher, context)
            anyio.run(run_stdio, server, things_client)
    except KeyboardInterrupt:
        logger.info("Server shutting down")
        sys.exit(0)
    except DuplicateToolError as exc:
        logger.error("Failed to start server: %s", exc)
        sys.exit(1)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)


if __name__ == "__main__":
    main()
