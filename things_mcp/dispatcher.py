from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Set

from mcp import types

from .errors import ToolTimeoutError, error_message
from .models import error_result, is_error
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_TOOL_CALL_TIMEOUT_SECONDS = 5 * 60


class Dispatcher:
    """
    Runs one tool call against a wall-clock deadline.

    The call and the deadline race; whichever finishes first decides the result.
    A call that loses the race, or whose caller is cancelled, is not itself
    cancelled. Its task is kept in ``pending`` until it finishes on its own,
    and whatever it produces then is only logged.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        timeout_seconds: float = DEFAULT_TOOL_CALL_TIMEOUT_SECONDS,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._registry = registry
        self._timeout_seconds = timeout_seconds
        self._abandoned: Set["asyncio.Task[types.CallToolResult]"] = set()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    @property
    def pending(self) -> int:
        """Number of timed-out or caller-cancelled calls still running."""
        return len(self._abandoned)

    async def invoke(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> types.CallToolResult:
        try:
            return await self._race(name, dict(arguments or {}))
        except Exception as exc:
            logger.exception("Unexpected error dispatching tool %s", name)
            return error_result(error_message(exc))

    async def _race(
        self, name: str, arguments: Mapping[str, Any]
    ) -> types.CallToolResult:
        task = asyncio.ensure_future(self._registry.dispatch(name, arguments))
        try:
            done, _ = await asyncio.wait({task}, timeout=self._timeout_seconds)
        except asyncio.CancelledError:
            # caller cancelled; the handler keeps running
            self._abandon(name, task)
            raise
        if task in done:
            result = task.result()
            if is_error(result):
                logger.info("Tool %s returned an error result", name)
            return result

        self._abandon(name, task)
        timeout = ToolTimeoutError(name, self._timeout_seconds)
        logger.warning("%s", timeout)
        return error_result(str(timeout))

    def _abandon(
        self, name: str, task: "asyncio.Task[types.CallToolResult]"
    ) -> None:
        self._abandoned.add(task)

        def _finished(finished: "asyncio.Task[types.CallToolResult]") -> None:
            self._abandoned.discard(finished)
            if finished.cancelled():
                logger.info("Abandoned call to %s was cancelled", name)
                return
            exc = finished.exception()
            if exc is not None:
                logger.warning("Abandoned call to %s raised: %s", name, exc)
            else:
                logger.info("Abandoned call to %s finished; result dropped", name)

        task.add_done_callback(_finished)
