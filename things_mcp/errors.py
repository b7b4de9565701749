from __future__ import annotations


FALLBACK_ERROR_MESSAGE = "An unexpected error occurred"


class ThingsMCPError(Exception):
    """Base error for the Things MCP server."""


class DuplicateToolError(ThingsMCPError, ValueError):
    """Raised when a tool name is registered twice. Fatal at startup."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool '{name}' already registered")
        self.name = name


class UnknownToolError(ThingsMCPError, KeyError):
    """Raised when a call names a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        # KeyError.__str__ would quote the whole message
        return f"Unknown tool: '{self.name}'"


class HandlerFault(ThingsMCPError):
    """A tool handler raised instead of returning a result."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(error_message(cause))
        self.name = name
        self.cause = cause


class ToolTimeoutError(ThingsMCPError, TimeoutError):
    """A tool call did not finish before its deadline."""

    def __init__(self, name: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Tool call '{name}' timed out after {format_duration(timeout_seconds)}"
        )
        self.name = name
        self.timeout_seconds = timeout_seconds


class ThingsUnavailableError(ThingsMCPError):
    """An automation call against Things failed or could not be started."""


def error_message(exc: BaseException) -> str:
    """Return the message carried by ``exc``, or the fixed fallback text."""
    message = str(exc).strip()
    return message or FALLBACK_ERROR_MESSAGE


def format_duration(seconds: float) -> str:
    """
    Render a deadline for humans.

    Whole minutes are spelled as minutes ("5 minutes", "1 minute"); anything else
    falls back to seconds ("30 seconds", "0.5 seconds").
    """
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    if float(seconds).is_integer():
        whole = int(seconds)
        return f"{whole} second" if whole == 1 else f"{whole} seconds"
    return f"{seconds:g} seconds"
