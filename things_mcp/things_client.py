from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import quote

from .config import Settings
from .errors import ThingsUnavailableError

logger = logging.getLogger(__name__)

THINGS_URL_PREFIX = "things:///"

# Params whose list values are joined with newlines rather than commas.
_NEWLINE_JOINED = {"checklist-items", "to-dos"}

_AVAILABILITY_SCRIPT = (
    'tell application "System Events" to (name of processes) contains "Things3"'
)


def _encode_value(key: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        separator = "\n" if key in _NEWLINE_JOINED else ","
        return separator.join(str(v) for v in value)
    return str(value)


def build_things_url(command: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a Things URL-scheme link, e.g. ``things:///add?title=Buy%20milk``.

    ``None`` values are dropped. Spaces are encoded as ``%20`` since Things does
    not decode ``+``.
    """
    url = f"{THINGS_URL_PREFIX}{command}"
    parts: List[str] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        encoded = quote(_encode_value(key, value), safe="")
        parts.append(f"{quote(key, safe='-')}={encoded}")
    if parts:
        url = f"{url}?{'&'.join(parts)}"
    return url


def applescript_string(value: str) -> str:
    """Quote ``value`` as an AppleScript string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class ThingsClient:
    """
    Async wrapper around the macOS automation surfaces of Things 3.

    Two channels are used:
    - AppleScript (via `osascript`) for reads
    - the `things:///` URL scheme (via `open -g`) for writes and navigation

    Every subprocess is bounded by `script_timeout_seconds`.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._osascript = settings.osascript_path
        self._open = settings.open_path
        self._timeout = settings.script_timeout_seconds

    @property
    def auth_token(self) -> Optional[str]:
        return self._settings.things_auth_token

    async def _run(self, argv: Iterable[str]) -> str:
        args = list(argv)
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ThingsUnavailableError(
                f"Could not start '{args[0]}': {exc}"
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise ThingsUnavailableError(
                f"'{args[0]}' did not finish within {self._timeout:g} seconds"
            ) from exc

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() or f"exit status {proc.returncode}"
            raise ThingsUnavailableError(f"'{args[0]}' failed: {detail}")
        return stdout.decode(errors="replace").strip()

    async def run_applescript(self, script: str) -> str:
        logger.debug("Running AppleScript (%d chars)", len(script))
        return await self._run([self._osascript, "-e", script])

    async def open_url(
        self, command: str, params: Optional[Mapping[str, Any]] = None
    ) -> str:
        url = build_things_url(command, params)
        logger.debug("Opening Things URL for command %s", command)
        await self._run([self._open, "-g", url])
        return url

    async def is_available(self) -> bool:
        """Return True if the Things3 process is running."""
        output = await self.run_applescript(_AVAILABILITY_SCRIPT)
        return output.strip().lower() == "true"

    async def list_todos(self, container: str) -> List[Dict[str, str]]:
        """
        Read to-dos from an AppleScript container expression such as
        ``list "Today"`` or ``project "Garden"``.
        """
        script = "\n".join(
            [
                'tell application "Things3"',
                '    set output to ""',
                f"    repeat with toDo in to dos of {container}",
                "        set output to output & (id of toDo) & tab & (name of toDo)"
                " & tab & ((status of toDo) as string) & linefeed",
                "    end repeat",
                "    return output",
                "end tell",
            ]
        )
        output = await self.run_applescript(script)
        todos: List[Dict[str, str]] = []
        for line in output.splitlines():
            if not line.strip():
                continue
            fields = line.split("\t")
            if len(fields) < 3:
                logger.debug("Skipping malformed to-do line %r", line)
                continue
            todos.append({"id": fields[0], "name": fields[1], "status": fields[2]})
        return todos
