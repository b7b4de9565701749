from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from things_mcp.config import Settings, get_settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.transport == "stdio"
    assert settings.tool_call_timeout_seconds == 300
    assert settings.things_auth_token is None


def test_env_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("THINGS_MCP_TRANSPORT", "http")
    monkeypatch.setenv("THINGS_MCP_TOOL_CALL_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("THINGS_MCP_THINGS_AUTH_TOKEN", "abc")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.transport == "http"
        assert settings.tool_call_timeout_seconds == 12.5
        assert settings.things_auth_token == "abc"
        assert get_settings() is settings
    finally:
        get_settings.cache_clear()


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, transport="carrier-pigeon")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, tool_call_timeout_seconds=0)


def test_mcp_dependency_pinned_to_1x() -> None:
    tomllib = pytest.importorskip("tomllib")
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    if not pyproject.exists():
        pytest.skip("not running from a source checkout")

    with pyproject.open("rb") as fh:
        dependencies = tomllib.load(fh)["project"]["dependencies"]

    mcp_spec = next(d for d in dependencies if d.startswith("mcp"))
    assert "<2" in mcp_spec
