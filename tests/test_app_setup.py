"""
Tests for FastAPI application setup and settings.
"""

from __future__ import annotations

import pytest

from backend.config import Settings


def test_routes_registered() -> None:
    """The page, health and runner API routes are mounted."""
    from backend.main import app

    routes = {getattr(route, "path", None) for route in app.routes}
    for expected in [
        "/",
        "/health",
        "/api/info",
        "/api/connect",
        "/api/status",
        "/api/scripts",
        "/api/run-test",
        "/api/run-all",
        "/api/summary",
    ]:
        assert expected in routes, expected


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POOL_MAX_SIZE", raising=False)
    settings = Settings(_env_file=None)

    assert settings.DATABASE_URL is None
    assert settings.CONNECT_ON_STARTUP is False
    assert settings.POOL_MIN_SIZE <= settings.POOL_MAX_SIZE
    assert settings.COMMAND_TIMEOUT is None


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POOL_MAX_SIZE", "3")
    monkeypatch.setenv("COMMAND_TIMEOUT", "12.5")
    monkeypatch.setenv("APP_DEBUG", "true")
    settings = Settings(_env_file=None)

    assert settings.POOL_MAX_SIZE == 3
    assert settings.COMMAND_TIMEOUT == 12.5
    assert settings.APP_DEBUG is True


def test_debug_details_only_in_debug_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    from backend.api.error_handling import classify_error

    monkeypatch.setattr("backend.api.error_handling.settings.APP_DEBUG", False)
    assert classify_error(RuntimeError("secret detail")).debug is None

    monkeypatch.setattr("backend.api.error_handling.settings.APP_DEBUG", True)
    err = classify_error(RuntimeError("secret detail"))
    assert err.status_code == 500
    assert err.debug == "secret detail"
