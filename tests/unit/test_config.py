"""Tests for environment-variable configuration loading."""

from __future__ import annotations

import pytest

from stackplan.config import load_config


class TestLoadConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in ("BACKEND", "BACKEND_ENDPOINT", "BACKEND_TIMEOUT", "STATE_PATH", "API_HOST", "API_PORT", "LOG_LEVEL"):
            monkeypatch.delenv(f"STACKPLAN_{key}", raising=False)
        config = load_config()
        assert config.backend.kind == "simulated"
        assert config.backend.timeout_seconds == 30
        assert config.state.path == ".stackplan/state.json"
        assert (config.api.host, config.api.port) == ("127.0.0.1", 8080)
        assert config.log.level == "info"

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STACKPLAN_BACKEND", "HTTP")
        monkeypatch.setenv("STACKPLAN_BACKEND_ENDPOINT", "http://provisioner.local")
        monkeypatch.setenv("STACKPLAN_STATE_PATH", "/tmp/state.json")
        monkeypatch.setenv("STACKPLAN_LOG_LEVEL", "DEBUG")
        config = load_config()
        assert config.backend.kind == "http"
        assert config.backend.endpoint == "http://provisioner.local"
        assert config.state.path == "/tmp/state.json"
        assert config.log.level == "debug"

    @pytest.mark.parametrize(("raw", "expected"), [("0", 1), ("45", 45), ("900", 120)])
    def test_timeout_clamped(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
        monkeypatch.setenv("STACKPLAN_BACKEND_TIMEOUT", raw)
        assert load_config().backend.timeout_seconds == expected

    def test_port_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STACKPLAN_API_PORT", "80")
        assert load_config().api.port == 1024

    def test_invalid_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STACKPLAN_BACKEND", "terraform")
        with pytest.raises(ValueError, match="Invalid backend"):
            load_config()

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STACKPLAN_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()
