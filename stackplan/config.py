"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from stackplan.models.config import (
    APIConfig,
    BackendConfig,
    LogConfig,
    StackplanConfig,
    StateConfig,
)

BACKEND_KINDS = ("simulated", "http")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"STACKPLAN_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_backend(value: str) -> str:
    if value.lower() not in BACKEND_KINDS:
        raise ValueError(f"Invalid backend: {value}. Must be one of {BACKEND_KINDS}")
    return value.lower()


def load_config() -> StackplanConfig:
    """Load configuration from STACKPLAN_* environment variables."""
    return StackplanConfig(
        backend=BackendConfig(
            kind=_validate_backend(_env("BACKEND", "simulated")),
            endpoint=_env("BACKEND_ENDPOINT", ""),
            timeout_seconds=_env_int("BACKEND_TIMEOUT", 30, min_val=1, max_val=120),
        ),
        state=StateConfig(
            path=_env("STATE_PATH", ".stackplan/state.json"),
        ),
        api=APIConfig(
            host=_env("API_HOST", "127.0.0.1"),
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
