"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class BackendConfig:
    """Provisioning backend configuration."""

    kind: str = "simulated"
    endpoint: str = ""
    timeout_seconds: int = 30


@dataclass
class StateConfig:
    """Applied-state file configuration."""

    path: str = ".stackplan/state.json"


@dataclass
class APIConfig:
    """REST API configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class StackplanConfig:
    """Top-level stackplan configuration."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    state: StateConfig = field(default_factory=StateConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
