"""Structured logging for stackplan.

Log events are JSON lines on stderr.  stdout is reserved for command output
(plans, reports, environments), so ``stackplan plan --format json`` can be
piped straight into another tool.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _stderr_logger(*_args: Any) -> structlog.PrintLogger:
    # Resolved per call so a swapped sys.stderr (click's CliRunner, pytest capture) is honoured
    return structlog.PrintLogger(file=sys.stderr)


def setup_logging(level: str = "info") -> None:
    """Configure structlog to emit events at ``level`` and above."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(sort_keys=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
