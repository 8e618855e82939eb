"""Entry point for `python -m stackplan`.

Usage:
    python -m stackplan plan stack.yaml
"""

from __future__ import annotations

from stackplan.cli import cli

cli()
