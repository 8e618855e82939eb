"""stackplan command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``stackplan`` script).
"""

from stackplan.cli.main import cli

__all__ = ["cli"]
