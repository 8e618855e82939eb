"""REST API layer for stackplan.

Exposes:
    create_app -- FastAPI application factory.
"""

from stackplan.api.app import create_app

__all__ = ["create_app"]
