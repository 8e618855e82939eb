"""Endpoint resolution for service wiring."""

from stackplan.endpoints.resolver import EndpointResolver

__all__ = ["EndpointResolver"]
