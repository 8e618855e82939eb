"""Shared fixtures for stackplan integration tests.

Provides the shop declaration (a VPC, a redis cache, a discovery namespace,
seven container services and an autoscaler) loaded and built into a Stack,
so integration tests can exercise the full declaration -> plan -> apply path
without a real provisioner.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from stackplan.declaration import load_stack
from stackplan.models.plan import Plan
from stackplan.stack import Stack

SHOP_DECLARATION = Path(__file__).resolve().parents[1] / "fixtures" / "shop.yaml"

SHOP_SERVICES = (
    "frontendservice",
    "imageservice",
    "catalogservice",
    "cartservice",
    "orderservice",
    "recommenderservice",
    "loadgenerator",
)

# Services registered in the hosted zone, by record name
SHOP_RECORDS = {
    "image": "imageservice",
    "catalog": "catalogservice",
    "cart": "cartservice",
    "order": "orderservice",
    "recommender": "recommenderservice",
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def shop_stack() -> Stack:
    """The shop declaration, freshly built."""
    return load_stack(SHOP_DECLARATION)


@pytest.fixture()
def shop_plan(shop_stack: Stack) -> Plan:
    """A full (non-incremental) plan for the shop stack."""
    return shop_stack.plan()
