"""Integration tests for the shop stack.

Each test exercises: declaration file -> builders -> endpoint wiring ->
plan emission -> (optionally) wave-by-wave apply against the simulated
backend, and checks the result against the shop's known shape.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from stackplan.backends import SimulatedBackend
from stackplan.declaration import load_stack
from stackplan.errors import UnsupportedProtocolError
from stackplan.graph import ResourceKind
from stackplan.models.plan import OperationKind, Plan
from stackplan.plan.emitter import verify_plan
from stackplan.plan.executor import PlanExecutor, plan_waves
from stackplan.plan.render import render_plan
from stackplan.plan.state import AppliedState, load_state, save_state
from stackplan.stack import Stack

from .conftest import SHOP_DECLARATION, SHOP_RECORDS, SHOP_SERVICES

pytestmark = pytest.mark.integration

# ---------------------------------------------------------------------------
# Topology shape
# ---------------------------------------------------------------------------


class TestShopTopology:
    """Nodes and edges materialized from the shop declaration."""

    def test_node_counts_by_kind(self, shop_stack: Stack) -> None:
        counts: dict[ResourceKind, int] = {}
        for node in shop_stack.topology.nodes():
            counts[node.kind] = counts.get(node.kind, 0) + 1
        assert counts == {
            ResourceKind.NETWORK: 1,
            ResourceKind.CLUSTER: 1,
            ResourceKind.NAMESPACE: 1,
            ResourceKind.CACHE_SUBNET_GROUP: 1,
            ResourceKind.CACHE: 1,
            ResourceKind.LOAD_BALANCER: 6,
            ResourceKind.SERVICE: 7,
            ResourceKind.DNS_RECORD: 5,
            ResourceKind.AUTOSCALER: 1,
        }

    def test_services_in_dependency_order(self, shop_stack: Stack) -> None:
        services = [n.name for n in shop_stack.topology.nodes_of_kind(ResourceKind.SERVICE)]
        assert sorted(services) == sorted(SHOP_SERVICES)
        assert services.index("catalogservice") < services.index("cartservice")
        assert services.index("cartservice") < services.index("orderservice")
        assert services[-2:] == ["frontendservice", "loadgenerator"]

    def test_records_registered(self, shop_stack: Stack) -> None:
        for record, service in SHOP_RECORDS.items():
            node = shop_stack.topology.get(f"{record}.anycompany.local")
            assert node.config.target == service

    def test_load_generator_has_no_load_balancer(self, shop_stack: Stack) -> None:
        assert "loadgenerator-lb" not in shop_stack.topology
        assert "frontendservice-lb" in shop_stack.topology


# ---------------------------------------------------------------------------
# Endpoint wiring
# ---------------------------------------------------------------------------


class TestShopEnvironment:
    """Environment variables injected from resolved endpoints."""

    def test_cart_environment(self, shop_stack: Stack) -> None:
        assert shop_stack.environments()["cartservice"] == {
            "REDIS_ENDPOINT": "redis://${redis.address}:6379/0",
            "CATALOG_ENDPOINT": "catalog.anycompany.local",
        }

    def test_frontend_environment_keys(self, shop_stack: Stack) -> None:
        assert list(shop_stack.environments()["frontendservice"]) == [
            "REDIS_ENDPOINT",
            "IMAGE_ENDPOINT",
            "CATALOG_ENDPOINT",
            "CART_ENDPOINT",
            "ORDER_ENDPOINT",
            "RECOMMENDER_ENDPOINT",
        ]

    def test_load_generator_points_at_frontend_balancer(self, shop_stack: Stack) -> None:
        assert shop_stack.environments()["loadgenerator"] == {
            "FRONTEND_ADDR": "http://${frontendservice-lb.dns_name}",
        }

    def test_every_injected_endpoint_is_a_dependency(self, shop_stack: Stack) -> None:
        cart = shop_stack.topology.get("cartservice")
        for dep in ("redis", "catalogservice", "catalog.anycompany.local"):
            assert dep in cart.dependencies
        loadgen = shop_stack.topology.get("loadgenerator")
        assert {"frontendservice", "frontendservice-lb"} <= set(loadgen.dependencies)

    def test_load_generator_offers_no_http_endpoint(self, shop_stack: Stack) -> None:
        with pytest.raises(UnsupportedProtocolError):
            shop_stack.resolve("loadgenerator", "http")
        assert shop_stack.resolve("frontendservice", "http").requires == ("frontendservice-lb",)


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


class TestShopPlan:
    """Dependency-ordered plan for the full shop."""

    def test_plan_covers_every_node_once(self, shop_stack: Stack, shop_plan: Plan) -> None:
        names = [op.name for op in shop_plan]
        assert len(names) == len(set(names)) == len(shop_stack.topology) == 24
        assert all(op.operation == OperationKind.CREATE for op in shop_plan)

    def test_every_edge_respected(self, shop_stack: Stack, shop_plan: Plan) -> None:
        for dependency, dependent in shop_stack.topology.edges():
            assert shop_plan.index_of(dependency) < shop_plan.index_of(dependent)
        verify_plan(shop_plan)

    def test_plan_head(self, shop_plan: Plan) -> None:
        assert [op.name for op in shop_plan.operations[:3]] == ["vpc", "cartservice-lb", "catalogservice-lb"]

    def test_plan_is_reproducible(self, shop_plan: Plan) -> None:
        again = load_stack(SHOP_DECLARATION).plan()
        assert render_plan(again, "json") == render_plan(shop_plan, "json")

    def test_subnet_group_before_cache(self, shop_plan: Plan) -> None:
        assert shop_plan.index_of("redis-subnet-group") < shop_plan.index_of("redis")

    def test_autoscaler_after_its_service(self, shop_plan: Plan) -> None:
        assert shop_plan.index_of("imageservice") < shop_plan.index_of("image-scaling")


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


class TestShopApply:
    """Simulated apply, halting and incremental re-planning."""

    def test_full_apply(self, shop_plan: Plan) -> None:
        backend = SimulatedBackend()
        report = PlanExecutor(backend).execute(shop_plan)
        assert report.succeeded
        assert report.waves_submitted == len(plan_waves(shop_plan))
        assert len(backend.applied) == 24

    def test_halt_never_submits_dependents(self, shop_plan: Plan) -> None:
        backend = SimulatedBackend(fail_on=["redis"])
        report = PlanExecutor(backend).execute(shop_plan)
        assert report.failed_index == shop_plan.index_of("redis")
        submitted = {op.name for batch in backend.batches for op in batch}
        for dependent in ("cartservice", "frontendservice", "loadgenerator"):
            assert dependent not in submitted
        assert {op.name for op in report.skipped} >= {"cartservice", "frontendservice", "loadgenerator"}

    def test_state_round_trip_gives_empty_plan(self, shop_stack: Stack, shop_plan: Plan, tmp_path: Path) -> None:
        executor = PlanExecutor(SimulatedBackend())
        executor.execute(shop_plan)
        path = tmp_path / "state.json"
        save_state(path, executor.state)

        replanned = shop_stack.plan(load_state(path))
        assert replanned.operations == []
        assert replanned.orphaned == []

    def test_resume_after_failure(self, shop_stack: Stack, shop_plan: Plan) -> None:
        failing = PlanExecutor(SimulatedBackend(fail_on=["redis"]))
        failing.execute(shop_plan)
        state: AppliedState = failing.state

        resumed_plan = shop_stack.plan(state)
        assert "redis" in {op.name for op in resumed_plan}
        assert "vpc" not in {op.name for op in resumed_plan}

        backend = SimulatedBackend(already_applied=state.resources)
        report = PlanExecutor(backend, state).execute(resumed_plan)
        assert report.succeeded
        assert set(state.resources) == {node.name for node in shop_stack.topology.nodes()}
