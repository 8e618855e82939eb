"""Tests for declaration parsing, violation mapping and materialization order."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from stackplan.declaration import build_stack, load_declaration, materialization_order, parse_declaration
from stackplan.errors import CycleDetectedError, InvalidConfigError, UnknownNodeError
from stackplan.models.resources import NamespaceConfig, NetworkConfig, ServiceConfig


def _base_resources() -> list[dict[str, Any]]:
    return [
        {"kind": "network", "name": "vpc"},
        {"kind": "cluster", "name": "cluster", "network": "vpc"},
        {"kind": "namespace", "name": "zone", "zone_name": "shop.local", "network": "vpc"},
    ]


def _svc(name: str, *links: str, record: str | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "kind": "service",
        "name": name,
        "cluster": "cluster",
        "image": f"{name}:1",
        "links": [{"target": target} for target in links],
    }
    if record:
        data["discovery"] = {"namespace": "zone", "name": record}
    return data


class TestParseDeclaration:
    def test_minimal(self) -> None:
        declaration = parse_declaration({"stack": "s", "resources": _base_resources()})
        assert declaration.stack == "s"
        assert [r.kind for r in declaration.resources] == ["network", "cluster", "namespace"]

    def test_not_a_mapping(self) -> None:
        with pytest.raises(InvalidConfigError):
            parse_declaration(["vpc"])

    def test_unknown_kind(self) -> None:
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_declaration({"resources": [{"kind": "database", "name": "db"}]})
        assert exc_info.value.violations[0].resource == "db"

    def test_violation_names_resource_and_field(self) -> None:
        data = {"resources": [{"kind": "cache", "name": "redis", "network": "vpc", "port": "not-a-port"}]}
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_declaration(data)
        [violation] = exc_info.value.violations
        assert (violation.resource, violation.field) == ("redis", "port")

    def test_unnamed_resource_uses_index(self) -> None:
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_declaration({"resources": [{"kind": "network", "name": "vpc"}, {"kind": "cluster"}]})
        assert {v.resource for v in exc_info.value.violations} == {"resources[1]"}

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_declaration({"resources": [{"kind": "network", "name": "vpc", "colour": "blue"}]})
        assert exc_info.value.violations[0].field == "colour"


class TestLoadDeclaration:
    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "stack.yaml"
        path.write_text("stack: y\nresources:\n  - kind: network\n    name: vpc\n", encoding="utf-8")
        assert load_declaration(path).stack == "y"

    def test_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "stack.json"
        path.write_text('{"stack": "j", "resources": []}', encoding="utf-8")
        assert load_declaration(path).stack == "j"

    def test_unparsable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "stack.yaml"
        path.write_text("resources: [unclosed", encoding="utf-8")
        with pytest.raises(InvalidConfigError, match="cannot parse"):
            load_declaration(path)


class TestMaterializationOrder:
    def test_phases_then_links(self) -> None:
        resources = [
            ServiceConfig(name="front", cluster="c", image="i", links=({"target": "cart"},)),
            NetworkConfig(name="vpc"),
            ServiceConfig(name="cart", cluster="c", image="i"),
        ]
        assert [r.name for r in materialization_order(resources)] == ["vpc", "cart", "front"]

    def test_link_cycle(self) -> None:
        resources = [
            ServiceConfig(name="a", cluster="c", image="i", links=({"target": "b"},)),
            ServiceConfig(name="b", cluster="c", image="i", links=({"target": "a"},)),
        ]
        with pytest.raises(CycleDetectedError) as exc_info:
            materialization_order(resources)
        assert exc_info.value.cycle == ["a", "b", "a"]

    def test_links_to_derived_names_follow_their_service(self) -> None:
        resources = [
            ServiceConfig(name="poller", cluster="c", image="i", links=({"target": "front-lb", "protocol": "http"},)),
            ServiceConfig(name="order", cluster="c", image="i", links=({"target": "cart.shop.local"},)),
            NamespaceConfig(name="zone", zone_name="Shop.Local", network="vpc"),
            ServiceConfig(name="cart", cluster="c", image="i", discovery={"namespace": "zone", "name": "cart"}),
            ServiceConfig(name="front", cluster="c", image="i"),
        ]
        assert [r.name for r in materialization_order(resources)] == ["zone", "front", "poller", "cart", "order"]


class TestBuildStack:
    def test_links_resolved_regardless_of_declaration_order(self) -> None:
        resources = [_svc("order", "cart"), *_base_resources(), _svc("cart", record="cart")]
        stack = build_stack(parse_declaration({"resources": resources}))
        assert stack.topology.get("order").config.environment == {"CART_ENDPOINT": "cart.shop.local"}

    def test_consumer_declared_before_balancer_and_record(self) -> None:
        poller = _svc("poller")
        poller["links"] = [{"target": "front-lb", "protocol": "http"}, {"target": "cart.shop.local"}]
        resources = [poller, *_base_resources(), _svc("cart", record="cart"), _svc("front")]
        stack = build_stack(parse_declaration({"resources": resources}))
        assert stack.topology.get("poller").config.environment == {
            "FRONT_LB_ENDPOINT": "http://${front-lb.dns_name}",
            "CART_ENDPOINT": "cart.shop.local",
        }

    def test_violations_from_all_resources_reported(self) -> None:
        resources = [
            {"kind": "network", "name": "vpc", "max_azs": 0},
            {"kind": "service", "name": "svc", "cluster": "cluster", "image": "i", "cpu": 300},
        ]
        with pytest.raises(InvalidConfigError) as exc_info:
            build_stack(parse_declaration({"resources": resources}))
        assert [(v.resource, v.field) for v in exc_info.value.violations] == [("vpc", "max_azs"), ("svc", "cpu")]

    def test_unknown_reference(self) -> None:
        resources = [*_base_resources(), {"kind": "cache", "name": "redis", "network": "missing"}]
        with pytest.raises(UnknownNodeError):
            build_stack(parse_declaration({"resources": resources}))

    def test_link_cycle_rejected(self) -> None:
        resources = [*_base_resources(), _svc("a", "b", record="a"), _svc("b", "a", record="b")]
        with pytest.raises(CycleDetectedError):
            build_stack(parse_declaration({"resources": resources}))
