"""Declaration loading: YAML/JSON documents into a built Stack.

A declaration looks like::

    stack: shop
    resources:
      - kind: network
        name: vpc
      - kind: service
        name: cartservice
        cluster: cluster
        image: registry.local/cart:1.4
        cache: redis

Every resource is validated before anything is materialized, so one run
reports all config problems at once.  Materialization then follows a fixed
phase order, with services ordered so that link targets come first.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from stackplan.builders.namespace import record_fqdn
from stackplan.builders.service import load_balancer_name
from stackplan.errors import CycleDetectedError, InvalidConfigError, Violation
from stackplan.models.resources import Declaration, NamespaceConfig, ResourceConfig, ServiceConfig
from stackplan.stack import Stack

_log = structlog.get_logger(component="declaration")

_PHASES = {
    "network": 0,
    "cluster": 1,
    "namespace": 2,
    "cache": 3,
    "service": 4,
    "autoscaler": 5,
}


def load_declaration(path: str | Path) -> Declaration:
    """Read and parse a declaration file (``.json`` as JSON, anything else as YAML)."""
    source = Path(path)
    text = source.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if source.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidConfigError([Violation(str(source), "", f"cannot parse declaration: {exc}")]) from exc
    return parse_declaration(data)


def parse_declaration(data: Any) -> Declaration:
    """Validate raw declaration data into typed resource configs."""
    if not isinstance(data, dict):
        raise InvalidConfigError([Violation("declaration", "", "must be a mapping with a 'resources' list")])
    try:
        return Declaration.model_validate(data)
    except ValidationError as exc:
        raise InvalidConfigError(_violations_from(exc, data)) from exc


def _violations_from(exc: ValidationError, data: dict[str, Any]) -> list[Violation]:
    resources = data.get("resources")
    violations = []
    for error in exc.errors():
        loc = list(error.get("loc", ()))
        resource = "declaration"
        if len(loc) >= 2 and loc[0] == "resources" and isinstance(loc[1], int):
            index = loc[1]
            resource = f"resources[{index}]"
            if isinstance(resources, list) and index < len(resources) and isinstance(resources[index], dict):
                resource = str(resources[index].get("name") or resource)
            loc = loc[2:]
            # Drop the union tag pydantic puts in front of the field path
            if loc and isinstance(loc[0], str) and loc[0] in _PHASES:
                loc = loc[1:]
        field = ".".join(str(part) for part in loc)
        violations.append(Violation(resource, field, str(error.get("msg", "invalid value"))))
    return violations


def materialization_order(resources: list[ResourceConfig]) -> list[ResourceConfig]:
    """Order resources by phase; services also by their links.

    A link may name another service, its load balancer or its discovery
    record; each of those is ordered after the service that creates it.

    Raises CycleDetectedError if services link to each other in a loop.
    """
    by_phase = sorted(enumerate(resources), key=lambda pair: (_PHASES.get(pair[1].kind, len(_PHASES)), pair[0]))
    services = {cfg.name: cfg for _, cfg in by_phase if isinstance(cfg, ServiceConfig)}
    owners = _derived_owners(resources, services)

    ordered_services: list[ResourceConfig] = []
    state: dict[str, str] = {}  # name -> "visiting" | "done"

    def _visit(cfg: ServiceConfig, path: list[str]) -> None:
        mark = state.get(cfg.name)
        if mark == "done":
            return
        if mark == "visiting":
            start = path.index(cfg.name)
            raise CycleDetectedError([*path[start:], cfg.name])
        state[cfg.name] = "visiting"
        for link in cfg.links:
            target = owners.get(link.target)
            if target is not None and target.name != cfg.name:
                _visit(target, [*path, cfg.name])
        state[cfg.name] = "done"
        ordered_services.append(cfg)

    for cfg in services.values():
        _visit(cfg, [])

    ordered: list[ResourceConfig] = []
    for _, cfg in by_phase:
        if isinstance(cfg, ServiceConfig):
            if ordered_services:
                ordered.extend(ordered_services)
                ordered_services = []
            continue
        ordered.append(cfg)
    return ordered


def _derived_owners(resources: list[ResourceConfig], services: dict[str, ServiceConfig]) -> dict[str, ServiceConfig]:
    """Map every node name a service creates back to that service."""
    zones = {cfg.name: cfg.zone_name for cfg in resources if isinstance(cfg, NamespaceConfig)}
    owners: dict[str, ServiceConfig] = {}
    for cfg in services.values():
        owners[cfg.name] = cfg
        if cfg.load_balanced:
            owners.setdefault(load_balancer_name(cfg.name), cfg)
        if cfg.discovery is not None and cfg.discovery.namespace in zones:
            owners.setdefault(record_fqdn(cfg.discovery.name, zones[cfg.discovery.namespace]), cfg)
    return owners


def build_stack(declaration: Declaration) -> Stack:
    """Validate every resource, then materialize them into a new Stack."""
    stack = Stack(declaration.stack)

    violations: list[Violation] = []
    for cfg in declaration.resources:
        try:
            stack.validate(cfg)
        except InvalidConfigError as exc:
            violations.extend(exc.violations)
    if violations:
        raise InvalidConfigError(violations)

    for cfg in materialization_order(list(declaration.resources)):
        stack.builder_for(cfg.kind).materialize(stack.topology, cfg)

    _log.info("stack_built", stack=stack.name, resources=len(declaration.resources), nodes=len(stack.topology))
    return stack


def load_stack(path: str | Path) -> Stack:
    return build_stack(load_declaration(path))
