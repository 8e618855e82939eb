"""stackplan command-line interface.

Exit codes:
    0 -- success
    1 -- internal error, or a backend failure during ``apply``
    2 -- the declaration is invalid (nothing was submitted)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from stackplan import __version__
from stackplan.backends import build_backend
from stackplan.config import BACKEND_KINDS, load_config
from stackplan.declaration import load_stack
from stackplan.errors import InvalidConfigError, StackplanError
from stackplan.models.config import StackplanConfig
from stackplan.observability.logging import get_logger, setup_logging
from stackplan.observability.metrics import validation_failures_total
from stackplan.plan.executor import PlanExecutor
from stackplan.plan.render import FORMATS, render_environment, render_plan, render_report
from stackplan.plan.state import load_state, save_state

EXIT_OK = 0
EXIT_INTERNAL = 1
EXIT_VALIDATION = 2

_declaration_arg = click.argument("declaration", type=click.Path(exists=True, dir_okay=False, path_type=Path))


@contextmanager
def _handle_errors(ctx: click.Context) -> Iterator[None]:
    """Map stackplan errors onto exit codes and readable stderr output."""
    log = get_logger("cli")
    try:
        yield
    except StackplanError as exc:
        if exc.is_validation:
            validation_failures_total.labels(error=exc.code).inc()
            click.echo(f"error: {exc.code}", err=True)
            if isinstance(exc, InvalidConfigError):
                for violation in exc.violations:
                    click.echo(f"  - {violation}", err=True)
            else:
                click.echo(f"  {exc}", err=True)
            ctx.exit(EXIT_VALIDATION)
        log.error("command_failed", error=str(exc), code=exc.code)
        click.echo(f"error: {exc}", err=True)
        ctx.exit(EXIT_INTERNAL)
    except (OSError, ValueError) as exc:
        log.error("command_failed", error=str(exc))
        click.echo(f"error: {exc}", err=True)
        ctx.exit(EXIT_INTERNAL)


@click.group()
@click.version_option(__version__, prog_name="stackplan")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Overrides STACKPLAN_LOG_LEVEL.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Plan and apply declarative stacks."""
    try:
        config = load_config()
    except ValueError as exc:
        click.echo(f"error: {exc}", err=True)
        ctx.exit(EXIT_INTERNAL)
    if log_level:
        config.log.level = log_level
    setup_logging(config.log.level)
    ctx.obj = config


@cli.command()
@_declaration_arg
@click.option("--state", "state_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Applied-state file; only new or changed resources are planned.")
@click.option("--format", "fmt", type=click.Choice(FORMATS), default="text", show_default=True)
@click.pass_context
def plan(ctx: click.Context, declaration: Path, state_path: Path | None, fmt: str) -> None:
    """Print the ordered operations for DECLARATION without executing them."""
    with _handle_errors(ctx):
        stack = load_stack(declaration)
        state = load_state(state_path) if state_path is not None else None
        click.echo(render_plan(stack.plan(state), fmt))


@cli.command()
@_declaration_arg
@click.pass_context
def validate(ctx: click.Context, declaration: Path) -> None:
    """Check DECLARATION without planning."""
    with _handle_errors(ctx):
        stack = load_stack(declaration)
        click.echo(f"Stack '{stack.name}' is valid: {len(stack.topology)} resource node(s).")


@cli.command()
@_declaration_arg
@click.pass_context
def endpoints(ctx: click.Context, declaration: Path) -> None:
    """Show the environment each service receives."""
    with _handle_errors(ctx):
        stack = load_stack(declaration)
        click.echo(render_environment(stack.environments()), nl=False)


@cli.command()
@_declaration_arg
@click.option("--backend", "backend_kind", type=click.Choice(BACKEND_KINDS), default=None,
              help="Overrides STACKPLAN_BACKEND.")
@click.option("--endpoint", default=None, help="Provisioner URL for the http backend.")
@click.option("--state", "state_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Applied-state file (default: STACKPLAN_STATE_PATH).")
@click.option("--fail", "fail_on", multiple=True, help="Simulated backend: make this resource fail.")
@click.pass_context
def apply(
    ctx: click.Context,
    declaration: Path,
    backend_kind: str | None,
    endpoint: str | None,
    state_path: Path | None,
    fail_on: tuple[str, ...],
) -> None:
    """Plan DECLARATION and submit it to a backend, wave by wave."""
    config: StackplanConfig = ctx.obj
    if backend_kind:
        config.backend.kind = backend_kind
    if endpoint:
        config.backend.endpoint = endpoint
    path = state_path or Path(config.state.path)

    with _handle_errors(ctx):
        stack = load_stack(declaration)
        state = load_state(path)
        current_plan = stack.plan(state)
        click.echo(render_plan(current_plan))
        if not current_plan.operations:
            return

        backend = build_backend(config.backend, fail_on=fail_on, already_applied=state.resources)
        executor = PlanExecutor(backend, state)
        report = executor.execute(current_plan)
        save_state(path, executor.state)
        click.echo(render_report(report))
        if not report.succeeded:
            ctx.exit(EXIT_INTERNAL)


@cli.command()
@click.option("--host", default=None, help="Overrides STACKPLAN_API_HOST.")
@click.option("--port", type=int, default=None, help="Overrides STACKPLAN_API_PORT.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Serve the planning REST API."""
    import uvicorn

    from stackplan.api import create_app

    config: StackplanConfig = ctx.obj
    uvicorn.run(
        create_app(config=config),
        host=host or config.api.host,
        port=port or config.api.port,
        log_config=None,  # structlog handles all logging
        access_log=False,
    )
