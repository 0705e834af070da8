"""CLI entry point for suiteplan."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from suiteplan import __version__, bootstrap
from suiteplan.core import CapabilityRegistry, Executor, PlanConstructionError, RunPlan, capability_registry
from suiteplan.plan import LoadedPlan, PlanOptions, load_default, load_plan, select_runs
from suiteplan.reporting import JsonReporter, ReportManager, Reporter, TerminalReporter
from suiteplan.runners import CommandSuiteRunner


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

EXIT_PLAN_ERROR = 2


class PlanError(click.ClickException):
    """A malformed plan, reported before any run starts."""

    exit_code = EXIT_PLAN_ERROR


class CliState:
    """Holds global CLI state."""

    def __init__(self, verbose: bool, plan_path: Optional[str]) -> None:
        self.verbose = verbose
        self.plan_path = plan_path


def _print_version(_: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or click.get_current_context().resilient_parsing:
        return
    click.echo(f"suiteplan {__version__}")
    raise click.exceptions.Exit()


@click.group(context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the suiteplan version and exit.",
)
@click.option(
    "--plan",
    "plan_path",
    type=click.Path(exists=True, dir_okay=False),
    envvar="SUITEPLAN_PLAN",
    help="YAML plan manifest (defaults to the built-in core/postgres/mysql plan).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, plan_path: Optional[str]) -> None:
    """Run the core suite, then each backend suite, stopping at the first failure."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    bootstrap()
    ctx.obj = CliState(verbose=verbose, plan_path=plan_path)
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
@click.option("--only", "only_filters", type=str, help="Comma-separated suite filters (supports globs).")
@click.option(
    "--workdir",
    type=click.Path(exists=True, file_okay=False),
    help="Directory the suite commands run in (defaults to the current directory).",
)
@click.option("--timeout", type=float, help="Per-suite timeout in seconds.")
@click.option(
    "--report",
    "report_format",
    type=click.Choice(["terminal", "json"]),
    default="terminal",
    show_default=True,
    help="Report format (terminal by default).",
)
@click.option("--report-path", type=str, help="When --report json, write to this path.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
@click.pass_obj
def run(
    state: CliState,
    only_filters: Optional[str],
    workdir: Optional[str],
    timeout: Optional[float],
    report_format: Optional[str],
    report_path: Optional[str],
    no_color: bool,
) -> None:
    """Execute the plan in order; exit 0 when every run passes."""

    options = PlanOptions(only=_split_csv(only_filters))
    loaded, plan, registry = _prepare(state, options)
    runner = CommandSuiteRunner(
        loaded.commands(load_default().suites),
        workdir=Path(workdir) if workdir else None,
        timeout=timeout,
    )
    reporters: list[Reporter]
    if report_format == "json":
        reporters = [JsonReporter(path=report_path)]
    else:
        reporters = [TerminalReporter(use_color=not no_color, verbose=state.verbose)]
    manager = ReportManager(reporters)
    executor = Executor(runner, registry=registry, on_result=manager.handle_result)
    try:
        manager.start(plan)
        result = executor.execute(plan)
        manager.complete(result)
    except PlanConstructionError as exc:  # pragma: no cover - validated in _prepare
        raise PlanError(str(exc)) from exc
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc
    raise click.exceptions.Exit(result.exit_code)


@cli.command(name="list")
@click.option("--only", "only_filters", type=str, help="Comma-separated suite filters (supports globs).")
@click.pass_obj
def list_runs(state: CliState, only_filters: Optional[str]) -> None:
    """List the planned runs without executing them."""

    _, plan, _ = _prepare(state, PlanOptions(only=_split_csv(only_filters)))
    for index, spec in enumerate(plan.runs, start=1):
        env_text = ", ".join(f"{key}={value}" for key, value in sorted(spec.env.items())) or "-"
        caps_text = " ".join(sorted(spec.capabilities)) or "-"
        click.echo(f"{index}. {spec.suite_id}  capabilities: {caps_text}  env: {env_text}")


def _prepare(state: CliState, options: PlanOptions) -> Tuple[LoadedPlan, RunPlan, CapabilityRegistry]:
    # Manifest tokens only extend this invocation's view of the registry.
    registry = capability_registry.copy()
    try:
        loaded = load_plan(state.plan_path) if state.plan_path else load_default()
        loaded.register_capabilities(registry)
        plan = select_runs(loaded.plan, options.only)
        plan.validate(registry)
    except PlanConstructionError as exc:
        raise PlanError(str(exc)) from exc
    return loaded, plan, registry


def _split_csv(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return tuple()
    parts = [part.strip() for part in value.split(",") if part.strip()]
    return tuple(parts)


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="suiteplan", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:  # click may raise exit code
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())