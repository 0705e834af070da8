"""Terminal reporter rendering progress and summaries."""
from __future__ import annotations

import time

import click
from colorama import Fore, Style, init as colorama_init

from suiteplan.core import OrchestrationResult, OutcomeKind, RunOutcome, RunPlan

from .base import Reporter

STATUS_LABELS = {
    OutcomeKind.PASSED: "PASSED",
    OutcomeKind.SUITE_FAILURE: "FAILED",
    OutcomeKind.CONFIGURATION_ERROR: "CONFIG-ERROR",
    OutcomeKind.INVOCATION_ERROR: "ERROR",
    OutcomeKind.CANCELLED: "CANCELLED",
}

STATUS_COLORS = {
    OutcomeKind.PASSED: Fore.GREEN,
    OutcomeKind.SUITE_FAILURE: Fore.RED,
    OutcomeKind.CONFIGURATION_ERROR: Fore.RED,
    OutcomeKind.INVOCATION_ERROR: Fore.RED,
    OutcomeKind.CANCELLED: Fore.YELLOW,
}


class TerminalReporter(Reporter):
    """Human-readable reporter that streams to stdout.

    Only the first failure gets its diagnostics printed in full; passing runs
    show their output only when ``verbose`` is set.
    """

    def __init__(self, *, use_color: bool = True, verbose: bool = False) -> None:
        self._use_color = use_color
        self._verbose = verbose
        self._start_time = 0.0
        self._plan: RunPlan | None = None
        self._shown_failure = False

    def on_start(self, plan: RunPlan) -> None:
        colorama_init()
        self._plan = plan
        self._start_time = time.perf_counter()
        self._shown_failure = False
        title = f"plan {plan.name}" if plan.name else "plan"
        click.echo(self._color(f"Starting {title}: {len(plan)} run(s): {', '.join(plan.suite_ids())}", Fore.CYAN))

    def on_run_result(self, outcome: RunOutcome, index: int, total: int) -> None:
        label = STATUS_LABELS[outcome.kind]
        status = self._color(label, STATUS_COLORS[outcome.kind])
        exit_text = "" if outcome.succeeded else f" exit={outcome.exit_code}"
        click.echo(f"[{index}/{total}] {outcome.suite_id} -> {status} ({outcome.duration_s:.2f} s){exit_text}")
        if not outcome.succeeded and not self._shown_failure:
            self._shown_failure = True
            self._print_diagnostics(outcome)
        elif self._verbose:
            self._print_diagnostics(outcome)

    def on_complete(self, result: OrchestrationResult) -> None:
        duration = time.perf_counter() - self._start_time
        for suite_id in result.skipped:
            click.echo(f"{self._color('SKIPPED', Fore.YELLOW)} {suite_id} (skipped due to earlier failure)")
        passed = sum(1 for outcome in result.outcomes if outcome.succeeded)
        failed = len(result.outcomes) - passed
        planned = len(self._plan) if self._plan is not None else len(result.outcomes) + len(result.skipped)
        summary_color = Fore.GREEN if result.succeeded else Fore.RED
        click.echo(
            self._color("Summary", summary_color)
            + f": planned={planned} ran={len(result.outcomes)} passed={passed} failed={failed} "
            f"skipped={len(result.skipped)} duration={duration:.2f}s"
        )

    def _print_diagnostics(self, outcome: RunOutcome, *, indent: str = "    ") -> None:
        if not outcome.diagnostics:
            click.echo(f"{indent}(no output captured)")
            return
        for line in outcome.diagnostics:
            click.echo(f"{indent}{line}")

    def _color(self, text: str, color: str) -> str:
        if not self._use_color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"
