"""Reporter hooks and the fan-out used by the CLI."""
from __future__ import annotations

from typing import Sequence

from suiteplan.core import OrchestrationResult, RunOutcome, RunPlan


class Reporter:
    """Receives plan lifecycle events; every hook is optional."""

    def on_start(self, plan: RunPlan) -> None:
        pass

    def on_run_result(self, outcome: RunOutcome, index: int, total: int) -> None:
        pass

    def on_complete(self, result: OrchestrationResult) -> None:
        pass


class ReportManager:
    """Forwards each event to every reporter, in registration order."""

    def __init__(self, reporters: Sequence[Reporter]) -> None:
        self._reporters = tuple(reporters)

    def _emit(self, hook: str, *args: object) -> None:
        for reporter in self._reporters:
            getattr(reporter, hook)(*args)

    def start(self, plan: RunPlan) -> None:
        self._emit("on_start", plan)

    def handle_result(self, outcome: RunOutcome, index: int, total: int) -> None:
        self._emit("on_run_result", outcome, index, total)

    def complete(self, result: OrchestrationResult) -> None:
        self._emit("on_complete", result)
