"""Sequential, fail-fast execution of a run plan."""
from __future__ import annotations

import enum
import logging
import time
from typing import TYPE_CHECKING, Callable, List, Optional

from .capabilities import CapabilityRegistry, capability_registry
from .errors import ConfigurationError, InvocationError
from .models import OrchestrationResult, OutcomeKind, RunOutcome, RunPlan, RunSpec
from .scope import EnvironmentProvider, ProcessEnvironment, enter_scope

if TYPE_CHECKING:  # pragma: no cover
    from suiteplan.runners.base import SuiteRunner

logger = logging.getLogger(__name__)

ResultCallback = Callable[[RunOutcome, int, int], None]


class ExecutorState(enum.Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    HALTED = "halted"
    COMPLETED = "completed"


class Executor:
    """Executes each run of a plan in order and stops at the first failure."""

    def __init__(
        self,
        runner: "SuiteRunner",
        *,
        environment: Optional[EnvironmentProvider] = None,
        registry: Optional[CapabilityRegistry] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self._runner = runner
        self._environment = environment if environment is not None else ProcessEnvironment()
        self._registry = registry if registry is not None else capability_registry
        self._on_result = on_result
        self.state = ExecutorState.NOT_STARTED
        self.current_index: Optional[int] = None

    def execute(self, plan: RunPlan) -> OrchestrationResult:
        # Plan errors surface before anything runs.
        plan.validate(self._registry)
        self.state = ExecutorState.RUNNING
        outcomes: List[RunOutcome] = []
        total = len(plan)
        for index, spec in enumerate(plan.runs):
            self.current_index = index
            outcome = self._execute_run(spec)
            outcomes.append(outcome)
            self._notify(outcome, index + 1, total)
            if not outcome.succeeded:
                remaining = plan.runs[index + 1 :]
                if remaining:
                    logger.info(
                        "%s failed (%s); skipping %d remaining run(s)",
                        spec.suite_id,
                        outcome.kind.value,
                        len(remaining),
                    )
                self.state = ExecutorState.HALTED
                return OrchestrationResult(
                    outcomes=tuple(outcomes),
                    halted_early=bool(remaining) or outcome.kind is OutcomeKind.CANCELLED,
                    skipped=tuple(run.suite_id for run in remaining),
                )
        self.state = ExecutorState.COMPLETED
        return OrchestrationResult(outcomes=tuple(outcomes), halted_early=False)

    def _execute_run(self, spec: RunSpec) -> RunOutcome:
        logger.debug("starting %s", spec.label())
        start = time.perf_counter()
        try:
            scope = enter_scope(spec, self._environment)
        except ConfigurationError as exc:
            return RunOutcome.configuration_error(spec.suite_id, exc.message)
        except KeyboardInterrupt:
            logger.warning("interrupted while preparing %s", spec.suite_id)
            return RunOutcome.cancelled(spec.suite_id, duration_s=time.perf_counter() - start)
        try:
            with scope:
                outcome = self._runner.run(spec.suite_id, scope.env(), spec.capabilities)
        except KeyboardInterrupt:
            logger.warning("interrupted during %s", spec.suite_id)
            return RunOutcome.cancelled(spec.suite_id, duration_s=time.perf_counter() - start)
        except InvocationError as exc:
            return RunOutcome.invocation_error(spec.suite_id, str(exc), duration_s=time.perf_counter() - start)
        except Exception as exc:
            logger.debug("runner raised for %s", spec.suite_id, exc_info=True)
            return RunOutcome.invocation_error(
                spec.suite_id,
                f"{type(exc).__name__}: {exc}",
                duration_s=time.perf_counter() - start,
            )
        if not outcome.succeeded and outcome.kind is OutcomeKind.PASSED:
            # Runners may report plain failures without a kind.
            outcome = RunOutcome(
                outcome.suite_id,
                False,
                outcome.diagnostics,
                outcome.exit_code,
                OutcomeKind.SUITE_FAILURE,
                outcome.duration_s,
            )
        return outcome

    def _notify(self, outcome: RunOutcome, index: int, total: int) -> None:
        if self._on_result is None:
            return
        try:
            self._on_result(outcome, index, total)
        except Exception:
            # Reporter failures are logged and the plan keeps going.
            logger.exception("result callback failed for %s", outcome.suite_id)


def execute(plan: RunPlan, runner: "SuiteRunner", **kwargs: object) -> OrchestrationResult:
    """Convenience wrapper around :class:`Executor`."""

    return Executor(runner, **kwargs).execute(plan)  # type: ignore[arg-type]
