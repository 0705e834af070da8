"""Core dataclasses shared across suiteplan subsystems."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Tuple

from .capabilities import CapabilityRegistry
from .errors import PlanConstructionError, SuiteFailure

CAPABILITIES_VAR = "SUITEPLAN_CAPABILITIES"


@dataclass(frozen=True)
class RequiredVar:
    """An environment variable a run cannot start without."""

    name: str
    schemes: Tuple[str, ...] = tuple()

    def problem(self, value: Optional[str]) -> Optional[str]:
        """Return why ``value`` is unusable, or ``None`` when it is fine."""

        if value is None or not value.strip():
            return f"required environment variable {self.name} is not set"
        if self.schemes and not any(value.startswith(f"{scheme}:") for scheme in self.schemes):
            allowed = ", ".join(f"{scheme}:" for scheme in self.schemes)
            return f"{self.name}={value!r} is invalid; expected a URL starting with {allowed}"
        return None


@dataclass(frozen=True)
class RunSpec:
    """One suite execution together with its private configuration."""

    suite_id: str
    env: Mapping[str, str] = field(default_factory=dict)
    capabilities: frozenset = field(default_factory=frozenset)
    required_env: Tuple[RequiredVar, ...] = tuple()
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.suite_id, str) or not self.suite_id.strip():
            raise PlanConstructionError("RunSpec suite_id cannot be empty")
        for key, value in self.env.items():
            if not isinstance(key, str) or not key:
                raise PlanConstructionError(f"Run '{self.suite_id}' has an invalid env key {key!r}")
            if not isinstance(value, str):
                raise PlanConstructionError(f"Run '{self.suite_id}' env {key} must be a string")
        # Freeze caller-owned containers so specs stay value objects.
        object.__setattr__(self, "suite_id", self.suite_id.strip())
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))
        object.__setattr__(self, "capabilities", frozenset(self.capabilities))
        object.__setattr__(self, "required_env", tuple(self.required_env))

    def label(self) -> str:
        if self.capabilities:
            return f"{self.suite_id}[{' '.join(sorted(self.capabilities))}]"
        return self.suite_id

    def __hash__(self) -> int:
        return hash((self.suite_id, tuple(sorted(self.env.items())), self.capabilities, self.required_env))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RunSpec):
            return NotImplemented
        return (
            self.suite_id == other.suite_id
            and dict(self.env) == dict(other.env)
            and self.capabilities == other.capabilities
            and self.required_env == other.required_env
            and self.description == other.description
        )


@dataclass(frozen=True)
class RunPlan:
    """Ordered, non-empty sequence of runs; order is significant."""

    runs: Tuple[RunSpec, ...]
    name: str = ""

    def __post_init__(self) -> None:
        runs = tuple(self.runs)
        if not runs:
            raise PlanConstructionError("A run plan needs at least one run")
        for index, run in enumerate(runs):
            if not isinstance(run, RunSpec):
                raise PlanConstructionError(f"Plan entry {index} is not a RunSpec: {run!r}")
        object.__setattr__(self, "runs", runs)

    def __len__(self) -> int:
        return len(self.runs)

    def __iter__(self) -> Iterator[RunSpec]:
        return iter(self.runs)

    def suite_ids(self) -> Tuple[str, ...]:
        return tuple(run.suite_id for run in self.runs)

    def validate(self, registry: CapabilityRegistry) -> None:
        for index, run in enumerate(self.runs):
            registry.check(run.capabilities, context=f"run {index} ({run.suite_id})")


class OutcomeKind(enum.Enum):
    PASSED = "passed"
    SUITE_FAILURE = "suite-failure"
    CONFIGURATION_ERROR = "configuration-error"
    INVOCATION_ERROR = "invocation-error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RunOutcome:
    """Result of one suite invocation."""

    suite_id: str
    succeeded: bool
    diagnostics: Tuple[str, ...] = tuple()
    exit_code: int = 0
    kind: OutcomeKind = OutcomeKind.PASSED
    duration_s: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "diagnostics", tuple(self.diagnostics))

    @classmethod
    def passed(cls, suite_id: str, diagnostics: Iterable[str] = (), *, duration_s: float = 0.0) -> "RunOutcome":
        return cls(suite_id, True, tuple(diagnostics), 0, OutcomeKind.PASSED, duration_s)

    @classmethod
    def failed(
        cls, suite_id: str, exit_code: int, diagnostics: Iterable[str] = (), *, duration_s: float = 0.0
    ) -> "RunOutcome":
        return cls(suite_id, False, tuple(diagnostics), exit_code, OutcomeKind.SUITE_FAILURE, duration_s)

    @classmethod
    def configuration_error(cls, suite_id: str, message: str) -> "RunOutcome":
        return cls(suite_id, False, (f"configuration error: {message}",), 1, OutcomeKind.CONFIGURATION_ERROR)

    @classmethod
    def invocation_error(cls, suite_id: str, message: str, *, duration_s: float = 0.0) -> "RunOutcome":
        return cls(suite_id, False, (f"invocation error: {message}",), 1, OutcomeKind.INVOCATION_ERROR, duration_s)

    @classmethod
    def cancelled(cls, suite_id: str, *, duration_s: float = 0.0) -> "RunOutcome":
        return cls(suite_id, False, ("interrupted",), 130, OutcomeKind.CANCELLED, duration_s)


@dataclass(frozen=True)
class OrchestrationResult:
    """Outcomes of the runs that actually executed, in plan order."""

    outcomes: Tuple[RunOutcome, ...]
    halted_early: bool
    skipped: Tuple[str, ...] = tuple()

    @property
    def succeeded(self) -> bool:
        return not self.halted_early and all(outcome.succeeded for outcome in self.outcomes)

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    @property
    def first_failure(self) -> Optional[RunOutcome]:
        for outcome in self.outcomes:
            if not outcome.succeeded:
                return outcome
        return None

    def raise_for_failure(self) -> None:
        """Raise :class:`SuiteFailure` carrying the first failing outcome, if any."""

        failure = self.first_failure
        if failure is not None:
            raise SuiteFailure(failure)
