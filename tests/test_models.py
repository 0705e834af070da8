from __future__ import annotations

import pytest

from suiteplan.core import (
    CapabilityRegistry,
    OrchestrationResult,
    OutcomeKind,
    PlanConstructionError,
    RequiredVar,
    RunOutcome,
    RunPlan,
    RunSpec,
    SuiteFailure,
    capability_registry,
)


def test_run_spec_freezes_inputs() -> None:
    env = {"DATABASE_URL": "postgres://"}
    caps = {"uuid", "chrono"}
    spec = RunSpec(suite_id=" postgres ", env=env, capabilities=caps)
    env["DATABASE_URL"] = "mysql://"
    caps.add("mysql")
    assert spec.suite_id == "postgres"
    assert dict(spec.env) == {"DATABASE_URL": "postgres://"}
    assert spec.capabilities == frozenset({"uuid", "chrono"})
    with pytest.raises(TypeError):
        spec.env["OTHER"] = "x"  # type: ignore[index]


def test_run_spec_equality_and_hash() -> None:
    a = RunSpec("mysql", {"DATABASE_URL": "mysql:///sqlx"}, frozenset({"chrono"}))
    b = RunSpec("mysql", {"DATABASE_URL": "mysql:///sqlx"}, {"chrono"})
    assert a == b
    assert hash(a) == hash(b)
    assert a != RunSpec("mysql", {}, {"chrono"})
    assert a.label() == "mysql[chrono]"


@pytest.mark.parametrize("suite_id", ["", "   "])
def test_run_spec_rejects_empty_suite(suite_id: str) -> None:
    with pytest.raises(PlanConstructionError):
        RunSpec(suite_id)


def test_run_spec_rejects_non_string_env_values() -> None:
    with pytest.raises(PlanConstructionError):
        RunSpec("core", {"PORT": 5432})  # type: ignore[dict-item]


def test_run_plan_requires_runs() -> None:
    with pytest.raises(PlanConstructionError):
        RunPlan(runs=())
    with pytest.raises(PlanConstructionError):
        RunPlan(runs=("core",))  # type: ignore[arg-type]


def test_run_plan_allows_repeated_suites() -> None:
    plan = RunPlan(runs=[RunSpec("core"), RunSpec("core", {"RUST_LOG": "debug"})])
    assert len(plan) == 2
    assert plan.suite_ids() == ("core", "core")


def test_run_plan_validate_rejects_unknown_capability() -> None:
    plan = RunPlan(runs=(RunSpec("core"), RunSpec("sqlite", capabilities={"sqlite"})))
    with pytest.raises(PlanConstructionError) as exc:
        plan.validate(capability_registry)
    assert "'sqlite'" in str(exc.value)
    assert "run 1 (sqlite)" in str(exc.value)


def test_capability_registry_register_and_ensure() -> None:
    registry = CapabilityRegistry()
    registry.register("tls", "TLS support")
    registry.ensure("tls")
    registry.ensure("json")
    assert registry.names() == ("json", "tls")
    assert registry.describe("tls") == "TLS support"
    with pytest.raises(ValueError):
        registry.register("tls")
    with pytest.raises(ValueError):
        registry.register("  ")


def test_builtin_capabilities_are_registered() -> None:
    for token in ("postgres", "mysql", "macros", "uuid", "chrono"):
        assert token in capability_registry


def test_required_var_problems() -> None:
    requirement = RequiredVar("DATABASE_URL", ("postgres",))
    assert requirement.problem(None) == "required environment variable DATABASE_URL is not set"
    assert requirement.problem("") is not None
    assert "invalid" in requirement.problem("mysql:///sqlx")
    assert requirement.problem("postgres://localhost/sqlx") is None
    assert RequiredVar("TOKEN").problem("anything") is None


def test_outcome_constructors() -> None:
    assert RunOutcome.passed("core").kind is OutcomeKind.PASSED
    failed = RunOutcome.failed("core", 101, ["boom"])
    assert not failed.succeeded
    assert failed.exit_code == 101
    assert failed.diagnostics == ("boom",)
    config = RunOutcome.configuration_error("postgres", "DATABASE_URL is not set")
    assert config.kind is OutcomeKind.CONFIGURATION_ERROR
    assert config.diagnostics == ("configuration error: DATABASE_URL is not set",)
    cancelled = RunOutcome.cancelled("mysql")
    assert cancelled.kind is OutcomeKind.CANCELLED
    assert cancelled.exit_code == 130


def test_outcome_equality_ignores_duration() -> None:
    assert RunOutcome.passed("core", duration_s=1.0) == RunOutcome.passed("core", duration_s=2.5)


def test_orchestration_result_exit_code() -> None:
    ok = OrchestrationResult(outcomes=(RunOutcome.passed("core"),), halted_early=False)
    assert ok.exit_code == 0
    assert ok.first_failure is None
    ok.raise_for_failure()

    failing = RunOutcome.failed("mysql", 1)
    bad = OrchestrationResult(outcomes=(RunOutcome.passed("core"), failing), halted_early=False)
    assert bad.exit_code == 1
    assert bad.first_failure == failing
    with pytest.raises(SuiteFailure) as exc:
        bad.raise_for_failure()
    assert exc.value.outcome == failing
