from __future__ import annotations

import os

import pytest

from suiteplan.core import (
    CAPABILITIES_VAR,
    ConfigurationError,
    MappingEnvironment,
    ProcessEnvironment,
    RequiredVar,
    RunSpec,
    enter_scope,
)


def test_scope_applies_and_restores_overrides() -> None:
    env = MappingEnvironment({"DATABASE_URL": "sqlite::memory:", "HOME": "/root"})
    before = env.snapshot()
    spec = RunSpec("postgres", {"DATABASE_URL": "postgres://", "PGSSLMODE": "disable"}, {"uuid", "chrono"})

    scope = enter_scope(spec, env)
    assert env.get("DATABASE_URL") == "postgres://"
    assert env.get("PGSSLMODE") == "disable"
    assert env.get(CAPABILITIES_VAR) == "chrono uuid"
    assert scope.env()["HOME"] == "/root"
    scope.release()

    assert env.snapshot() == before
    assert not scope.active


def test_scope_restores_on_exception() -> None:
    env = MappingEnvironment({"X": "0"})
    before = env.snapshot()
    with pytest.raises(RuntimeError, match="suite crashed"):
        with enter_scope(RunSpec("core", {"X": "1", "Y": "2"}), env):
            assert env.get("X") == "1"
            raise RuntimeError("suite crashed")
    assert env.snapshot() == before


def test_override_not_visible_to_next_scope() -> None:
    env = MappingEnvironment()
    with enter_scope(RunSpec("a", {"X": "1"}), env):
        assert env.get("X") == "1"
    with enter_scope(RunSpec("b"), env) as scope:
        assert env.get("X") is None
        assert "X" not in scope.env()
    assert env.snapshot() == {}


def test_nested_scopes_are_rejected() -> None:
    env = MappingEnvironment()
    outer = enter_scope(RunSpec("a"), env)
    with pytest.raises(RuntimeError, match="still active"):
        enter_scope(RunSpec("b"), env)
    outer.release()
    enter_scope(RunSpec("b"), env).release()


def test_double_release_is_rejected() -> None:
    scope = enter_scope(RunSpec("a"), MappingEnvironment())
    scope.release()
    with pytest.raises(RuntimeError, match="already released"):
        scope.release()


def test_reference_resolves_from_ambient_environment() -> None:
    env = MappingEnvironment({"POSTGRES_DATABASE_URL": "postgres://ci@db/sqlx"})
    spec = RunSpec("postgres", {"DATABASE_URL": "${POSTGRES_DATABASE_URL:-postgres://}"})
    with enter_scope(spec, env):
        assert env.get("DATABASE_URL") == "postgres://ci@db/sqlx"


def test_reference_falls_back_to_default() -> None:
    env = MappingEnvironment()
    spec = RunSpec("mysql", {"DATABASE_URL": "${MYSQL_DATABASE_URL:-mysql:///sqlx}"})
    with enter_scope(spec, env):
        assert env.get("DATABASE_URL") == "mysql:///sqlx"
    assert env.snapshot() == {}


def test_unresolved_reference_is_configuration_error() -> None:
    env = MappingEnvironment({"KEEP": "1"})
    before = env.snapshot()
    spec = RunSpec("postgres", {"DATABASE_URL": "${POSTGRES_DATABASE_URL}"})
    with pytest.raises(ConfigurationError) as exc:
        enter_scope(spec, env)
    assert exc.value.suite_id == "postgres"
    assert "POSTGRES_DATABASE_URL" in exc.value.message
    assert env.snapshot() == before
    # the failed entry must not leave the environment locked
    enter_scope(RunSpec("core"), env).release()


def test_missing_required_variable_is_configuration_error() -> None:
    env = MappingEnvironment()
    spec = RunSpec("postgres", capabilities={"postgres"}, required_env=(RequiredVar("DATABASE_URL"),))
    with pytest.raises(ConfigurationError, match="DATABASE_URL is not set"):
        enter_scope(spec, env)
    assert env.snapshot() == {}


def test_required_variable_scheme_is_checked() -> None:
    env = MappingEnvironment({"DATABASE_URL": "mysql:///sqlx"})
    before = env.snapshot()
    spec = RunSpec("postgres", required_env=(RequiredVar("DATABASE_URL", ("postgres",)),))
    with pytest.raises(ConfigurationError, match="invalid"):
        enter_scope(spec, env)
    assert env.snapshot() == before


def test_process_environment_round_trip(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUITEPLAN_TEST_KEEP", "kept")
    monkeypatch.delenv("SUITEPLAN_TEST_URL", raising=False)
    before = dict(os.environ)
    with enter_scope(RunSpec("core", {"SUITEPLAN_TEST_URL": "postgres://", "SUITEPLAN_TEST_KEEP": "x"}), ProcessEnvironment()):
        assert os.environ["SUITEPLAN_TEST_URL"] == "postgres://"
        assert os.environ["SUITEPLAN_TEST_KEEP"] == "x"
    assert dict(os.environ) == before


def test_process_environments_share_one_active_slot() -> None:
    environ = {"A": "1"}
    first = enter_scope(RunSpec("a"), ProcessEnvironment(environ))
    with pytest.raises(RuntimeError):
        enter_scope(RunSpec("b"), ProcessEnvironment(environ))
    first.release()
    assert environ == {"A": "1"}


def test_changes_made_inside_scope_are_rolled_back() -> None:
    env = MappingEnvironment({"KEEP": "1", "HOME": "/root"})
    before = env.snapshot()
    with enter_scope(RunSpec("a", {"X": "1"}), env):
        env.set("LEAKED", "from-run-a")
        env.unset("KEEP")
        env.set("HOME", "/tmp")
    assert env.snapshot() == before
    with enter_scope(RunSpec("b"), env) as scope:
        assert "LEAKED" not in scope.env()
        assert scope.env()["KEEP"] == "1"
