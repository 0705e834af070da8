"""Build run plans from plain declarations (the built-in plan or a manifest)."""
from __future__ import annotations

import fnmatch
import shlex
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from suiteplan.core import PlanConstructionError, RequiredVar, RunPlan, RunSpec

from .models import LoadedPlan


def build_plan(declaration: Mapping[str, Any], *, name: str = "") -> RunPlan:
    """Build a :class:`RunPlan` from ``declaration``.

    Pure: the environment is not consulted, ``${VAR}`` references stay
    unresolved until each run starts.
    """

    if not isinstance(declaration, Mapping):
        raise PlanConstructionError("Plan declaration must be a mapping")
    raw_runs = declaration.get("runs")
    if not isinstance(raw_runs, list) or not raw_runs:
        raise PlanConstructionError("runs must be a non-empty list")
    runs = tuple(_parse_run(entry, index) for index, entry in enumerate(raw_runs))
    plan_name = name or str(declaration.get("name", "") or "")
    return RunPlan(runs=runs, name=plan_name)


def build_loaded(declaration: Mapping[str, Any], *, source: Optional[Path] = None) -> LoadedPlan:
    plan = build_plan(declaration)
    return LoadedPlan(
        plan=plan,
        suites=_parse_suites(declaration.get("suites")),
        capabilities=_parse_capability_decls(declaration.get("capabilities")),
        source=source,
    )


def select_runs(plan: RunPlan, patterns: Sequence[str]) -> RunPlan:
    """Keep the runs whose suite id matches any glob in ``patterns``, in order."""

    if not patterns:
        return plan
    selected = tuple(run for run in plan.runs if any(fnmatch.fnmatchcase(run.suite_id, p) for p in patterns))
    if not selected:
        available = ", ".join(plan.suite_ids())
        raise PlanConstructionError(f"No runs matched {', '.join(patterns)} (available: {available})")
    return RunPlan(runs=selected, name=plan.name)


def _parse_run(entry: Any, index: int) -> RunSpec:
    if isinstance(entry, str):
        entry = {"suite": entry}
    if not isinstance(entry, Mapping):
        raise PlanConstructionError(f"runs[{index}] must be a mapping or a suite name")
    suite = entry.get("suite")
    if not isinstance(suite, str) or not suite.strip():
        raise PlanConstructionError(f"runs[{index}] is missing a non-empty 'suite'")
    where = f"runs[{index}] ({suite})"
    return RunSpec(
        suite_id=suite,
        env=_parse_env(entry.get("env"), where),
        capabilities=frozenset(_parse_tokens(entry.get("capabilities"), where)),
        required_env=_parse_requires(entry.get("requires"), where),
        description=str(entry.get("description", "") or ""),
    )


def _parse_env(raw: Any, where: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return {str(key): _env_value(value, where, key) for key, value in raw.items()}
    if isinstance(raw, list):
        env: Dict[str, str] = {}
        for item in raw:
            if not isinstance(item, str) or "=" not in item:
                raise PlanConstructionError(f"{where}: env entries must look like NAME=value, got {item!r}")
            key, value = item.split("=", 1)
            key = key.strip()
            if not key:
                raise PlanConstructionError(f"{where}: env entry {item!r} has an empty name")
            if key in env:
                raise PlanConstructionError(f"{where}: duplicate env variable {key}")
            env[key] = value
        return env
    raise PlanConstructionError(f"{where}: env must be a mapping or a list of NAME=value strings")


def _env_value(value: Any, where: str, key: Any) -> str:
    if value is None or isinstance(value, (list, dict)):
        raise PlanConstructionError(f"{where}: env {key} must be a scalar value")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_tokens(raw: Any, where: str) -> Tuple[str, ...]:
    if raw is None:
        return tuple()
    if isinstance(raw, str):
        # cargo style: "postgres macros uuid"
        return tuple(part for part in raw.replace(",", " ").split() if part)
    if isinstance(raw, (list, tuple)):
        tokens = []
        for item in raw:
            if not isinstance(item, str) or not item.strip():
                raise PlanConstructionError(f"{where}: capabilities must be non-empty strings")
            tokens.append(item.strip())
        return tuple(tokens)
    raise PlanConstructionError(f"{where}: capabilities must be a list or a space separated string")


def _parse_requires(raw: Any, where: str) -> Tuple[RequiredVar, ...]:
    if raw is None:
        return tuple()
    if not isinstance(raw, list):
        raise PlanConstructionError(f"{where}: requires must be a list")
    required = []
    for item in raw:
        if isinstance(item, str):
            required.append(RequiredVar(name=item.strip()))
            continue
        if not isinstance(item, Mapping) or not isinstance(item.get("name"), str):
            raise PlanConstructionError(f"{where}: requires entries must be names or mappings with 'name'")
        schemes = item.get("schemes") or []
        if isinstance(schemes, str):
            schemes = [schemes]
        required.append(RequiredVar(name=item["name"].strip(), schemes=tuple(str(s) for s in schemes)))
    return tuple(required)


def _parse_suites(raw: Any) -> Dict[str, Tuple[str, ...]]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise PlanConstructionError("suites must be a mapping of suite name to command")
    suites: Dict[str, Tuple[str, ...]] = {}
    for key, value in raw.items():
        if isinstance(value, Mapping) and "command" in value:
            value = value["command"]
        suites[str(key)] = _normalize_command(value, str(key))
    return suites


def _normalize_command(raw: Any, suite: str) -> Tuple[str, ...]:
    if raw is None:
        raise PlanConstructionError(f"suite '{suite}' has no command")
    if isinstance(raw, (str, Path)):
        argv = tuple(shlex.split(str(raw)))
    elif isinstance(raw, Mapping):
        executable = raw.get("binary") or raw.get("executable")
        if not executable:
            raise PlanConstructionError(f"suite '{suite}' command mapping requires 'binary' or 'executable'")
        args = raw.get("args", [])
        if isinstance(args, (str, Path)):
            args_list = shlex.split(str(args))
        elif isinstance(args, list):
            args_list = [str(part) for part in args]
        else:
            raise PlanConstructionError(f"suite '{suite}' command args must be list or string")
        argv = tuple([str(executable)] + args_list)
    elif isinstance(raw, (list, tuple)):
        argv = tuple(str(part) for part in raw)
    else:
        raise PlanConstructionError(f"suite '{suite}' command must be string, list, or mapping")
    if not argv:
        raise PlanConstructionError(f"suite '{suite}' has an empty command")
    return argv


def _parse_capability_decls(raw: Any) -> Dict[str, str]:
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return {str(key).strip(): str(value or "") for key, value in raw.items()}
    if isinstance(raw, list):
        return {str(item).strip(): "" for item in raw}
    raise PlanConstructionError("capabilities must be a list or a mapping of name to description")
