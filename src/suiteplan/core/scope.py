"""Scoped application of per-run environment overrides.

Process environment is global state. Each run gets a :class:`ConfigScope` that
applies its overrides on entry and restores the exact prior state on release,
so one run's ``DATABASE_URL`` or capability set can never be observed by the
next one. Scopes are strictly linear: one active scope per environment.
"""
from __future__ import annotations

import logging
import os
import re
from typing import Dict, Mapping, MutableMapping, Optional, Protocol

from .errors import ConfigurationError
from .models import CAPABILITIES_VAR, RunSpec

logger = logging.getLogger(__name__)

_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}")


class EnvironmentProvider(Protocol):
    """Access to a mutable string-to-string environment."""

    def get(self, name: str) -> Optional[str]:  # pragma: no cover - interface
        ...

    def set(self, name: str, value: str) -> None:  # pragma: no cover - interface
        ...

    def unset(self, name: str) -> None:  # pragma: no cover - interface
        ...

    def snapshot(self) -> Dict[str, str]:  # pragma: no cover - interface
        ...


class MappingEnvironment:
    """In-memory environment, used in place of the process environment in tests."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def set(self, name: str, value: str) -> None:
        self._values[name] = value

    def unset(self, name: str) -> None:
        self._values.pop(name, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)

    @property
    def backing(self) -> Dict[str, str]:
        return self._values


class ProcessEnvironment:
    """The real ``os.environ``."""

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def get(self, name: str) -> Optional[str]:
        return self._environ.get(name)

    def set(self, name: str, value: str) -> None:
        self._environ[name] = value

    def unset(self, name: str) -> None:
        self._environ.pop(name, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._environ)

    @property
    def backing(self) -> MutableMapping[str, str]:
        return self._environ


# Environments that currently have an active scope, keyed by the identity of
# their backing store so two providers over os.environ share one slot.
_ACTIVE: Dict[int, "ConfigScope"] = {}


def _scope_key(environment: EnvironmentProvider) -> int:
    return id(getattr(environment, "backing", environment))


class ConfigScope:
    """Overrides for one run, active until :meth:`release`."""

    def __init__(self, spec: RunSpec, environment: EnvironmentProvider) -> None:
        self.spec = spec
        self._environment = environment
        self._before = environment.snapshot()
        self._released = False

    @property
    def active(self) -> bool:
        return not self._released

    def env(self) -> Dict[str, str]:
        """Full environment as seen by the run."""

        return self._environment.snapshot()

    def _apply(self, values: Mapping[str, str]) -> None:
        for name, value in values.items():
            self._environment.set(name, value)

    def release(self) -> None:
        if self._released:
            raise RuntimeError(f"Scope for '{self.spec.suite_id}' already released")
        restored = 0
        try:
            # Roll back every change made while the scope was active.
            for name, value in self._environment.snapshot().items():
                if name not in self._before:
                    self._environment.unset(name)
                    restored += 1
                elif value != self._before[name]:
                    self._environment.set(name, self._before[name])
                    restored += 1
            for name, value in self._before.items():
                if self._environment.get(name) is None:
                    self._environment.set(name, value)
                    restored += 1
        finally:
            self._released = True
            _ACTIVE.pop(_scope_key(self._environment), None)
        logger.debug("released scope for %s (%d variable(s) restored)", self.spec.suite_id, restored)

    def __enter__(self) -> "ConfigScope":
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self._released:
            self.release()


def enter_scope(spec: RunSpec, environment: EnvironmentProvider) -> ConfigScope:
    """Apply ``spec``'s overrides to ``environment`` and return the active scope.

    ``${NAME}`` and ``${NAME:-default}`` references in override values are
    resolved against the environment as it is right now. Unresolvable
    references and unmet ``required_env`` entries raise
    :class:`ConfigurationError` with the environment left untouched.
    """

    key = _scope_key(environment)
    current = _ACTIVE.get(key)
    if current is not None:
        raise RuntimeError(
            f"Cannot enter scope for '{spec.suite_id}' while '{current.spec.suite_id}' is still active"
        )
    values = resolve_overrides(spec, environment)
    values[CAPABILITIES_VAR] = " ".join(sorted(spec.capabilities))
    scope = ConfigScope(spec, environment)
    _ACTIVE[key] = scope
    try:
        scope._apply(values)
        for requirement in spec.required_env:
            problem = requirement.problem(environment.get(requirement.name))
            if problem:
                raise ConfigurationError(spec.suite_id, problem)
    except BaseException:
        scope.release()
        raise
    logger.debug("entered scope for %s with %s", spec.suite_id, ", ".join(sorted(spec.env)) or "no overrides")
    return scope


def resolve_overrides(spec: RunSpec, environment: EnvironmentProvider) -> Dict[str, str]:
    resolved: Dict[str, str] = {}
    for name, raw in spec.env.items():
        resolved[name] = _expand(spec.suite_id, name, raw, environment)
    return resolved


def _expand(suite_id: str, name: str, raw: str, environment: EnvironmentProvider) -> str:
    def replace(match: "re.Match[str]") -> str:
        ref = match.group("name")
        value = environment.get(ref)
        if value:
            return value
        default = match.group("default")
        if default is not None:
            return default
        raise ConfigurationError(suite_id, f"{name} references ${{{ref}}}, which is not set")

    return _REFERENCE.sub(replace, raw)
