from __future__ import annotations

from typing import AbstractSet, Callable, Dict, List, Mapping, Optional, Tuple

import pytest

from suiteplan import bootstrap
from suiteplan.core import RunOutcome


@pytest.fixture(scope="session", autouse=True)
def setup_suiteplan() -> None:
    """Bootstrap plugins once for the entire test session."""

    bootstrap()


class RecordingRunner:
    """Suite runner double that records every call and the env it observed."""

    def __init__(
        self,
        failing: Tuple[str, ...] = (),
        hooks: Optional[Dict[str, Callable[[Mapping[str, str]], None]]] = None,
    ) -> None:
        self.failing = set(failing)
        self.hooks = hooks or {}
        self.calls: List[Tuple[str, Dict[str, str], frozenset]] = []

    def run(self, suite_id: str, env: Mapping[str, str], capabilities: AbstractSet[str]) -> RunOutcome:
        self.calls.append((suite_id, dict(env), frozenset(capabilities)))
        hook = self.hooks.get(suite_id)
        if hook is not None:
            hook(env)
        if suite_id in self.failing:
            return RunOutcome.failed(suite_id, 101, [f"test {suite_id}::smoke ... FAILED", "test result: FAILED"])
        return RunOutcome.passed(suite_id, [f"test result: ok ({suite_id})"])

    @property
    def invoked(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def recording_runner() -> Callable[..., RecordingRunner]:
    return RecordingRunner
