"""Suite runner interface."""
from __future__ import annotations

from typing import AbstractSet, Mapping, Protocol

from suiteplan.core.models import RunOutcome


class SuiteRunner(Protocol):
    """Executes one suite to completion.

    Implementations must be safe to call repeatedly and keep no state between
    calls. Returning an outcome with ``succeeded=False`` means the suite ran
    and failed; raising :class:`~suiteplan.core.errors.InvocationError` means
    it could not be run at all.
    """

    def run(self, suite_id: str, env: Mapping[str, str], capabilities: AbstractSet[str]) -> RunOutcome:
        ...  # pragma: no cover - interface
