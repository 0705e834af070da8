"""Exception hierarchy shared across suiteplan subsystems."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import RunOutcome


class SuiteplanError(Exception):
    """Base class for suiteplan errors."""


class PlanConstructionError(SuiteplanError):
    """The static plan declaration is malformed; nothing has run yet."""


class ConfigurationError(SuiteplanError):
    """Required external configuration is missing or invalid for one run."""

    def __init__(self, suite_id: str, message: str) -> None:
        super().__init__(f"{suite_id}: {message}")
        self.suite_id = suite_id
        self.message = message


class InvocationError(SuiteplanError):
    """The suite runner could not be started or communicated with."""


class SuiteFailure(SuiteplanError):
    """A suite ran to completion and reported failing tests."""

    def __init__(self, outcome: "RunOutcome") -> None:
        super().__init__(f"suite '{outcome.suite_id}' failed with exit code {outcome.exit_code}")
        self.outcome = outcome
