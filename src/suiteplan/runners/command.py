"""Suite runner that executes each suite as a subprocess."""
from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path
from typing import AbstractSet, Dict, Mapping, Optional, Sequence, Tuple

from suiteplan.core.errors import InvocationError
from suiteplan.core.models import RunOutcome

logger = logging.getLogger(__name__)


class CommandSuiteRunner:
    """Runs ``commands[suite_id]`` with the scoped environment.

    Command arguments may contain ``{suite}``, ``{features}`` (capabilities
    joined by spaces) and ``{features_csv}`` tokens. Standard output and
    standard error are merged and returned as diagnostic lines.
    """

    def __init__(
        self,
        commands: Mapping[str, Sequence[str]],
        *,
        workdir: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._commands: Dict[str, Tuple[str, ...]] = {key: tuple(argv) for key, argv in commands.items()}
        self._workdir = Path(workdir) if workdir else None
        self._timeout = timeout

    def run(self, suite_id: str, env: Mapping[str, str], capabilities: AbstractSet[str]) -> RunOutcome:
        argv = self._command_for(suite_id, capabilities)
        logger.debug("running %s: %s (cwd=%s)", suite_id, " ".join(argv), self._workdir or ".")
        start = time.perf_counter()
        try:
            proc = subprocess.run(
                argv,
                cwd=str(self._workdir) if self._workdir else None,
                env=dict(env),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise InvocationError(f"command '{' '.join(argv)}' timed out after {exc.timeout}s") from exc
        except OSError as exc:
            raise InvocationError(f"command '{' '.join(argv)}' could not be started: {exc}") from exc
        duration = time.perf_counter() - start
        lines = tuple((proc.stdout or "").splitlines())
        if proc.returncode == 0:
            return RunOutcome.passed(suite_id, lines, duration_s=duration)
        return RunOutcome.failed(suite_id, proc.returncode, lines, duration_s=duration)

    def _command_for(self, suite_id: str, capabilities: AbstractSet[str]) -> Tuple[str, ...]:
        template = self._commands.get(suite_id)
        if template is None:
            known = ", ".join(sorted(self._commands)) or "none"
            raise InvocationError(f"no command configured for suite '{suite_id}' (configured: {known})")
        return render_command(template, build_tokens(suite_id, capabilities))


def build_tokens(suite_id: str, capabilities: AbstractSet[str]) -> Dict[str, str]:
    features = sorted(capabilities)
    return {
        "suite": suite_id,
        "features": " ".join(features),
        "features_csv": ",".join(features),
    }


def render_command(argv: Sequence[str], tokens: Mapping[str, str]) -> Tuple[str, ...]:
    return tuple(_render_template(part, tokens) for part in argv)


def _render_template(value: str, tokens: Mapping[str, str]) -> str:
    if "{" not in value or "}" not in value:
        return value
    try:
        return value.format(**tokens)
    except KeyError as exc:
        available = ", ".join(sorted(tokens.keys()))
        raise InvocationError(f"Unknown token {exc} in value '{value}'. Available tokens: {available}") from exc
