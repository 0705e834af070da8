"""JSON reporter emitting structured orchestration results."""
from __future__ import annotations

import datetime as dt
import json
import pathlib
import time
from typing import Any, Dict, Optional

import click
from jsonschema import validate

from suiteplan.core import OrchestrationResult, RunOutcome, RunPlan

from .base import Reporter
from .schema import JSON_SCHEMA_V1, SCHEMA_VERSION


class JsonReporter(Reporter):
    """Writes results as JSON validated against the schema; stdout when no path."""

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = pathlib.Path(path) if path else None
        self._records: list[Dict[str, Any]] = []
        self._plan: RunPlan | None = None
        self._start_time = 0.0

    def on_start(self, plan: RunPlan) -> None:
        self._plan = plan
        self._records.clear()
        self._start_time = time.perf_counter()

    def on_run_result(self, outcome: RunOutcome, index: int, total: int) -> None:
        self._records.append(_outcome_to_dict(outcome, index))

    def on_complete(self, result: OrchestrationResult) -> None:
        if self._plan is None:
            return
        payload = build_payload(self._plan, result, self._records, time.perf_counter() - self._start_time)
        text = json.dumps(payload, indent=2)
        if self._path is None:
            click.echo(text)
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(f"Failed to write JSON report to {self._path}: {exc}") from exc
        click.echo(f"JSON report written to {self._path}")


def build_payload(
    plan: RunPlan,
    result: OrchestrationResult,
    records: list[Dict[str, Any]],
    duration: float,
) -> Dict[str, Any]:
    passed = sum(1 for outcome in result.outcomes if outcome.succeeded)
    payload = {
        "schema_version": SCHEMA_VERSION,
        "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "summary": {
            "plan": plan.name,
            "planned": len(plan),
            "ran": len(result.outcomes),
            "passed": passed,
            "failed": len(result.outcomes) - passed,
            "halted_early": result.halted_early,
            "exit_code": result.exit_code,
            "duration_s": duration,
        },
        "runs": list(records),
        "skipped": list(result.skipped),
    }
    validate(instance=payload, schema=JSON_SCHEMA_V1)
    return payload


def _outcome_to_dict(outcome: RunOutcome, index: int) -> Dict[str, Any]:
    return {
        "index": index,
        "suite": outcome.suite_id,
        "status": outcome.kind.value,
        "succeeded": outcome.succeeded,
        "exit_code": outcome.exit_code,
        "duration_s": outcome.duration_s,
        "diagnostics": list(outcome.diagnostics),
    }
