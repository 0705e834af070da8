"""YAML loader and validation for plan manifests."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from jsonschema import Draft7Validator

from suiteplan.core import PlanConstructionError

from .builder import build_loaded
from .models import LoadedPlan

_COMMAND = {"type": ["string", "array", "object"]}

PLAN_SCHEMA = {
    "type": "object",
    "required": ["runs"],
    "properties": {
        "name": {"type": "string"},
        "capabilities": {"type": ["array", "object"]},
        "suites": {
            "type": "object",
            "additionalProperties": {
                "anyOf": [
                    {"type": ["string", "array"]},
                    {"type": "object", "required": ["command"], "properties": {"command": _COMMAND}},
                    {"type": "object", "anyOf": [{"required": ["binary"]}, {"required": ["executable"]}]},
                ]
            },
        },
        "runs": {
            "type": "array",
            "minItems": 1,
            "items": {
                "anyOf": [
                    {"type": "string", "minLength": 1},
                    {
                        "type": "object",
                        "required": ["suite"],
                        "properties": {
                            "suite": {"type": "string", "minLength": 1},
                            "description": {"type": "string"},
                            "env": {"type": ["object", "array"]},
                            "capabilities": {"type": ["array", "string"]},
                            "requires": {"type": "array"},
                        },
                        "additionalProperties": False,
                    },
                ]
            },
        },
    },
}
_validator = Draft7Validator(PLAN_SCHEMA)


def load_plan(path: str) -> LoadedPlan:
    """Load and validate a plan manifest."""

    plan_path = Path(path).expanduser().resolve()
    try:
        text = plan_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PlanConstructionError(f"Cannot read plan file {plan_path}: {exc}") from exc
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise PlanConstructionError(f"Plan file {plan_path} is not valid YAML: {exc}") from exc
    return load_declaration(raw, source=plan_path)


def load_declaration(raw: Any, *, source: Path | None = None) -> LoadedPlan:
    if not isinstance(raw, Mapping):
        raise PlanConstructionError("Plan file must contain a mapping at the top level")
    errors = sorted(_validator.iter_errors(raw), key=lambda e: [str(part) for part in e.path])
    if errors:
        messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
        raise PlanConstructionError(f"Plan schema validation failed: {messages}")
    return build_loaded(raw, source=source)
