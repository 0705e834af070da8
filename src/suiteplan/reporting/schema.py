"""JSON schema definition for reporter output."""
from __future__ import annotations

SCHEMA_VERSION = "1.0.0"

JSON_SCHEMA_V1 = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "suiteplan report",
    "type": "object",
    "required": ["schema_version", "generated_at", "summary", "runs", "skipped"],
    "properties": {
        "schema_version": {"type": "string"},
        "generated_at": {"type": "string", "format": "date-time"},
        "summary": {
            "type": "object",
            "required": ["plan", "planned", "ran", "passed", "failed", "halted_early", "exit_code", "duration_s"],
            "properties": {
                "plan": {"type": "string"},
                "planned": {"type": "integer"},
                "ran": {"type": "integer"},
                "passed": {"type": "integer"},
                "failed": {"type": "integer"},
                "halted_early": {"type": "boolean"},
                "exit_code": {"type": "integer"},
                "duration_s": {"type": "number"},
            },
        },
        "runs": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["index", "suite", "status", "succeeded", "exit_code", "duration_s", "diagnostics"],
                "properties": {
                    "index": {"type": "integer", "minimum": 1},
                    "suite": {"type": "string", "minLength": 1},
                    "status": {
                        "type": "string",
                        "enum": [
                            "passed",
                            "suite-failure",
                            "configuration-error",
                            "invocation-error",
                            "cancelled",
                        ],
                    },
                    "succeeded": {"type": "boolean"},
                    "exit_code": {"type": "integer"},
                    "duration_s": {"type": "number"},
                    "diagnostics": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
        "skipped": {"type": "array", "items": {"type": "string"}},
    },
}
