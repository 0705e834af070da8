"""The built-in plan: the core suite, then PostgreSQL, then MySQL."""
from __future__ import annotations

import copy
from typing import Any, Dict

from suiteplan.core import RunPlan

from .builder import build_loaded, build_plan
from .models import LoadedPlan

_DEFAULT_DECLARATION: Dict[str, Any] = {
    "name": "sqlx",
    "suites": {
        "core": "cargo test -p tokio-sqlx-core --all-features",
        "postgres": "cargo test -p tokio-sqlx --no-default-features --features '{features}'",
        "mysql": "cargo test -p tokio-sqlx --no-default-features --features '{features}'",
    },
    "runs": [
        {
            "suite": "core",
            "description": "shared core crate, all features",
        },
        {
            "suite": "postgres",
            "description": "PostgreSQL integration suite",
            "env": {"DATABASE_URL": "${POSTGRES_DATABASE_URL:-postgres://}"},
            "capabilities": ["postgres", "macros", "uuid", "chrono"],
            "requires": [{"name": "DATABASE_URL", "schemes": ["postgres", "postgresql"]}],
        },
        {
            "suite": "mysql",
            "description": "MySQL integration suite (requires the sqlx database)",
            "env": {"DATABASE_URL": "${MYSQL_DATABASE_URL:-mysql:///sqlx}"},
            "capabilities": ["mysql", "chrono"],
            "requires": [{"name": "DATABASE_URL", "schemes": ["mysql", "mariadb"]}],
        },
    ],
}


def default_declaration() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULT_DECLARATION)


def default_plan() -> RunPlan:
    return build_plan(default_declaration())


def load_default() -> LoadedPlan:
    return build_loaded(default_declaration())
