"""Plan construction: built-in plan, manifests, and run selection."""

from .builder import build_loaded, build_plan, select_runs
from .builtin import default_declaration, default_plan, load_default
from .loader import load_declaration, load_plan
from .models import LoadedPlan, PlanOptions

__all__ = [
    "LoadedPlan",
    "PlanOptions",
    "build_loaded",
    "build_plan",
    "default_declaration",
    "default_plan",
    "load_declaration",
    "load_default",
    "load_plan",
    "select_runs",
]
