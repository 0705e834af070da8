"""Data models for plan declarations."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple

from suiteplan.core import CapabilityRegistry, RunPlan


@dataclass(frozen=True)
class LoadedPlan:
    """A built plan together with the suite commands declared next to it."""

    plan: RunPlan
    suites: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    capabilities: Mapping[str, str] = field(default_factory=dict)
    source: Optional[Path] = None

    def register_capabilities(self, registry: CapabilityRegistry) -> None:
        for name, description in self.capabilities.items():
            registry.ensure(name, description)

    def commands(self, defaults: Mapping[str, Sequence[str]]) -> Dict[str, Tuple[str, ...]]:
        merged = {key: tuple(argv) for key, argv in defaults.items()}
        merged.update(self.suites)
        return merged


@dataclass(frozen=True)
class PlanOptions:
    only: Sequence[str] = field(default_factory=tuple)
