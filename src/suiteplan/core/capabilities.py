"""Registry of known capability tokens."""
from __future__ import annotations

from typing import Dict, Iterable, Tuple

from .errors import PlanConstructionError

# Feature flags the sqlx driver crates understand.
BUILTIN_CAPABILITIES: Dict[str, str] = {
    "postgres": "PostgreSQL driver",
    "mysql": "MySQL/MariaDB driver",
    "macros": "compile-time checked query macros",
    "uuid": "UUID column type support",
    "chrono": "chrono date/time column type support",
}


class CapabilityRegistry:
    """Known capability tokens keyed by name."""

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}

    def register(self, name: str, description: str = "") -> None:
        token = name.strip()
        if not token:
            raise ValueError("Capability name cannot be empty")
        if token in self._entries:
            raise ValueError(f"Capability '{token}' already registered")
        self._entries[token] = description

    def ensure(self, name: str, description: str = "") -> None:
        """Register ``name`` unless it is already known."""

        if name not in self._entries:
            self.register(name, description)

    def copy(self) -> "CapabilityRegistry":
        """Independent registry with the same tokens."""

        clone = CapabilityRegistry()
        clone._entries = dict(self._entries)
        return clone

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._entries))

    def describe(self, name: str) -> str:
        return self._entries[name]

    def check(self, tokens: Iterable[str], *, context: str = "") -> None:
        unknown = sorted(token for token in tokens if token not in self._entries)
        if unknown:
            where = f" in {context}" if context else ""
            known = ", ".join(self.names())
            raise PlanConstructionError(
                f"Unknown capability {', '.join(repr(t) for t in unknown)}{where}. Known capabilities: {known}"
            )


def _builtin_registry() -> CapabilityRegistry:
    reg = CapabilityRegistry()
    for name, description in BUILTIN_CAPABILITIES.items():
        reg.register(name, description)
    return reg


capability_registry = _builtin_registry()
