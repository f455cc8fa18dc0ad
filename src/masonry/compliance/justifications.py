"""Index of which components claim to satisfy each standard@control pair."""

from __future__ import annotations

import threading

from ..models.opencontrol import Component


def standard_and_control_key(standard_key: str, control_key: str) -> str:
    """Composite key used everywhere a standard/control pair must be unique."""
    return f"{standard_key}@{control_key}"


class JustificationIndex:
    """standard@control -> keys of the components claiming it.

    Fed by the loader only for components the registry admitted. Entries are
    held per (standard, control) pair so callers never split a composite key.
    """

    def __init__(self) -> None:
        self._mappings: dict[tuple[str, str], set[str]] = {}
        self._lock = threading.Lock()

    def load_mappings(self, component: Component) -> None:
        with self._lock:
            for claim in component.satisfies:
                pair = (claim.standard_key, claim.control_key)
                self._mappings.setdefault(pair, set()).add(component.key)

    def get(self, standard_key: str, control_key: str) -> list[str]:
        """Sorted component keys claiming the pair, empty if none."""
        return sorted(self._mappings.get((standard_key, control_key), ()))

    def pairs(self) -> list[tuple[str, str]]:
        """Sorted (standard_key, control_key) pairs with at least one claim."""
        return sorted(self._mappings)

    def keys(self) -> list[str]:
        return sorted(standard_and_control_key(s, c) for s, c in self._mappings)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, tuple):
            return key in self._mappings
        return key in self.keys()

    def __len__(self) -> int:
        return len(self._mappings)
