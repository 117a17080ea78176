"""Privilege hierarchy resolution.

Privilege labels form a total order built once from configuration. Every
access decision in the redemption engine goes through ``PrivilegeHierarchy``
so there is exactly one ranking table in the process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Mapping

from berkomunitas_api.core.settings import settings

UNRANKED = 0


def _normalize(label: str | None) -> str:
    if label is None:
        return ""
    return str(label).strip().lower()


@dataclass(frozen=True, slots=True)
class PrivilegeHierarchy:
    """Total order over privilege labels, lowest authority first."""

    labels: tuple[str, ...]
    _ranks: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        normalized = tuple(_normalize(label) for label in self.labels)
        if any(not label for label in normalized):
            raise ValueError("Privilege labels must be non-empty")
        if len(set(normalized)) != len(normalized):
            raise ValueError("Privilege labels must be unique")
        object.__setattr__(self, "labels", normalized)
        object.__setattr__(
            self,
            "_ranks",
            {label: position for position, label in enumerate(normalized, start=1)},
        )

    @classmethod
    def from_labels(cls, labels: Iterable[str]) -> "PrivilegeHierarchy":
        return cls(labels=tuple(labels))

    def rank(self, label: str | None) -> int:
        """Return the ordinal rank of ``label``; unknown or missing labels rank 0."""

        return self._ranks.get(_normalize(label), UNRANKED)

    def dominates(self, caller_label: str | None, required_label: str | None) -> bool:
        """True when the caller's rank is at least the required rank."""

        return self.rank(caller_label) >= self.rank(required_label)

    def is_known(self, label: str | None) -> bool:
        return _normalize(label) in self._ranks

    def label_for(self, rank: int) -> str | None:
        if UNRANKED < rank <= len(self.labels):
            return self.labels[rank - 1]
        return None

    def ranks(self) -> dict[str, int]:
        return dict(self._ranks)


@lru_cache
def get_privilege_hierarchy() -> PrivilegeHierarchy:
    """Hierarchy configured for this process via ``Settings.privilege_hierarchy``."""

    return PrivilegeHierarchy.from_labels(settings.privilege_hierarchy)


def rank(label: str | None, hierarchy: PrivilegeHierarchy | None = None) -> int:
    return (hierarchy or get_privilege_hierarchy()).rank(label)


def dominates(
    caller_label: str | None,
    required_label: str | None,
    hierarchy: PrivilegeHierarchy | None = None,
) -> bool:
    return (hierarchy or get_privilege_hierarchy()).dominates(caller_label, required_label)


__all__ = [
    "PrivilegeHierarchy",
    "UNRANKED",
    "dominates",
    "get_privilege_hierarchy",
    "rank",
]
