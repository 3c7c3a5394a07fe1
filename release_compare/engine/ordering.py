"""Sort/order state machine producing the display permutation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from release_compare.models import RepoSummary

ASC = "asc"
DESC = "desc"
MANUAL = "manual"

SORT_FIELDS: Dict[str, str] = {
    "stars": "star_count",
    "latest_version": "latest_version",
    "last_update": "last_update",
    "size": "size_kb",
    "total_downloads": "total_downloads",
    "open_issues": "open_issue_count",
}
ASCENDING_BY_DEFAULT = frozenset({"latest_version", "last_update"})

# Sort keys whose chart needs a lazily fetched supplemental series.
SUPPLEMENTAL_KIND_BY_KEY: Dict[str, str] = {
    "stars": "stars",
    "open_issues": "issues",
}
CREDENTIAL_GATED_KEYS = frozenset({"open_issues"})


@dataclass(frozen=True)
class SortState:
    """Either Sorted(key, direction) or Manual (key == "manual", no direction)."""

    key: str
    direction: Optional[str] = None

    @property
    def is_manual(self) -> bool:
        return self.key == MANUAL

    @property
    def indicator(self) -> Optional[str]:
        """Direction shown next to the active column; hidden in Manual state."""
        return None if self.is_manual else self.direction


MANUAL_STATE = SortState(MANUAL)


def default_direction(key: str) -> str:
    return ASC if key in ASCENDING_BY_DEFAULT else DESC


def next_state(current: SortState, key: str) -> SortState:
    """Clicking the active key toggles; any other key starts at its default."""
    if key not in SORT_FIELDS:
        raise ValueError(f"Unknown sort key {key!r}")
    if not current.is_manual and current.key == key:
        return SortState(key, ASC if current.direction == DESC else DESC)
    return SortState(key, default_direction(key))


def sort_order(order: Sequence[str], summaries: Mapping[str, RepoSummary], state: SortState) -> List[str]:
    """Stable sort of ``order`` by the state's column.

    Ties keep their prior relative order. Identifiers with no summary row yet
    keep their relative order after every summarized one.
    """
    if state.is_manual:
        return list(order)
    field = SORT_FIELDS[state.key]
    present = [identifier for identifier in order if identifier in summaries]
    missing = [identifier for identifier in order if identifier not in summaries]
    ranked = sorted(
        present,
        key=lambda identifier: getattr(summaries[identifier], field),
        reverse=state.direction == DESC,
    )
    return ranked + missing


def validate_permutation(permutation: Sequence[str], current: Sequence[str]) -> List[str]:
    """Return ``permutation`` as a list if it reorders ``current`` exactly."""
    candidate = list(permutation)
    if len(candidate) != len(set(candidate)):
        raise ValueError("Manual order contains duplicate repositories")
    if set(candidate) != set(current):
        raise ValueError("Manual order must contain exactly the compared repositories")
    return candidate


def reconcile_order(order: Sequence[str], repo_set: Sequence[str]) -> List[str]:
    """Drop identifiers no longer compared and append new ones in RepoSet order."""
    members = set(repo_set)
    kept = [identifier for identifier in order if identifier in members]
    seen = set(kept)
    return kept + [identifier for identifier in repo_set if identifier not in seen]


__all__ = [
    "ASC",
    "DESC",
    "MANUAL",
    "SORT_FIELDS",
    "ASCENDING_BY_DEFAULT",
    "SUPPLEMENTAL_KIND_BY_KEY",
    "CREDENTIAL_GATED_KEYS",
    "SortState",
    "MANUAL_STATE",
    "default_direction",
    "next_state",
    "sort_order",
    "validate_permutation",
    "reconcile_order",
]
