"""Domain records for repositories, releases, and activity events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class RepoId:
    """Immutable ``owner/name`` identifier; its string form is the uniqueness key."""

    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, raw: str) -> "RepoId":
        """Build an identifier from ``owner/name``; raise ValueError when malformed."""
        text = (raw or "").strip()
        owner, sep, name = text.partition("/")
        owner, name = owner.strip(), name.strip()
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Expected 'owner/name', got {raw!r}")
        return cls(owner=owner, name=name)


@dataclass(frozen=True)
class Asset:
    size: int
    download_count: int


@dataclass(frozen=True)
class ReleaseRecord:
    """A published release; drafts never make it into this type."""

    tag: str
    url: str
    published_at: str
    published_ms: int
    assets: Tuple[Asset, ...] = ()
    prerelease: bool = False


@dataclass(frozen=True)
class RepoDetails:
    stars: int
    pushed_at: str
    size_kb: int
    open_issues: int


@dataclass(frozen=True)
class StarEvent:
    timestamp: int


@dataclass(frozen=True)
class IssueEvent:
    created_at: int
    closed_at: Optional[int] = None


@dataclass(frozen=True)
class RepoSummary:
    """Per-repository summary row, rebuilt wholesale on every primary fetch."""

    identifier: str
    star_count: int
    latest_version: str
    last_update: str
    size_kb: int
    total_downloads: int
    open_issue_count: int


@dataclass(frozen=True)
class Point:
    x: int
    y: float
    label: Optional[str] = None


@dataclass(frozen=True)
class RateLimitStatus:
    limit: int
    remaining: int
    reset: int


@dataclass
class SuggestionResult:
    """Repository-name suggestions for a user, or a count awaiting confirmation."""

    names: List[str] = field(default_factory=list)
    confirm_count: int = 0


__all__ = [
    "RepoId",
    "Asset",
    "ReleaseRecord",
    "RepoDetails",
    "StarEvent",
    "IssueEvent",
    "RepoSummary",
    "Point",
    "RateLimitStatus",
    "SuggestionResult",
]
