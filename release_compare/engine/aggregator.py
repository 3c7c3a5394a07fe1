"""Pure transforms from raw per-repository records to summary rows and series."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

from release_compare.models import (
    IssueEvent,
    Point,
    ReleaseRecord,
    RepoDetails,
    RepoSummary,
    StarEvent,
)

NO_RELEASE_SENTINEL = "N/A"


def release_downloads(release: ReleaseRecord) -> int:
    return sum(asset.download_count for asset in release.assets)


def release_asset_size_kb(release: ReleaseRecord) -> float:
    return sum(asset.size for asset in release.assets) / 1024


def total_downloads(releases: Iterable[ReleaseRecord]) -> int:
    return sum(release_downloads(release) for release in releases)


def latest_version(releases: Sequence[ReleaseRecord]) -> str:
    """Tag of the most recently published release, or the sentinel when none exist."""
    if not releases:
        return NO_RELEASE_SENTINEL
    # max() keeps the first of equal timestamps, i.e. the API's newest-first order.
    newest = max(releases, key=lambda release: release.published_ms)
    return newest.tag or NO_RELEASE_SENTINEL


def build_summary(identifier: str, releases: Sequence[ReleaseRecord], details: RepoDetails) -> RepoSummary:
    return RepoSummary(
        identifier=identifier,
        star_count=details.stars,
        latest_version=latest_version(releases),
        last_update=details.pushed_at,
        size_kb=details.size_kb,
        total_downloads=total_downloads(releases),
        open_issue_count=details.open_issues,
    )


def _release_series(releases: Iterable[ReleaseRecord], value) -> List[Point]:
    points = [
        Point(x=release.published_ms, y=value(release), label=release.tag)
        for release in releases
    ]
    return sorted((p for p in points if p.y > 0), key=lambda p: p.x)


def download_series(releases: Iterable[ReleaseRecord]) -> List[Point]:
    """One point per release with downloads, ordered by publish time."""
    return _release_series(releases, release_downloads)


def asset_size_series(releases: Iterable[ReleaseRecord]) -> List[Point]:
    """One point per release with assets, y in KB, ordered by publish time."""
    return _release_series(releases, release_asset_size_kb)


def cumulative_star_series(events: Iterable[StarEvent]) -> List[Point]:
    """Running star count: y runs 1..N over events sorted by timestamp."""
    ordered = sorted(events, key=lambda event: event.timestamp)
    return [Point(x=event.timestamp, y=index) for index, event in enumerate(ordered, start=1)]


def open_issue_series(events: Iterable[IssueEvent]) -> List[Point]:
    """Step function of open issues built with a sweep line over merged deltas.

    Every issue adds +1 at creation and -1 at close. Deltas sharing a timestamp
    are merged first, so each timestamp produces exactly one point. An anchor
    at (first - 1, 0) starts the series from zero.
    """
    deltas: Dict[int, int] = defaultdict(int)
    for event in events:
        deltas[event.created_at] += 1
        if event.closed_at is not None:
            deltas[event.closed_at] -= 1

    if not deltas:
        return []

    times = sorted(deltas)
    series = [Point(x=times[0] - 1, y=0)]
    open_count = 0
    for moment in times:
        open_count += deltas[moment]
        series.append(Point(x=moment, y=open_count))
    return series


__all__ = [
    "NO_RELEASE_SENTINEL",
    "release_downloads",
    "release_asset_size_kb",
    "total_downloads",
    "latest_version",
    "build_summary",
    "download_series",
    "asset_size_series",
    "cumulative_star_series",
    "open_issue_series",
]
