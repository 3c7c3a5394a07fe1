"""REST fetchers for releases, repository details, stargazers, issues, and users."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from release_compare.models import (
    Asset,
    IssueEvent,
    RateLimitStatus,
    ReleaseRecord,
    RepoDetails,
    RepoId,
    StarEvent,
)

from .config import (
    ACCEPT_STAR_JSON,
    MAX_PAGES_ISSUES,
    MAX_PAGES_STARGAZERS,
    MAX_PAGES_USER_REPOS,
    PER_PAGE,
    RELEASES_PER_PAGE,
)
from .pagination import collect


def parse_github_timestamp(raw: Optional[str]) -> Optional[dt.datetime]:
    """Parse GitHub's ISO-8601 timestamps into aware UTC datetimes."""
    if not raw:
        return None
    try:
        return dt.datetime.strptime(raw, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=dt.timezone.utc)
    except ValueError:
        pass
    try:
        parsed = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def timestamp_ms(raw: Optional[str]) -> Optional[int]:
    """Return epoch milliseconds for a GitHub timestamp, or None when absent/invalid."""
    parsed = parse_github_timestamp(raw)
    if parsed is None:
        return None
    return int(parsed.timestamp() * 1000)


def release_from_payload(payload: Dict[str, Any]) -> Optional[ReleaseRecord]:
    """Normalize one release; drafts (no published_at) yield None."""
    published_at = payload.get("published_at")
    published_ms = timestamp_ms(published_at)
    if published_ms is None:
        return None
    assets = tuple(
        Asset(
            size=int(asset.get("size") or 0),
            download_count=int(asset.get("download_count") or 0),
        )
        for asset in payload.get("assets") or []
    )
    return ReleaseRecord(
        tag=payload.get("tag_name") or "",
        url=payload.get("html_url") or "",
        published_at=published_at,
        published_ms=published_ms,
        assets=assets,
        prerelease=bool(payload.get("prerelease")),
    )


async def list_releases(client, repo: RepoId) -> List[ReleaseRecord]:
    """Return the most recent published releases (one bounded page, no pagination)."""
    data = await client.get_json(
        f"/repos/{repo.owner}/{repo.name}/releases",
        params={"per_page": RELEASES_PER_PAGE},
    )
    releases = []
    for entry in data or []:
        record = release_from_payload(entry)
        if record is not None:
            releases.append(record)
    return releases


async def get_repo_details(client, repo: RepoId) -> RepoDetails:
    """Fetch repository metadata used by the summary row."""
    data = await client.get_json(f"/repos/{repo.owner}/{repo.name}") or {}
    return RepoDetails(
        stars=int(data.get("stargazers_count") or 0),
        pushed_at=data.get("pushed_at") or "",
        size_kb=int(data.get("size") or 0),
        open_issues=int(data.get("open_issues_count") or 0),
    )


async def list_stargazers(client, repo: RepoId, max_pages: int = MAX_PAGES_STARGAZERS) -> List[StarEvent]:
    """Return timestamped star events, capped at ``max_pages`` pages."""
    path = f"/repos/{repo.owner}/{repo.name}/stargazers"

    async def fetch_page(page: int, per_page: int) -> List[Dict[str, Any]]:
        return await client.get_json(
            path,
            params={"per_page": per_page, "page": page},
            headers={"Accept": ACCEPT_STAR_JSON},
        )

    raw = await collect(fetch_page, PER_PAGE, max_pages)
    events = []
    for entry in raw:
        ts = timestamp_ms((entry or {}).get("starred_at"))
        if ts is not None:
            events.append(StarEvent(timestamp=ts))
    return events


async def list_issues(client, repo: RepoId, max_pages: int = MAX_PAGES_ISSUES) -> List[IssueEvent]:
    """Return open/close events for issues in every state, excluding pull requests."""
    path = f"/repos/{repo.owner}/{repo.name}/issues"

    async def fetch_page(page: int, per_page: int) -> List[Dict[str, Any]]:
        return await client.get_json(
            path,
            params={"state": "all", "per_page": per_page, "page": page},
        )

    raw = await collect(fetch_page, PER_PAGE, max_pages)
    events = []
    for entry in raw:
        if not entry or "pull_request" in entry:
            continue
        created = timestamp_ms(entry.get("created_at"))
        if created is None:
            continue
        events.append(IssueEvent(created_at=created, closed_at=timestamp_ms(entry.get("closed_at"))))
    return events


async def get_user_repo_count(client, username: str) -> int:
    """Return the number of public repositories owned by ``username``."""
    data = await client.get_json(f"/users/{username}") or {}
    return int(data.get("public_repos") or 0)


async def list_user_repos(client, username: str, max_pages: int = MAX_PAGES_USER_REPOS) -> List[str]:
    """Return every repository name owned by ``username`` (uncapped by default)."""
    path = f"/users/{username}/repos"

    async def fetch_page(page: int, per_page: int) -> List[Dict[str, Any]]:
        return await client.get_json(path, params={"per_page": per_page, "page": page})

    raw = await collect(fetch_page, PER_PAGE, max_pages)
    return [entry["name"] for entry in raw if entry and entry.get("name")]


async def get_rate_limit(client) -> RateLimitStatus:
    """Return the core REST rate-limit bucket."""
    data = await client.get_json("/rate_limit") or {}
    core = (data.get("resources") or {}).get("core") or {}
    return RateLimitStatus(
        limit=int(core.get("limit") or 0),
        remaining=int(core.get("remaining") or 0),
        reset=int(core.get("reset") or 0),
    )


__all__ = [
    "parse_github_timestamp",
    "timestamp_ms",
    "release_from_payload",
    "list_releases",
    "get_repo_details",
    "list_stargazers",
    "list_issues",
    "get_user_repo_count",
    "list_user_repos",
    "get_rate_limit",
]
