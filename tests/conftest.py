"""Shared fixtures: an in-memory GitHub stand-in for engine and collector tests."""

import asyncio
import copy

import pytest

from release_compare.errors import NotFoundError


class FakeGitHub:
    """Answers ``get_json`` from a route table keyed by API path.

    A route value may be a payload, an exception instance (raised), or a
    callable receiving the query params. ``queued`` holds per-path values
    consumed one per call before falling back to ``routes``. ``delays`` maps a
    path to seconds (or a list of seconds, one per call) before answering.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.queued = {}
        self.delays = {}
        self.calls = []
        self.tokens = []
        self.closed = 0

    async def get_json(self, path, *, params=None, headers=None):
        self.calls.append((path, dict(params or {}), dict(headers or {})))
        delay = self.delays.get(path, 0)
        if isinstance(delay, list):
            delay = delay.pop(0) if delay else 0
        queued = self.queued.get(path)
        if queued:
            value = queued.pop(0)
        elif path in self.routes:
            value = self.routes[path]
        else:
            value = NotFoundError(404, "Not Found", path)
        await asyncio.sleep(delay)
        if isinstance(value, BaseException):
            raise value
        if callable(value):
            value = value(params or {})
        return copy.deepcopy(value)

    def factory(self, token):
        self.tokens.append(token)
        return self

    def close(self):
        self.closed += 1

    def paths(self):
        return [call[0] for call in self.calls]

    def add_repo(self, full_name, *, stars=0, size=0, pushed_at="2024-01-01T00:00:00Z",
                 open_issues=0, releases=None):
        self.routes[f"/repos/{full_name}"] = {
            "full_name": full_name,
            "stargazers_count": stars,
            "size": size,
            "pushed_at": pushed_at,
            "open_issues_count": open_issues,
        }
        self.routes[f"/repos/{full_name}/releases"] = releases or []


def release(tag, published_at="2024-01-01T00:00:00Z", downloads=(), sizes=None, prerelease=False):
    sizes = sizes or [0] * len(downloads)
    return {
        "tag_name": tag,
        "html_url": f"https://github.com/x/y/releases/{tag}",
        "published_at": published_at,
        "prerelease": prerelease,
        "assets": [
            {"name": f"a{i}", "size": size, "download_count": count}
            for i, (count, size) in enumerate(zip(downloads, sizes))
        ],
    }


def paged(total, make_item):
    """Route callable serving ``total`` items across 1-based pages."""

    def handler(params):
        page = int(params.get("page", 1))
        per_page = int(params.get("per_page", 30))
        start = (page - 1) * per_page
        return [make_item(i) for i in range(start, min(start + per_page, total))]

    return handler


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def make_release():
    return release


@pytest.fixture
def make_paged():
    return paged
