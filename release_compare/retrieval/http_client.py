"""HTTP helpers with retry/backoff logic for the GitHub REST API."""

from __future__ import annotations

import asyncio
import os
import time
from typing import Any, Dict, Optional

import requests

from release_compare.errors import GitHubAPIError, NetworkError, NotFoundError, RateLimitedError

from .config import (
    ACCEPT_JSON,
    BACKOFF_BASE_SEC,
    BASE_URL,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    USER_AGENT,
)

RATE_LIMIT_STATUSES = {403, 429}
RETRYABLE_STATUSES = {500, 502, 503, 504}


def sleep_with_jitter(base: float) -> None:
    """Pause execution with +/- 25% jitter to avoid synchronized retries."""
    jitter = base * 0.25 * (0.5 - (os.urandom(1)[0] / 255.0))
    time.sleep(max(0.0, base + jitter))


def error_message(resp: requests.Response) -> str:
    """Return GitHub's error message, or the start of the body when it isn't JSON."""
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        return str(body)[:300]
    return str(body.get("message") or body.get("error") or body.get("text") or "")


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when GitHub returns an error."""
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {error_message(resp)}")


def raise_for_github_status(resp: requests.Response, url: str) -> None:
    """Map a terminal GitHub response to the matching error type."""
    status = resp.status_code
    if 200 <= status < 300:
        return
    message = error_message(resp)
    if status in RATE_LIMIT_STATUSES:
        remaining = (resp.headers or {}).get("X-RateLimit-Remaining")
        print(f"[rate-limit] HTTP {status} for {url} (remaining={remaining})")
        raise RateLimitedError(status, message, url)
    log_http_error(resp, url)
    if status == 404:
        raise NotFoundError(status, message, url)
    raise GitHubAPIError(status, message, url)


class GitHubClient:
    """Thin wrapper around a requests session bound to one credential.

    A client never changes its credential; swapping tokens means building a
    new client so requests already in flight keep their original auth.
    """

    def __init__(self, token: Optional[str] = None, base_url: str = BASE_URL) -> None:
        self.token = (token or "").strip()
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": ACCEPT_JSON,
                "User-Agent": USER_AGENT,
            }
        )
        if self.token:
            self.session.headers["Authorization"] = f"token {self.token}"

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        path = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{path}"

    def request_with_backoff(self, method: str, path: str, **kwargs) -> requests.Response:
        """Perform a REST call, retrying transport errors and 5xx responses.

        Rate-limit responses are raised immediately as RateLimitedError and
        other 4xx responses are terminal.
        """
        url = self._url(path)
        timeout = kwargs.pop("timeout", REQUEST_TIMEOUT)
        last_exc: Optional[BaseException] = None

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                resp = self.session.request(method, url, timeout=timeout, **kwargs)
            except requests.RequestException as exc:
                last_exc = exc
                if attempt < MAX_RETRIES:
                    delay = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
                    print(f"[retry {attempt}/{MAX_RETRIES}] {exc} -> sleep {delay:.1f}s")
                    sleep_with_jitter(delay)
                continue

            if resp.status_code in RETRYABLE_STATUSES and attempt < MAX_RETRIES:
                delay = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
                print(f"[retry {attempt}/{MAX_RETRIES}] HTTP {resp.status_code} -> sleep {delay:.1f}s")
                sleep_with_jitter(delay)
                continue

            raise_for_github_status(resp, url)
            return resp

        raise NetworkError(f"Request to {url} failed after {MAX_RETRIES} attempts: {last_exc}")

    def request_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        resp = self.request_with_backoff("GET", path, params=params, headers=headers)
        return resp.json()

    async def get_json(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET ``path`` on a worker thread so the event loop keeps scheduling."""
        return await asyncio.to_thread(self.request_json, path, params, headers)

    def close(self) -> None:
        self.session.close()


__all__ = [
    "RATE_LIMIT_STATUSES",
    "RETRYABLE_STATUSES",
    "sleep_with_jitter",
    "error_message",
    "log_http_error",
    "raise_for_github_status",
    "GitHubClient",
]
