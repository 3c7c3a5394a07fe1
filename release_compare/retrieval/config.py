"""Central configuration constants for talking to the GitHub REST API."""

from __future__ import annotations

import os

from release_compare.secrets import load_local_secrets, token_from_secrets

_SECRETS = load_local_secrets()
GITHUB_TOKEN: str = os.getenv("GITHUB_TOKEN", "") or token_from_secrets(_SECRETS)
USER_AGENT = "github-release-compare/1.0"
BASE_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")
ACCEPT_JSON = "application/vnd.github.v3+json"
ACCEPT_STAR_JSON = "application/vnd.github.star+json"
PER_PAGE = int(os.getenv("PER_PAGE", "100"))
RELEASES_PER_PAGE = int(os.getenv("RELEASES_PER_PAGE", "30"))
MAX_PAGES_STARGAZERS = int(os.getenv("MAX_PAGES_STARGAZERS", "10"))  # 0 = no cap
MAX_PAGES_ISSUES = int(os.getenv("MAX_PAGES_ISSUES", "10"))  # 0 = no cap
MAX_PAGES_USER_REPOS = int(os.getenv("MAX_PAGES_USER_REPOS", "0"))  # 0 = no cap
SUGGESTION_THRESHOLD = int(os.getenv("SUGGESTION_THRESHOLD", "50"))
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))
MAX_RETRIES = max(1, int(os.getenv("MAX_RETRIES", "3")))
BACKOFF_BASE_SEC = float(os.getenv("BACKOFF_BASE_SEC", "1"))

__all__ = [
    "GITHUB_TOKEN",
    "USER_AGENT",
    "BASE_URL",
    "ACCEPT_JSON",
    "ACCEPT_STAR_JSON",
    "PER_PAGE",
    "RELEASES_PER_PAGE",
    "MAX_PAGES_STARGAZERS",
    "MAX_PAGES_ISSUES",
    "MAX_PAGES_USER_REPOS",
    "SUGGESTION_THRESHOLD",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "BACKOFF_BASE_SEC",
]
