"""Error taxonomy shared by the retrieval layer and the comparison engine."""

from __future__ import annotations

from typing import Dict, Optional

RATE_LIMIT_MESSAGE = (
    "You've hit the GitHub API rate limit. Please wait a while before trying again."
)
BATCH_FAILURE_MESSAGE = (
    "An error occurred while fetching repository data. One or more repositories "
    "might not exist or the API rate limit was exceeded."
)
USER_CHECK_FAILURE_MESSAGE = "A network error occurred while checking the user."


class CompareError(Exception):
    """Base class for every error raised by release_compare."""


class GitHubAPIError(CompareError):
    """Raised when GitHub answers with a non-success status."""

    def __init__(self, status: int, message: str = "", url: str = "") -> None:
        self.status = status
        self.message = message
        self.url = url
        super().__init__(f"HTTP {status} for {url}: {message}" if url else f"HTTP {status}: {message}")


class RateLimitedError(GitHubAPIError):
    """Raised on 403/429 responses; never retried automatically."""


class NotFoundError(GitHubAPIError):
    """Raised on 404 responses."""


class NetworkError(CompareError):
    """Raised when the transport fails after exhausting retries."""


class BatchFetchError(CompareError):
    """Aggregate failure for a primary fetch batch; the batch is discarded."""

    def __init__(self, failures: Dict[str, BaseException]) -> None:
        self.failures = dict(failures)
        super().__init__(self.user_message)

    @property
    def rate_limited(self) -> bool:
        return any(isinstance(exc, RateLimitedError) for exc in self.failures.values())

    @property
    def user_message(self) -> str:
        return RATE_LIMIT_MESSAGE if self.rate_limited else BATCH_FAILURE_MESSAGE


class SupplementalFetchError(CompareError):
    """Non-fatal failure while loading star or issue history."""

    def __init__(self, kind: str, failures: Dict[str, BaseException]) -> None:
        self.kind = kind
        self.failures = dict(failures)
        label = "star" if kind == "stars" else "issue"
        super().__init__(f"Failed to fetch {label} history data.")


class PolicyGatedError(CompareError):
    """A sort request needing a credential was refused locally."""

    def __init__(self, key: str, reason: Optional[str] = None) -> None:
        self.key = key
        super().__init__(
            reason
            or f"Sorting by '{key}' needs a GitHub token. Add one under API "
            "Authentication to raise the rate limit before loading this data."
        )


def user_message(exc: BaseException) -> str:
    """Translate any failure into the message shown to the user."""
    if isinstance(exc, RateLimitedError):
        return RATE_LIMIT_MESSAGE
    if isinstance(exc, BatchFetchError):
        return exc.user_message
    if isinstance(exc, CompareError):
        return str(exc)
    return BATCH_FAILURE_MESSAGE


__all__ = [
    "RATE_LIMIT_MESSAGE",
    "BATCH_FAILURE_MESSAGE",
    "USER_CHECK_FAILURE_MESSAGE",
    "CompareError",
    "GitHubAPIError",
    "RateLimitedError",
    "NotFoundError",
    "NetworkError",
    "BatchFetchError",
    "SupplementalFetchError",
    "PolicyGatedError",
    "user_message",
]
