"""Comparison engine: owns the repo set and drives fetching, sorting, and persistence."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union

from release_compare.errors import (
    RATE_LIMIT_MESSAGE,
    USER_CHECK_FAILURE_MESSAGE,
    BatchFetchError,
    CompareError,
    NotFoundError,
    PolicyGatedError,
    RateLimitedError,
    SupplementalFetchError,
    user_message,
)
from release_compare.models import (
    Point,
    RateLimitStatus,
    ReleaseRecord,
    RepoId,
    RepoSummary,
    SuggestionResult,
)
from release_compare.retrieval.collectors import (
    get_rate_limit,
    get_repo_details,
    get_user_repo_count,
    list_issues,
    list_releases,
    list_stargazers,
    list_user_repos,
)
from release_compare.retrieval.config import SUGGESTION_THRESHOLD
from release_compare.retrieval.http_client import GitHubClient

from .aggregator import build_summary, cumulative_star_series, open_issue_series
from .export import summary_csv
from .ordering import (
    CREDENTIAL_GATED_KEYS,
    MANUAL,
    MANUAL_STATE,
    SORT_FIELDS,
    SUPPLEMENTAL_KIND_BY_KEY,
    SortState,
    next_state,
    reconcile_order,
    sort_order,
    validate_permutation,
)
from .persistence import TOKEN_STORAGE_KEY, Location, MemoryStore, SavedSets, parse_repo_list
from .view import ViewModel, derive_view_model

STARS = "stars"
ISSUES = "issues"
SUPPLEMENTAL_KINDS = (STARS, ISSUES)

RepoLike = Union[RepoId, str]


class SupplementalCache:
    """Lazily filled star/issue series per identifier.

    A missing entry means "not requested yet"; failed fetches leave no entry.
    """

    def __init__(self) -> None:
        self._series: Dict[str, Dict[str, List[Point]]] = {kind: {} for kind in SUPPLEMENTAL_KINDS}

    def has(self, kind: str, identifier: str) -> bool:
        return identifier in self._series[kind]

    def get(self, kind: str, identifier: str) -> Optional[List[Point]]:
        return self._series[kind].get(identifier)

    def put(self, kind: str, identifier: str, series: List[Point]) -> None:
        self._series[kind][identifier] = series

    def missing(self, kind: str, identifiers: Iterable[str]) -> List[str]:
        return [identifier for identifier in identifiers if identifier not in self._series[kind]]

    def discard(self, identifier: str) -> None:
        for series in self._series.values():
            series.pop(identifier, None)

    def clear(self) -> None:
        for series in self._series.values():
            series.clear()


@dataclass
class EngineState:
    """Everything the view model is derived from."""

    repos: List[RepoId] = field(default_factory=list)
    display_order: List[str] = field(default_factory=list)
    summaries: Dict[str, RepoSummary] = field(default_factory=dict)
    releases: Dict[str, List[ReleaseRecord]] = field(default_factory=dict)
    sort_state: SortState = MANUAL_STATE
    chart_metric: str = "total_downloads"
    supplemental: SupplementalCache = field(default_factory=SupplementalCache)
    suggestions: SuggestionResult = field(default_factory=SuggestionResult)
    credential: str = ""
    loading_depth: int = 0
    error: Optional[str] = None
    notice: Optional[str] = None

    @property
    def loading(self) -> bool:
        return self.loading_depth > 0

    @property
    def identifiers(self) -> List[str]:
        return [str(repo) for repo in self.repos]


def _as_repo(repo: RepoLike) -> RepoId:
    return repo if isinstance(repo, RepoId) else RepoId.parse(repo)


class ComparisonEngine:
    """Single-loop engine; state only changes between ``await`` points.

    ``store`` keeps saved sets durably, ``session_store`` keeps the credential
    for the session, and ``location`` mirrors the display order.
    """

    def __init__(
        self,
        client_factory=GitHubClient,
        store=None,
        session_store=None,
        location: Optional[Location] = None,
        token: Optional[str] = None,
    ) -> None:
        self.store = store if store is not None else MemoryStore()
        self.session_store = session_store if session_store is not None else MemoryStore()
        self.location = location if location is not None else Location()
        self.saved_sets = SavedSets(self.store)
        self.state = EngineState()
        self._client_factory = client_factory
        if token is None:
            token = self.session_store.get(TOKEN_STORAGE_KEY) or ""
        self.state.credential = token.strip()
        self.client = client_factory(self.state.credential)
        self._pending: Dict[str, Set[str]] = {kind: set() for kind in SUPPLEMENTAL_KINDS}
        self._generation = 0
        self._retired: List[Any] = []

    # -- helpers -----------------------------------------------------------

    def _is_member(self, identifier: str) -> bool:
        return any(str(repo) == identifier for repo in self.state.repos)

    def _sync_location(self) -> None:
        self.location.write_repos(self.state.display_order)

    def _forget(self, identifier: str) -> None:
        self.state.summaries.pop(identifier, None)
        self.state.releases.pop(identifier, None)
        self.state.supplemental.discard(identifier)

    def _release_retired(self) -> None:
        """Close superseded clients once nothing is in flight on them."""
        if self.state.loading:
            return
        retired, self._retired = self._retired, []
        for client in retired:
            if client is not self.client:
                client.close()

    def close(self) -> None:
        """Close the current client and any superseded ones."""
        retired, self._retired = self._retired, []
        for client in [*retired, self.client]:
            client.close()

    # -- lifecycle ---------------------------------------------------------

    async def start(self) -> bool:
        """Restore the repo set from the address and fetch it."""
        repos = self.location.read_repos()
        self.state.repos = repos
        self.state.display_order = [str(repo) for repo in repos]
        self.state.sort_state = MANUAL_STATE
        if not repos:
            return True
        return await self.refetch_all()

    def view_model(self) -> ViewModel:
        return derive_view_model(self.state, self.saved_sets.names())

    # -- repo set mutations -----------------------------------------------

    async def add_repo(self, repo: RepoLike) -> bool:
        """Append ``repo`` unless already compared, then refetch everything."""
        repo = _as_repo(repo)
        identifier = str(repo)
        if self._is_member(identifier):
            return False
        self.state.repos.append(repo)
        self.state.display_order.append(identifier)
        self._sync_location()
        await self.refetch_all()
        return True

    def remove_repo(self, repo: RepoLike) -> bool:
        identifier = str(_as_repo(repo))
        if not self._is_member(identifier):
            return False
        self.state.repos = [r for r in self.state.repos if str(r) != identifier]
        self.state.display_order = [i for i in self.state.display_order if i != identifier]
        self._forget(identifier)
        self._sync_location()
        return True

    def clear_all(self) -> None:
        self.state.repos = []
        self.state.display_order = []
        self.state.summaries = {}
        self.state.releases = {}
        self.state.supplemental.clear()
        self.state.sort_state = MANUAL_STATE
        self.state.error = None
        self.state.notice = None
        self._sync_location()

    # -- primary fetch -----------------------------------------------------

    async def _fetch_primary(self, client, repo: RepoId):
        releases, details = await asyncio.gather(
            list_releases(client, repo),
            get_repo_details(client, repo),
            return_exceptions=True,
        )
        for outcome in (releases, details):
            if isinstance(outcome, BaseException):
                raise outcome
        return releases, details

    async def refetch_all(self) -> bool:
        """Fetch releases and details for every repo and commit them as one snapshot.

        Any failure discards the whole batch and records one aggregate error.
        A batch overtaken by a newer one neither commits nor reports; it
        returns False.
        """
        batch = list(self.state.repos)
        if not batch:
            return True
        client = self.client
        self._generation += 1
        generation = self._generation
        self.state.loading_depth += 1
        self.state.error = None
        try:
            results = await asyncio.gather(
                *(self._fetch_primary(client, repo) for repo in batch),
                return_exceptions=True,
            )
            failures = {
                str(repo): outcome
                for repo, outcome in zip(batch, results)
                if isinstance(outcome, BaseException)
            }
            if generation != self._generation:
                print(f"[warn] discarding superseded fetch of {len(batch)} repositories")
                return False
            if failures:
                error = BatchFetchError(failures)
                for identifier, exc in failures.items():
                    print(f"[error] {identifier}: {exc}")
                self.state.error = user_message(error)
                return False
            self._commit(batch, results)
            return True
        finally:
            self.state.loading_depth -= 1
            self._release_retired()

    def _commit(self, batch: Sequence[RepoId], results) -> None:
        current = set(self.state.identifiers)
        summaries: Dict[str, RepoSummary] = {}
        releases: Dict[str, List[ReleaseRecord]] = {}
        for repo, (repo_releases, details) in zip(batch, results):
            identifier = str(repo)
            if identifier not in current:
                continue
            releases[identifier] = repo_releases
            summaries[identifier] = build_summary(identifier, repo_releases, details)
        self.state.summaries = summaries
        self.state.releases = releases
        order = reconcile_order(self.state.display_order, self.state.identifiers)
        self.state.display_order = sort_order(order, summaries, self.state.sort_state)
        self._sync_location()

    async def set_credential(self, token: Optional[str]) -> bool:
        """Swap the auth context for later requests; in-flight ones keep the old one."""
        token = (token or "").strip()
        self.state.credential = token
        self._retired.append(self.client)
        self.client = self._client_factory(token)
        if token:
            self.session_store.set(TOKEN_STORAGE_KEY, token)
        else:
            self.session_store.remove(TOKEN_STORAGE_KEY)
        if self.state.repos:
            return await self.refetch_all()
        self._release_retired()
        return True

    # -- supplemental fetch ------------------------------------------------

    async def fetch_supplemental(self, kind: str, identifiers: Optional[Iterable[str]] = None) -> Dict[str, BaseException]:
        """Load star or issue series for identifiers not cached or in flight.

        Each series is merged as soon as its own fetch finishes. Returns the
        failures keyed by identifier (empty on success).
        """
        if kind not in SUPPLEMENTAL_KINDS:
            raise ValueError(f"Unknown supplemental kind {kind!r}")
        wanted = self.state.identifiers if identifiers is None else list(dict.fromkeys(identifiers))
        pending = self._pending[kind]
        targets = [
            identifier
            for identifier in self.state.supplemental.missing(kind, wanted)
            if identifier not in pending and self._is_member(identifier)
        ]
        if not targets:
            return {}

        client = self.client
        fetcher = list_stargazers if kind == STARS else list_issues
        transform = cumulative_star_series if kind == STARS else open_issue_series

        async def fetch_one(identifier: str) -> None:
            try:
                events = await fetcher(client, RepoId.parse(identifier))
            finally:
                pending.discard(identifier)
            if self._is_member(identifier):
                self.state.supplemental.put(kind, identifier, transform(events))

        pending.update(targets)
        self.state.loading_depth += 1
        try:
            results = await asyncio.gather(*(fetch_one(i) for i in targets), return_exceptions=True)
        finally:
            self.state.loading_depth -= 1
            self._release_retired()

        failures = {
            identifier: outcome
            for identifier, outcome in zip(targets, results)
            if isinstance(outcome, BaseException)
        }
        if failures:
            error = SupplementalFetchError(kind, failures)
            for identifier, exc in failures.items():
                print(f"[warn] {kind} history for {identifier} failed: {exc}")
            self.state.notice = str(error)
        return failures

    # -- ordering ----------------------------------------------------------

    async def request_sort(self, key: str) -> bool:
        """Sort by ``key``; returns False when refused by credential policy."""
        if key == MANUAL:
            return False
        if key not in SORT_FIELDS:
            raise ValueError(f"Unknown sort key {key!r}")
        self.state.notice = None

        kind = SUPPLEMENTAL_KIND_BY_KEY.get(key)
        if kind is not None:
            if key in CREDENTIAL_GATED_KEYS and not self.state.credential:
                refusal = PolicyGatedError(key)
                print(f"[warn] {refusal}")
                self.state.notice = str(refusal)
                return False
            missing = self.state.supplemental.missing(kind, self.state.identifiers)
            if missing:
                await self.fetch_supplemental(kind, missing)

        self.state.sort_state = next_state(self.state.sort_state, key)
        self.state.chart_metric = key
        self.state.display_order = sort_order(
            self.state.display_order, self.state.summaries, self.state.sort_state
        )
        self._sync_location()
        return True

    def set_manual_order(self, permutation: Sequence[str]) -> None:
        self.state.display_order = validate_permutation(permutation, self.state.display_order)
        self.state.sort_state = MANUAL_STATE
        self._sync_location()

    # -- saved sets --------------------------------------------------------

    def save_set(self, name: str) -> None:
        if not self.state.repos:
            raise ValueError("Add at least one repository to save a set.")
        self.saved_sets.save(name, self.state.identifiers)

    def update_set(self, name: str) -> bool:
        return self.saved_sets.update(name, self.state.identifiers)

    def delete_set(self, name: str) -> bool:
        return self.saved_sets.delete(name)

    async def load_set(self, name: str) -> bool:
        identifiers = self.saved_sets.get(name)
        if identifiers is None:
            return False
        repos = parse_repo_list(identifiers)
        keep = [str(repo) for repo in repos]
        for identifier in self.state.identifiers:
            if identifier not in keep:
                self._forget(identifier)
        self.state.repos = repos
        self.state.display_order = list(keep)
        self.state.sort_state = MANUAL_STATE
        self._sync_location()
        await self.refetch_all()
        return True

    # -- utilities ---------------------------------------------------------

    async def suggest_repositories(self, username: str, force: bool = False) -> SuggestionResult:
        """Suggest repository names for ``username``.

        Users with more than SUGGESTION_THRESHOLD repositories get a
        confirmation count instead, unless ``force`` is set.
        """
        username = (username or "").strip()
        result = SuggestionResult()
        self.state.suggestions = result
        if not username:
            return result
        client = self.client
        try:
            if not force:
                count = await get_user_repo_count(client, username)
                if count > SUGGESTION_THRESHOLD:
                    result = SuggestionResult(confirm_count=count)
                elif count > 0:
                    result = SuggestionResult(names=await list_user_repos(client, username))
            else:
                result = SuggestionResult(names=await list_user_repos(client, username))
        except NotFoundError:
            result = SuggestionResult()
        except RateLimitedError:
            self.state.error = RATE_LIMIT_MESSAGE
        except CompareError as exc:
            print(f"[error] checking user {username}: {exc}")
            self.state.error = USER_CHECK_FAILURE_MESSAGE
        self.state.suggestions = result
        return result

    async def rate_limit(self) -> RateLimitStatus:
        return await get_rate_limit(self.client)

    def export_csv(self) -> str:
        return summary_csv(self.state.display_order, self.state.summaries)


__all__ = [
    "STARS",
    "ISSUES",
    "SUPPLEMENTAL_KINDS",
    "SupplementalCache",
    "EngineState",
    "ComparisonEngine",
]
