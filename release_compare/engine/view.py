"""Pure derivation of the view model handed to the rendering layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from release_compare.models import Point, RepoSummary

from .aggregator import asset_size_series, download_series
from .ordering import SortState


@dataclass(frozen=True)
class ViewModel:
    rows: List[RepoSummary]
    display_order: List[str]
    sort_state: SortState
    sort_indicator: Optional[str]
    chart_metric: str
    download_series: Dict[str, List[Point]]
    asset_size_series: Dict[str, List[Point]]
    star_series: Dict[str, List[Point]]
    issue_series: Dict[str, List[Point]]
    loading: bool
    error: Optional[str]
    notice: Optional[str]
    saved_sets: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    confirm_count: int = 0
    authenticated: bool = False


def derive_view_model(state, saved_sets: Sequence[str] = ()) -> ViewModel:
    """Build the view model from engine state; every mapping follows DisplayOrder.

    Identifiers whose data was never fetched are absent; fetched but empty
    series map to an empty list.
    """
    order = list(state.display_order)
    releases = state.releases
    supplemental = state.supplemental

    def ordered(series_for) -> Dict[str, List[Point]]:
        out: Dict[str, List[Point]] = {}
        for identifier in order:
            series = series_for(identifier)
            if series is not None:
                out[identifier] = list(series)
        return out

    return ViewModel(
        rows=[state.summaries[i] for i in order if i in state.summaries],
        display_order=order,
        sort_state=state.sort_state,
        sort_indicator=state.sort_state.indicator,
        chart_metric=state.chart_metric,
        download_series=ordered(lambda i: download_series(releases[i]) if i in releases else None),
        asset_size_series=ordered(lambda i: asset_size_series(releases[i]) if i in releases else None),
        star_series=ordered(lambda i: supplemental.get("stars", i)),
        issue_series=ordered(lambda i: supplemental.get("issues", i)),
        loading=state.loading,
        error=state.error,
        notice=state.notice,
        saved_sets=list(saved_sets),
        suggestions=list(state.suggestions.names),
        confirm_count=state.suggestions.confirm_count,
        authenticated=bool(state.credential),
    )


__all__ = ["ViewModel", "derive_view_model"]
