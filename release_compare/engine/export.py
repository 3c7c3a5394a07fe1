"""CSV export of the summary table in display order."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

from release_compare.models import RepoSummary

CSV_HEADERS = [
    "Repository",
    "Stars",
    "Latest Version",
    "Last Update",
    "Size (KB)",
    "Total Downloads",
]
DEFAULT_CSV_FILENAME = "github-release-stats.csv"


def escape_csv(value) -> str:
    """Quote fields containing a comma, quote, or newline; double embedded quotes."""
    text = str(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def summary_csv(display_order: Sequence[str], summaries: Mapping[str, RepoSummary]) -> str:
    rows = [",".join(CSV_HEADERS)]
    for identifier in display_order:
        summary = summaries.get(identifier)
        if summary is None:
            continue
        rows.append(
            ",".join(
                escape_csv(value)
                for value in (
                    summary.identifier,
                    summary.star_count,
                    summary.latest_version,
                    summary.last_update,
                    summary.size_kb,
                    summary.total_downloads,
                )
            )
        )
    return "\n".join(rows)


def write_csv(path: str | Path, content: str) -> Path:
    target = Path(path)
    target.write_text(content, encoding="utf-8")
    return target


__all__ = ["CSV_HEADERS", "DEFAULT_CSV_FILENAME", "escape_csv", "summary_csv", "write_csv"]
