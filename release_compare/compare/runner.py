"""Entry point wiring configuration, the comparison engine, and console output."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from release_compare.engine.export import write_csv
from release_compare.engine.orchestrator import ISSUES, STARS, ComparisonEngine
from release_compare.engine.ordering import SORT_FIELDS
from release_compare.engine.persistence import JsonFileStore, Location, MemoryStore
from release_compare.engine.view import ViewModel
from release_compare.errors import CompareError

from .config import CompareSettings, parse_args, resolve_settings

TABLE_COLUMNS = [
    ("Repository", "identifier"),
    ("Stars", "star_count"),
    ("Latest Version", "latest_version"),
    ("Last Update", "last_update"),
    ("Size (KB)", "size_kb"),
    ("Total Downloads", "total_downloads"),
    ("Open Issues", "open_issue_count"),
]


def render_table(view: ViewModel) -> str:
    """Format the summary rows as a fixed-width text table."""
    header = [title for title, _ in TABLE_COLUMNS]
    if view.sort_indicator:
        for index, (title, attr) in enumerate(TABLE_COLUMNS):
            if SORT_FIELDS.get(view.sort_state.key) == attr:
                header[index] = f"{title} ({view.sort_indicator})"
    body = [[str(getattr(row, attr)) for _, attr in TABLE_COLUMNS] for row in view.rows]
    widths = [max(len(cell) for cell in column) for column in zip(header, *body)]
    lines = ["  ".join(cell.ljust(width) for cell, width in zip(line, widths)) for line in [header, *body]]
    lines.insert(1, "  ".join("-" * width for width in widths))
    return "\n".join(lines)


def _series_summary(label: str, series) -> List[str]:
    lines = []
    for identifier, points in series.items():
        if not points:
            lines.append(f"  {label} {identifier}: no data")
            continue
        lines.append(f"  {label} {identifier}: {len(points)} points, latest y={points[-1].y:g}")
    return lines


def build_engine(settings: CompareSettings) -> ComparisonEngine:
    location = Location()
    location.write_repos(settings.repos)
    return ComparisonEngine(
        store=JsonFileStore(settings.store_path),
        session_store=MemoryStore(),
        location=location,
        token=settings.token,
    )


async def run(settings: CompareSettings) -> int:
    """Drive one comparison: load, augment, order, persist, and report."""
    if settings.load_set and settings.repos:
        print("[error] --load-set cannot be combined with owner/name arguments")
        return 1
    engine = build_engine(settings)
    try:
        return await _drive(engine, settings)
    finally:
        engine.close()


async def _drive(engine: ComparisonEngine, settings: CompareSettings) -> int:
    if settings.delete_set:
        engine.delete_set(settings.delete_set)
        print(f"Deleted set '{settings.delete_set}'.")
    if settings.list_sets:
        names = engine.saved_sets.names()
        print("Saved sets: " + (", ".join(names) if names else "(none)"))

    if settings.load_set:
        if not await engine.load_set(settings.load_set):
            print(f"[error] no saved set named '{settings.load_set}'")
            return 1
    else:
        await engine.start()

    if not engine.state.repos:
        if settings.list_sets or settings.delete_set:
            return 0
        print("No repositories specified. Provide owner/name arguments or --load-set.")
        return 1

    if engine.state.error:
        print(f"[error] {engine.state.error}")
        return 1

    if settings.stars:
        await engine.fetch_supplemental(STARS)
    if settings.issues:
        await engine.fetch_supplemental(ISSUES)
    for key in settings.sort_keys:
        await engine.request_sort(key)
    if settings.manual_order:
        engine.set_manual_order(settings.manual_order)
    if settings.save_set:
        engine.save_set(settings.save_set)
        print(f"Saved set '{settings.save_set}'.")

    view = engine.view_model()
    print(render_table(view))
    for line in _series_summary("stars", view.star_series) + _series_summary("issues", view.issue_series):
        print(line)
    if view.notice:
        print(f"[warn] {view.notice}")
    if settings.csv_path:
        target = write_csv(settings.csv_path, engine.export_csv())
        print(f"Wrote {target}")
    print(f"Share: {engine.location.url}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for comparing repositories."""

    settings = resolve_settings(parse_args(argv))
    try:
        return asyncio.run(run(settings))
    except (CompareError, ValueError) as exc:
        print(f"[error] {exc}")
        return 1


__all__ = ["render_table", "build_engine", "run", "main"]
