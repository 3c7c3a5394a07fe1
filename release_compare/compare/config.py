"""Configuration helpers for the command-line comparison workflow."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from release_compare.engine.export import DEFAULT_CSV_FILENAME
from release_compare.engine.ordering import SORT_FIELDS
from release_compare.retrieval.config import GITHUB_TOKEN

DEFAULT_STORE_PATH = os.getenv("RELEASE_COMPARE_STORE", "~/.release_compare/store.json")


@dataclass(frozen=True)
class CompareSettings:
    """Resolved runtime settings for one comparison run."""

    repos: List[str]
    token: str
    store_path: Path
    sort_keys: List[str]
    manual_order: List[str]
    stars: bool
    issues: bool
    csv_path: Optional[Path]
    save_set: Optional[str]
    load_set: Optional[str]
    delete_set: Optional[str]
    list_sets: bool


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the comparison entry point."""

    parser = argparse.ArgumentParser(
        description="Compare GitHub repositories' releases, downloads, stars, and issues.",
    )
    parser.add_argument("repos", nargs="*", help="repositories as owner/name")
    parser.add_argument("--token", default=GITHUB_TOKEN, help="GitHub personal access token")
    parser.add_argument("--store", default=DEFAULT_STORE_PATH, help="JSON file holding saved sets")
    parser.add_argument(
        "--sort",
        action="append",
        default=[],
        choices=sorted(SORT_FIELDS),
        help="sort column; repeat a key to toggle its direction",
    )
    parser.add_argument("--order", default="", help="comma-separated manual display order")
    parser.add_argument("--stars", action="store_true", help="load star history")
    parser.add_argument("--issues", action="store_true", help="load open-issue history")
    parser.add_argument(
        "--csv",
        nargs="?",
        const=DEFAULT_CSV_FILENAME,
        default=None,
        help=f"write the summary table as CSV (default file: {DEFAULT_CSV_FILENAME})",
    )
    parser.add_argument("--save-set", default=None)
    parser.add_argument("--load-set", default=None)
    parser.add_argument("--delete-set", default=None)
    parser.add_argument("--list-sets", action="store_true")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    return parser.parse_args(argv)


def resolve_settings(args: argparse.Namespace) -> CompareSettings:
    """Return immutable settings built from parsed arguments."""

    order = [item.strip() for item in (args.order or "").split(",") if item.strip()]
    return CompareSettings(
        repos=[repo.strip() for repo in args.repos if repo.strip()],
        token=(args.token or "").strip(),
        store_path=Path(args.store).expanduser(),
        sort_keys=list(args.sort),
        manual_order=order,
        stars=bool(args.stars),
        issues=bool(args.issues),
        csv_path=Path(args.csv) if args.csv else None,
        save_set=args.save_set,
        load_set=args.load_set,
        delete_set=args.delete_set,
        list_sets=bool(args.list_sets),
    )


__all__ = [
    "DEFAULT_STORE_PATH",
    "CompareSettings",
    "build_arg_parser",
    "parse_args",
    "resolve_settings",
]
