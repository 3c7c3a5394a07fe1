"""Saved comparison sets, key-value stores, and address-bar synchronisation."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from release_compare.models import RepoId

SETS_STORAGE_KEY = "github-release-stats-sets"
TOKEN_STORAGE_KEY = "github-token"
THEME_STORAGE_KEY = "theme"
REPOS_PARAM = "repos"


class MemoryStore:
    """Process-local string store; stands in for session storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """String store persisted as one JSON object on disk, rewritten on every change."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError:
                print(f"[warn] store {self.path} is not valid JSON; starting empty")
                return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        os.makedirs(self.path.parent, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


def parse_repo_list(raw: Sequence[str]) -> List[RepoId]:
    """Parse identifiers left to right, skipping malformed entries and duplicates."""
    repos: List[RepoId] = []
    seen = set()
    for entry in raw:
        try:
            repo = RepoId.parse(entry)
        except ValueError:
            print(f"[warn] skipping malformed repository identifier {entry!r}")
            continue
        if str(repo) in seen:
            continue
        seen.add(str(repo))
        repos.append(repo)
    return repos


class SavedSets:
    """Named repository lists stored as a single JSON record.

    Every mutation is written through immediately; repeating one is harmless.
    """

    def __init__(self, store, key: str = SETS_STORAGE_KEY) -> None:
        self.store = store
        self.key = key
        self._sets: Dict[str, List[str]] = self._read()

    def _read(self) -> Dict[str, List[str]]:
        raw = self.store.get(self.key)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            print(f"[error] failed to parse saved sets: {exc}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {
            str(name): [str(item) for item in items]
            for name, items in data.items()
            if isinstance(items, list)
        }

    def _write(self) -> None:
        self.store.set(self.key, json.dumps(self._sets))

    def names(self) -> List[str]:
        return list(self._sets)

    def get(self, name: str) -> Optional[List[str]]:
        items = self._sets.get(name)
        return list(items) if items is not None else None

    def save(self, name: str, identifiers: Sequence[str]) -> None:
        name = (name or "").strip()
        if not name:
            raise ValueError("A saved set needs a name")
        self._sets[name] = list(identifiers)
        self._write()

    def update(self, name: str, identifiers: Sequence[str]) -> bool:
        """Overwrite an existing set; returns False when ``name`` is unknown."""
        if name not in self._sets:
            return False
        self._sets[name] = list(identifiers)
        self._write()
        return True

    def delete(self, name: str) -> bool:
        existed = self._sets.pop(name, None) is not None
        self._write()
        return existed


class Location:
    """Holds the current address and mirrors the display order into ``?repos=``."""

    def __init__(self, url: str = "", param: str = REPOS_PARAM) -> None:
        self.url = url
        self.param = param
        self.history: List[str] = []

    def read_repos(self) -> List[RepoId]:
        query = parse_qs(urlsplit(self.url).query)
        values = query.get(self.param) or []
        raw = values[-1].split(",") if values else []
        return parse_repo_list(raw)

    def write_repos(self, order: Sequence[str]) -> str:
        parts = urlsplit(self.url)
        query = {
            key: value
            for key, value in parse_qs(parts.query, keep_blank_values=True).items()
            if key != self.param
        }
        if order:
            query[self.param] = [",".join(order)]
        encoded = urlencode(query, doseq=True, safe=",/")
        self.url = urlunsplit((parts.scheme, parts.netloc, parts.path, encoded, parts.fragment))
        self.history.append(self.url)
        return self.url


__all__ = [
    "SETS_STORAGE_KEY",
    "TOKEN_STORAGE_KEY",
    "THEME_STORAGE_KEY",
    "REPOS_PARAM",
    "MemoryStore",
    "JsonFileStore",
    "parse_repo_list",
    "SavedSets",
    "Location",
]
