"""Tests for release_compare configuration: env overrides, secrets, and CLI settings.

Run with coverage to validate configuration handling:
    pytest tests/test_config.py --maxfail=1 -v --cov=release_compare.retrieval.config --cov=release_compare.compare.config --cov-report=term-missing
"""

from importlib import reload
import json
from pathlib import Path

import pytest

import release_compare.retrieval.config as config
from release_compare import secrets
from release_compare.compare.config import parse_args, resolve_settings
from release_compare.engine.export import DEFAULT_CSV_FILENAME


def test_config_defaults_are_present():
    assert config.PER_PAGE > 0
    assert config.RELEASES_PER_PAGE > 0
    assert config.MAX_RETRIES >= 1
    assert config.USER_AGENT.startswith("github-release-compare")
    assert config.ACCEPT_STAR_JSON.endswith("star+json")


def test_env_override_for_caps(monkeypatch):
    monkeypatch.setenv("MAX_PAGES_STARGAZERS", "3")
    monkeypatch.setenv("SUGGESTION_THRESHOLD", "7")
    monkeypatch.setenv("MAX_RETRIES", "0")
    reloaded = reload(config)
    try:
        assert reloaded.MAX_PAGES_STARGAZERS == 3
        assert reloaded.SUGGESTION_THRESHOLD == 7
        assert reloaded.MAX_RETRIES == 1
    finally:
        monkeypatch.delenv("MAX_PAGES_STARGAZERS", raising=False)
        monkeypatch.delenv("SUGGESTION_THRESHOLD", raising=False)
        monkeypatch.delenv("MAX_RETRIES", raising=False)
        reload(config)


def test_token_env_beats_secrets_file(monkeypatch, tmp_path):
    secrets_file = tmp_path / "local_secrets.json"
    secrets_file.write_text(json.dumps({"github_token": "from-file"}), encoding="utf-8")
    monkeypatch.setenv("LOCAL_SECRETS_FILE", str(secrets_file))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    try:
        assert reload(config).GITHUB_TOKEN == "from-file"
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        assert reload(config).GITHUB_TOKEN == "from-env"
    finally:
        monkeypatch.delenv("LOCAL_SECRETS_FILE", raising=False)
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        reload(config)


def test_load_local_secrets_handles_missing_and_invalid(tmp_path, capsys):
    assert secrets.load_local_secrets(tmp_path / "absent.json") == {}

    broken = tmp_path / "broken.json"
    broken.write_text("{nope", encoding="utf-8")
    assert secrets.load_local_secrets(broken) == {}
    assert "[warn]" in capsys.readouterr().out

    listed = tmp_path / "list.json"
    listed.write_text("[1, 2]", encoding="utf-8")
    assert secrets.load_local_secrets(listed) == {}


def test_token_from_secrets_prefers_single_then_list():
    assert secrets.token_from_secrets({"github_token": " one "}) == "one"
    assert secrets.token_from_secrets({"github_tokens": ["", "two", "three"]}) == "two"
    assert secrets.token_from_secrets({}) == ""


def test_resolve_settings_from_cli(tmp_path):
    args = parse_args([
        "a/x", " b/y ",
        "--token", " tok ",
        "--store", str(tmp_path / "store.json"),
        "--sort", "size", "--sort", "size",
        "--order", "b/y, a/x,",
        "--stars",
        "--csv", str(tmp_path / "out.csv"),
        "--save-set", "mine",
    ])
    settings = resolve_settings(args)
    assert settings.repos == ["a/x", "b/y"]
    assert settings.token == "tok"
    assert settings.store_path == tmp_path / "store.json"
    assert settings.sort_keys == ["size", "size"]
    assert settings.manual_order == ["b/y", "a/x"]
    assert settings.stars is True and settings.issues is False
    assert settings.csv_path == Path(tmp_path / "out.csv")
    assert settings.save_set == "mine"
    assert settings.load_set is None and settings.list_sets is False


def test_csv_flag_without_value_uses_default_filename():
    settings = resolve_settings(parse_args(["a/x", "--csv"]))
    assert settings.csv_path == Path(DEFAULT_CSV_FILENAME)
    assert resolve_settings(parse_args(["a/x"])).csv_path is None


def test_parse_args_rejects_unknown_sort_key():
    with pytest.raises(SystemExit):
        parse_args(["--sort", "forks"])
