"""Tests for release_compare.compare.runner ensuring the CLI drives the engine end to end.

Run with:
    pytest tests/test_runner.py --maxfail=1 -v --cov=release_compare.compare.runner --cov-report=term-missing
"""

from functools import partial
import json
from unittest.mock import patch

import pytest

from release_compare.compare import runner
from release_compare.engine.orchestrator import ComparisonEngine
from release_compare.errors import NetworkError


@pytest.fixture
def cli(monkeypatch, fake_github, make_release, tmp_path):
    fake_github.add_repo("a/x", stars=5, size=300, releases=[make_release("v2", downloads=[3, 4])])
    fake_github.add_repo("b/y", stars=9, size=100)
    for name in ("a/x", "b/y"):
        fake_github.routes[f"/repos/{name}/stargazers"] = [{"starred_at": "2024-01-01T00:00:00Z"}]
    monkeypatch.setattr(runner, "ComparisonEngine", partial(ComparisonEngine, client_factory=fake_github.factory))
    store = tmp_path / "store.json"

    def invoke(*argv):
        return runner.main([*argv, "--store", str(store), "--token", ""])

    invoke.store = store
    invoke.github = fake_github
    return invoke


def test_main_prints_sorted_table_and_writes_csv(cli, tmp_path, capsys):
    csv_path = tmp_path / "out.csv"
    assert cli("b/y", "a/x", "--sort", "size", "--stars", "--csv", str(csv_path)) == 0

    out = capsys.readouterr().out
    assert "Size (KB) (desc)" in out
    assert out.index("a/x ") < out.index("b/y ")
    assert "stars a/x: 1 points" in out
    assert "Share: ?repos=a/x,b/y" in out
    assert cli.github.closed == 1
    lines = csv_path.read_text(encoding="utf-8").split("\n")
    assert lines[1].startswith("a/x,5,v2,")
    assert lines[1].endswith(",300,7")


def test_manual_order_and_saved_sets_round_trip(cli, capsys):
    assert cli("a/x", "b/y", "--order", "b/y,a/x", "--save-set", "pair") == 0
    assert json.loads(json.loads(cli.store.read_text())["github-release-stats-sets"]) == {
        "pair": ["a/x", "b/y"]
    }
    capsys.readouterr()

    assert cli("--load-set", "pair", "--list-sets") == 0
    out = capsys.readouterr().out
    assert "Saved sets: pair" in out
    assert "Share: ?repos=a/x,b/y" in out

    assert cli("--delete-set", "pair") == 0
    assert "Deleted set 'pair'." in capsys.readouterr().out


def test_missing_saved_set_fails(cli, capsys):
    assert cli("--load-set", "nothing") == 1
    assert "no saved set" in capsys.readouterr().out


def test_no_repositories_fails(cli, capsys):
    assert cli() == 1
    assert "No repositories specified" in capsys.readouterr().out


def test_fetch_failure_reports_error(cli, capsys):
    assert cli("a/x", "ghost/missing") == 1
    assert "An error occurred while fetching repository data" in capsys.readouterr().out


def test_invalid_manual_order_is_reported(cli, capsys):
    assert cli("a/x", "b/y", "--order", "a/x") == 1
    assert "[error]" in capsys.readouterr().out


def test_gated_sort_prints_notice(cli, capsys):
    assert cli("a/x", "--sort", "open_issues") == 0
    assert "needs a GitHub token" in capsys.readouterr().out


@patch("release_compare.compare.runner.run", side_effect=NetworkError("offline"))
def test_main_reports_top_level_errors(mock_run, capsys):
    assert runner.main(["a/x", "--token", ""]) == 1
    assert "[error] offline" in capsys.readouterr().out
    assert mock_run.called


def test_load_set_with_positional_repos_is_rejected(cli, capsys):
    assert cli("a/x", "--load-set", "pair") == 1
    assert "cannot be combined" in capsys.readouterr().out
    assert cli.github.calls == []


def test_zero_star_history_is_reported(cli, capsys):
    cli.github.routes["/repos/b/y/stargazers"] = []
    assert cli("a/x", "b/y", "--stars") == 0
    assert "stars b/y: no data" in capsys.readouterr().out
