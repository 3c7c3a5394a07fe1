"""Tests for release_compare.engine.export CSV rendering.

Run with coverage:
    pytest tests/test_export.py --maxfail=1 -v --cov=release_compare.engine.export --cov-report=term-missing
"""

from release_compare.engine import export
from release_compare.models import RepoSummary


def test_escape_csv_quotes_when_needed():
    assert export.escape_csv("a,b") == '"a,b"'
    assert export.escape_csv('a"b') == '"a""b"'
    assert export.escape_csv("line\nbreak") == '"line\nbreak"'
    assert export.escape_csv("plain") == "plain"
    assert export.escape_csv(12) == "12"


def test_summary_csv_follows_display_order(tmp_path):
    summaries = {
        "a/x": RepoSummary("a/x", 5, "v1,beta", "2024-01-01T00:00:00Z", 10, 99, 1),
        "b/y": RepoSummary("b/y", 7, "N/A", "", 20, 0, 0),
    }
    content = export.summary_csv(["b/y", "missing/row", "a/x"], summaries)
    lines = content.split("\n")
    assert lines[0] == "Repository,Stars,Latest Version,Last Update,Size (KB),Total Downloads"
    assert lines[1] == "b/y,7,N/A,,20,0"
    assert lines[2] == 'a/x,5,"v1,beta",2024-01-01T00:00:00Z,10,99'
    assert len(lines) == 3

    target = export.write_csv(tmp_path / export.DEFAULT_CSV_FILENAME, content)
    assert target.read_text(encoding="utf-8") == content
