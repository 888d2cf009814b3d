"""Integration tests for the CLI."""

import json
import subprocess
import sys

import pytest
from typer.testing import CliRunner

from cc_grep.cli import app
from cc_grep.config import OUTPUT_TAG_CLOSE, OUTPUT_TAG_OPEN

runner = CliRunner()


def invoke(corpus, *args):
    return runner.invoke(app, ["--path", str(corpus), "--workers", "1", *args])


def test_cli_help():
    """Test that --help works."""
    result = subprocess.run(
        [sys.executable, "-m", "cc_grep.cli", "--help"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "search" in result.stdout
    assert "context" in result.stdout
    assert "stats" in result.stdout


def test_cli_version():
    """Test that --version works."""
    result = subprocess.run(
        [sys.executable, "-m", "cc_grep.cli", "--version"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "cc-grep" in result.stdout


def test_search_human_output(sample_corpus, corpus):
    result = invoke(corpus, "search", "deploy", "--after", "2026-02-01")
    assert result.exit_code == 0
    assert "1 results found" in result.output
    assert "aaaa1111" in result.output


def test_search_no_results(sample_corpus, corpus):
    result = invoke(corpus, "search", "kubernetes")
    assert result.exit_code == 0
    assert "No results found" in result.output


def test_search_json_output(sample_corpus, corpus):
    """Test that search with --json outputs one valid JSON object per line."""
    result = invoke(corpus, "search", "login", "revenue", "--json")
    assert result.exit_code == 0

    rows = [json.loads(line) for line in result.output.splitlines() if line.strip()]
    assert len(rows) == 4
    assert rows[0]["project"] == "beta"
    assert set(rows[0]) >= {"session_id", "line", "role", "timestamp", "matched_terms", "text"}


def test_search_count(sample_corpus, corpus):
    result = invoke(corpus, "search", "login", "revenue", "--count")
    assert result.exit_code == 0
    assert "4 total matches across 2 projects" in result.output


def test_search_summary(sample_corpus, corpus):
    result = invoke(corpus, "search", "login", "--summary")
    assert result.exit_code == 0
    assert "Sessions: 1" in result.output
    assert "3 total matches" in result.output


def test_search_markdown_is_wrapped(sample_corpus, corpus, temp_dir):
    out_file = temp_dir / "results.md"
    result = invoke(corpus, "search", "deploy", "--output", "--md", str(out_file))
    assert result.exit_code == 0
    assert OUTPUT_TAG_OPEN in result.output

    document = out_file.read_text(encoding="utf-8")
    assert document.startswith(OUTPUT_TAG_OPEN)
    assert document.rstrip().endswith(OUTPUT_TAG_CLOSE)
    assert "aaaa1111-0000-0000-0000-000000000001" in document


def test_search_invalid_regex(sample_corpus, corpus):
    result = invoke(corpus, "search", "(unclosed", "--regex")
    assert result.exit_code == 1
    assert "Invalid regex" in result.output


def test_search_invalid_date(sample_corpus, corpus):
    result = invoke(corpus, "search", "deploy", "--after", "yesterday")
    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_missing_projects_dir(temp_dir):
    result = runner.invoke(app, ["--path", str(temp_dir / "nope"), "stats"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_context(sample_corpus, corpus):
    result = invoke(corpus, "context", "aaaa1111", "2", "-C", "1")
    assert result.exit_code == 0
    assert "line 1" in result.output
    assert "» line 2" in result.output
    assert "How do I deploy the service?" in result.output


def test_context_ambiguous_prefix(sample_corpus, corpus):
    result = invoke(corpus, "context", "aaaa", "2")
    assert result.exit_code == 1
    assert "Ambiguous session ID" in result.output
    assert "aaaa1111-0000-0000-0000-000000000001" in result.output
    assert "aaaa2222-0000-0000-0000-000000000002" in result.output


def test_unknown_session(sample_corpus, corpus):
    result = invoke(corpus, "show", "zzzz")
    assert result.exit_code == 1
    assert "No session found" in result.output


def test_sessions(sample_corpus, corpus):
    result = invoke(corpus, "sessions", "--limit", "2")
    assert result.exit_code == 0
    assert "3 sessions found (showing 2)" in result.output
    assert "Summarize the quarterly numbers" in result.output


def test_show(sample_corpus, corpus):
    result = invoke(corpus, "show", "aaaa1111")
    assert result.exit_code == 0
    assert "2 messages displayed" in result.output
    assert "Run the release pipeline." in result.output
    assert "rollout" not in result.output

    result = invoke(corpus, "show", "aaaa1111", "--thinking")
    assert "[thinking] They want rollout steps." in result.output


def test_tools(sample_corpus, corpus):
    result = invoke(corpus, "tools", "aaaa2222")
    assert result.exit_code == 0
    assert "Read" in result.output
    assert "1 tool calls" in result.output


def test_stats(sample_corpus, corpus):
    result = invoke(corpus, "stats")
    assert result.exit_code == 0
    assert "Total sessions:  3" in result.output
    assert "alpha" in result.output


def test_projects(sample_corpus, corpus):
    result = invoke(corpus, "projects")
    assert result.exit_code == 0
    assert "2 projects" in result.output
    assert "2026-01-20" in result.output
    assert "2026-02-05" in result.output


@pytest.mark.parametrize("mode", ["chars", "words", "tools", "roles"])
def test_freq(sample_corpus, corpus, mode):
    result = invoke(corpus, "freq", mode)
    assert result.exit_code == 0
    assert "across 3 files" in result.output


def test_recent(sample_corpus, corpus):
    result = invoke(corpus, "recent", "-n", "1")
    assert result.exit_code == 0
    assert "Revenue grew modestly." in result.output


def test_export(sample_corpus, corpus, temp_dir):
    out_file = temp_dir / "session.md"
    result = invoke(corpus, "export", "bbbb", "--md", str(out_file))
    assert result.exit_code == 0

    document = out_file.read_text(encoding="utf-8")
    assert document.startswith(OUTPUT_TAG_OPEN)
    assert "# Session bbbb3333-0000-0000-0000-000000000003" in document
    assert "Revenue grew modestly." in document


def test_exported_markdown_is_not_searched_again(sample_corpus, corpus, make_session, records):
    """Test that a session quoting earlier cc-grep output is skipped by default."""
    exported = invoke(corpus, "export", "bbbb", "--output")
    make_session(
        "-Users-dev-Code-gamma",
        "cccc4444",
        [records.user(exported.output, "2026-02-11T09:00:00Z")],
    )

    result = invoke(corpus, "search", "quarterly", "--json")
    rows = [json.loads(line) for line in result.output.splitlines() if line.strip()]
    assert [row["project"] for row in rows] == ["beta"]

    result = invoke(corpus, "search", "quarterly", "--json", "--include-self")
    rows = [json.loads(line) for line in result.output.splitlines() if line.strip()]
    assert [row["project"] for row in rows] == ["gamma", "beta"]
