"""Pytest fixtures for cc-grep tests."""

import json
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def corpus(temp_dir):
    """An empty corpus root (the equivalent of ~/.claude/projects)."""
    root = temp_dir / "projects"
    root.mkdir()
    return root


@pytest.fixture
def make_session(corpus):
    """Factory writing a session file: make_session(project, session_id, records).

    Records are dicts (dumped as JSON) or raw strings (written verbatim).
    """

    def _make(project: str, session_id: str, records: list) -> Path:
        project_dir = corpus / project
        project_dir.mkdir(parents=True, exist_ok=True)
        path = project_dir / f"{session_id}.jsonl"
        with open(path, "w", encoding="utf-8") as f:
            for record in records:
                line = record if isinstance(record, str) else json.dumps(record)
                f.write(line + "\n")
        return path

    return _make


def user(text, timestamp="2026-02-05T10:00:00Z", **extra):
    return {
        "type": "user",
        "timestamp": timestamp,
        "message": {"role": "user", "content": text},
        **extra,
    }


def assistant(blocks, timestamp="2026-02-05T10:00:05Z", **extra):
    if isinstance(blocks, str):
        blocks = [{"type": "text", "text": blocks}]
    return {
        "type": "assistant",
        "timestamp": timestamp,
        "message": {"role": "assistant", "content": blocks},
        **extra,
    }


@pytest.fixture
def records():
    """Builders for raw log records, as found in session files."""

    class Builders:
        pass

    builders = Builders()
    builders.user = user
    builders.assistant = assistant
    builders.snapshot = lambda: {"type": "file-history-snapshot", "snapshot": {"files": []}}
    builders.progress = lambda: {"type": "progress", "data": {"step": 1}}
    return builders


@pytest.fixture
def sample_corpus(make_session, records):
    """Three sessions in two projects.

    alpha/aaaa1111: deploy discussion on 2026-02-05 (branch main)
    alpha/aaaa2222: tool use on 2026-01-20 (branch feature/login)
    beta/bbbb3333: unrelated chat on 2026-02-10
    """
    make_session(
        "-Users-dev-Code-alpha",
        "aaaa1111-0000-0000-0000-000000000001",
        [
            records.snapshot(),
            records.user("How do I deploy the service?", "2026-02-05T09:00:00Z", gitBranch="main"),
            records.assistant(
                [
                    {"type": "thinking", "thinking": "They want rollout steps."},
                    {"type": "text", "text": "Run the release pipeline."},
                ],
                "2026-02-05T09:00:10Z",
                gitBranch="main",
            ),
        ],
    )
    make_session(
        "-Users-dev-Code-alpha",
        "aaaa2222-0000-0000-0000-000000000002",
        [
            records.user("Fix the login form", "2026-01-20T12:00:00Z", gitBranch="feature/login"),
            records.assistant(
                [
                    {"type": "text", "text": "Reading the form component."},
                    {"type": "tool_use", "id": "t1", "name": "Read", "input": {"file_path": "src/login.tsx"}},
                ],
                "2026-01-20T12:00:05Z",
                gitBranch="feature/login",
            ),
            {
                "type": "user",
                "timestamp": "2026-01-20T12:00:06Z",
                "gitBranch": "feature/login",
                "message": {
                    "role": "user",
                    "content": [
                        {"type": "tool_result", "tool_use_id": "t1", "content": "export function LoginForm()"}
                    ],
                },
            },
            records.progress(),
        ],
    )
    make_session(
        "-Users-dev-Code-beta",
        "bbbb3333-0000-0000-0000-000000000003",
        [
            records.user("Summarize the quarterly numbers", "2026-02-10T08:00:00Z"),
            records.assistant("Revenue grew modestly.", "2026-02-10T08:00:04Z"),
        ],
    )
    return make_session
