"""Tests for the filters module."""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from cc_grep.config import OUTPUT_TAG_CLOSE, OUTPUT_TAG_OPEN
from cc_grep.errors import InvalidDateBound
from cc_grep.filters import FilterCriteria, parse_date_bound, record_date
from cc_grep.models import Record, RecordKind, SessionFile, SessionSummary, TextBlock, ToolCall


def make_record(role="user", timestamp=None, branch=None, blocks=("hello",)):
    content = tuple(TextBlock(b) if isinstance(b, str) else b for b in blocks)
    return Record(
        kind=RecordKind(role),
        timestamp=timestamp,
        role=role,
        content=content,
        git_branch=branch,
    )


def make_session_file(session_id="abc123", project_dir="-Users-dev-Code-webapp"):
    return SessionFile(
        path=Path(f"/tmp/{session_id}.jsonl"),
        session_id=session_id,
        project_dir=project_dir,
        project="webapp",
    )


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_parse_date_bound():
    assert parse_date_bound("2026-02-01") == date(2026, 2, 1)
    assert parse_date_bound("2026-02-01T23:59:00Z") == date(2026, 2, 1)
    assert parse_date_bound(datetime(2026, 2, 1, 12)) == date(2026, 2, 1)
    assert parse_date_bound(None) is None
    assert parse_date_bound("  ") is None


@pytest.mark.parametrize("value", ["02/01/2026", "2026-13-01", "last week"])
def test_parse_date_bound_invalid(value):
    with pytest.raises(InvalidDateBound):
        parse_date_bound(value)


def test_record_date_converts_to_utc():
    ts = datetime.fromisoformat("2026-02-01T23:30:00-02:00")
    assert record_date(ts) == date(2026, 2, 2)


def test_after_is_inclusive_and_before_exclusive():
    criteria = FilterCriteria.build(after="2026-02-01", before="2026-02-03")
    assert not criteria.accepts_record(make_record(timestamp=utc(2026, 1, 31, 23, 59)))
    assert criteria.accepts_record(make_record(timestamp=utc(2026, 2, 1, 0, 0)))
    assert criteria.accepts_record(make_record(timestamp=utc(2026, 2, 2, 23, 59)))
    assert not criteria.accepts_record(make_record(timestamp=utc(2026, 2, 3, 0, 0)))


def test_date_bound_rejects_records_without_timestamp():
    assert not FilterCriteria.build(after="2026-01-01").accepts_record(make_record())
    assert FilterCriteria().accepts_record(make_record())


def test_role_filter_is_case_insensitive():
    criteria = FilterCriteria.build(role="Assistant")
    assert criteria.accepts_record(make_record(role="assistant"))
    assert not criteria.accepts_record(make_record(role="user"))


def test_branch_filter():
    criteria = FilterCriteria.build(branch="login")
    assert criteria.accepts_record(make_record(branch="feature/Login"))
    assert not criteria.accepts_record(make_record(branch="main"))
    assert not criteria.accepts_record(make_record(branch=None))


def test_tool_filter():
    criteria = FilterCriteria.build(tool="bash")
    with_tool = make_record(role="assistant", blocks=(ToolCall("Bash", {"command": "ls"}),))
    assert criteria.accepts_record(with_tool)
    assert not criteria.accepts_record(make_record(role="assistant"))


def test_session_filters():
    session = make_session_file()
    assert FilterCriteria.build(project="WEB").accepts_session(session)
    assert FilterCriteria.build(project="Users-dev").accepts_session(session)
    assert not FilterCriteria.build(project="mobile").accepts_session(session)
    assert not FilterCriteria.build(exclude_sessions=["abc"]).accepts_session(session)
    assert FilterCriteria.build(exclude_sessions=["xyz", ""]).accepts_session(session)


def test_session_summary_dates_use_last_activity():
    summary = SessionSummary(
        file=make_session_file(),
        first_timestamp=utc(2026, 1, 10),
        last_timestamp=utc(2026, 2, 5),
    )
    assert FilterCriteria.build(after="2026-02-01").accepts_session_summary(summary)
    assert not FilterCriteria.build(before="2026-02-01").accepts_session_summary(summary)

    empty = SessionSummary(file=make_session_file())
    assert not FilterCriteria.build(after="2026-02-01").accepts_session_summary(empty)


def test_self_exclusion():
    quoted = f"{OUTPUT_TAG_OPEN}\n## Search results\n{OUTPUT_TAG_CLOSE}"
    assert not FilterCriteria().accepts_text(quoted)
    assert FilterCriteria(include_self=True).accepts_text(quoted)
    assert FilterCriteria().accepts_text("plain text")


def test_evaluate_combines_all_checks():
    session = make_session_file()
    record = make_record(timestamp=utc(2026, 2, 5), blocks=(f"see {OUTPUT_TAG_OPEN}",))
    assert not FilterCriteria().evaluate(record, session)
    assert FilterCriteria(include_self=True).evaluate(record, session)
    assert not FilterCriteria.build(project="other", include_self=True).evaluate(record, session)


def test_describe():
    criteria = FilterCriteria.build(role="user", after="2026-02-01", exclude_sessions=["b", "a"])
    assert criteria.describe() == ["role=user", "after=2026-02-01", "exclude=a,b"]
    assert FilterCriteria().describe() == []
