"""Per-session operations: summaries, listings, tool calls, message reads."""

import logging

from cc_grep.errors import FileReadError, MalformedRecord
from cc_grep.filters import FilterCriteria
from cc_grep.matcher import Matcher
from cc_grep.models import (
    Record,
    RecordKind,
    ScanOutcome,
    SessionFile,
    SessionSummary,
    TextBlock,
    ToolCallEntry,
)
from cc_grep.parser import iter_lines, read_records, tool_calls
from cc_grep.scanner import run_parallel, scan

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


def _first_user_text(blocks) -> str | None:
    for block in blocks:
        if isinstance(block, TextBlock) and block.text.strip():
            return " ".join(block.text.split())[:PREVIEW_CHARS]
    return None


def summarize_session(session: SessionFile) -> SessionSummary:
    """Read a whole session file and collect its summary facts."""
    summary = SessionSummary(file=session)
    try:
        for _, item in iter_lines(session.path):
            if isinstance(item, MalformedRecord):
                continue
            summary.record_count += 1
            if item.is_message:
                summary.message_count += 1
            if item.timestamp is not None:
                if summary.first_timestamp is None:
                    summary.first_timestamp = item.timestamp
                summary.last_timestamp = item.timestamp
            if summary.git_branch is None and item.git_branch:
                summary.git_branch = item.git_branch
            if summary.preview is None and item.kind == RecordKind.USER:
                summary.preview = _first_user_text(item.content)
    except FileReadError as e:
        return SessionSummary(file=session, error=e.reason)
    return summary


def summarize_sessions(
    files: list[SessionFile], workers: int | None = None, progress: bool = False
) -> list[SessionSummary]:
    """Summarize sessions in parallel, dropping (and logging) unreadable ones."""
    summaries = run_parallel(
        summarize_session,
        files,
        workers=workers,
        description="Reading sessions..." if progress else None,
    )
    readable = []
    for summary in summaries:
        if summary.error:
            logger.warning("Skipping %s: %s", summary.file.path, summary.error)
            continue
        readable.append(summary)
    return readable


def _recency_key(summary: SessionSummary) -> tuple:
    ts = summary.last_timestamp
    return (ts is None, -ts.timestamp() if ts else 0.0, summary.session_id)


def list_sessions(
    files: list[SessionFile],
    criteria: FilterCriteria | None = None,
    limit: int | None = 20,
    workers: int | None = None,
    progress: bool = False,
) -> list[SessionSummary]:
    """Sessions ordered by last activity, newest first.

    Date bounds apply to each session's last activity, not to single records.
    """
    criteria = criteria or FilterCriteria()
    selected = [f for f in files if criteria.accepts_session(f)]
    summaries = [
        s
        for s in summarize_sessions(selected, workers=workers, progress=progress)
        if criteria.accepts_session_summary(s)
    ]
    summaries.sort(key=_recency_key)
    if limit is not None and limit > 0:
        return summaries[:limit]
    return summaries


def list_tool_calls(session: SessionFile) -> list[ToolCallEntry]:
    """Every tool call in a session, in file order."""
    entries = []
    for line_number, record in read_records(session.path):
        for call in tool_calls(record):
            entries.append(
                ToolCallEntry(
                    line_number=line_number,
                    timestamp=record.timestamp,
                    role=record.role_label,
                    tool_name=call.name,
                    arguments=call.arguments,
                )
            )
    return entries


def read_messages(
    session: SessionFile, start: int | None = None, end: int | None = None
) -> list[tuple[int, int, Record]]:
    """Message records of a session as (index, line_number, record).

    ``start`` and ``end`` select an inclusive 1-based message index range.
    """
    messages = []
    index = 0
    for line_number, record in read_records(session.path):
        if not record.is_message:
            continue
        index += 1
        if start is not None and index < start:
            continue
        if end is not None and index > end:
            break
        messages.append((index, line_number, record))
    return messages


def recent_messages(
    files: list[SessionFile],
    limit: int = 10,
    role: str | None = None,
    workers: int | None = None,
    progress: bool = False,
) -> ScanOutcome:
    """The newest message records across all sessions."""
    return scan(
        files,
        FilterCriteria.build(role=role),
        Matcher.everything(),
        limit=limit,
        workers=workers,
        progress=progress,
    )

