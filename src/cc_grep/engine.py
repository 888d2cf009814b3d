"""Engine API used by the CLI and by library callers.

Every function takes the corpus root explicitly and re-reads the session files
on each call; nothing is cached between invocations. Query problems (bad regex,
bad date, unknown mode) raise before any file is opened.
"""

import logging
from pathlib import Path

from cc_grep.aggregator import count_view, result_list, summary_view
from cc_grep.analytics import corpus_stats, frequency as count_frequency, project_summaries
from cc_grep.discovery import discover_sessions
from cc_grep.errors import FileReadError, InvalidQuery
from cc_grep.filters import FilterCriteria
from cc_grep.matcher import Matcher
from cc_grep.models import (
    CombineMode,
    ContextEntry,
    CorpusStats,
    FrequencyMode,
    FrequencyTable,
    MatchMode,
    ProjectSummary,
    Record,
    ScanOutcome,
    SearchReport,
    SessionFile,
    SessionSummary,
    ToolCallEntry,
    ViewMode,
)
from cc_grep.resolver import SessionIndex, context_window as read_context
from cc_grep.scanner import scan
from cc_grep.sessions import (
    list_sessions as summarize_and_list,
    list_tool_calls as collect_tool_calls,
    read_messages,
    recent_messages,
)

logger = logging.getLogger(__name__)


def _sessions(corpus_root: Path) -> list[SessionFile]:
    root = Path(corpus_root)
    if not root.is_dir():
        raise FileReadError(root, "Claude projects directory not found")
    return discover_sessions(root)


def search(
    corpus_root: Path,
    terms: list[str],
    combine: CombineMode = CombineMode.OR,
    mode: MatchMode = MatchMode.LITERAL,
    filters: FilterCriteria | None = None,
    limit: int | None = 50,
    view: ViewMode = ViewMode.RESULTS,
    workers: int | None = None,
    progress: bool = False,
) -> SearchReport:
    """Search every session under ``corpus_root`` for the query terms.

    Args:
        terms: Query terms; OR'd by default, AND'd with ``combine=AND``.
        mode: Literal (case-insensitive substring) or regex matching.
        filters: Record and session constraints; defaults to none.
        limit: Maximum matches in the results view (None or 0 for all).
        view: Results list, per-project counts, or a summary.
    """
    matcher = Matcher(terms, mode=mode, combine=combine)
    criteria = filters or FilterCriteria()
    view = ViewMode(view)

    files = _sessions(corpus_root)
    logger.debug("Searching %d sessions with %r", len(files), matcher)
    outcome = scan(
        files,
        criteria,
        matcher,
        limit=limit if view == ViewMode.RESULTS else None,
        workers=workers,
        progress=progress,
    )

    report = SearchReport(
        terms=list(terms),
        view=view,
        warnings=outcome.warnings,
        files_scanned=outcome.files_scanned,
    )
    if view == ViewMode.COUNT:
        report.counts = count_view(outcome.matches)
    elif view == ViewMode.SUMMARY:
        report.summary = summary_view(outcome.matches, list(terms))
    else:
        report.matches = result_list(outcome.matches, limit)
    return report


def stats(corpus_root: Path) -> CorpusStats:
    return corpus_stats(_sessions(corpus_root))


def projects(
    corpus_root: Path, workers: int | None = None, progress: bool = False
) -> list[ProjectSummary]:
    return project_summaries(_sessions(corpus_root), workers=workers, progress=progress)


def list_sessions(
    corpus_root: Path,
    filters: FilterCriteria | None = None,
    limit: int | None = 20,
    workers: int | None = None,
    progress: bool = False,
) -> list[SessionSummary]:
    return summarize_and_list(
        _sessions(corpus_root), filters, limit=limit, workers=workers, progress=progress
    )


def resolve_session(corpus_root: Path, prefix: str) -> SessionFile:
    """Resolve a session id or unique prefix.

    Raises SessionNotFound or AmbiguousPrefix (which lists the candidates).
    """
    return SessionIndex(_sessions(corpus_root)).resolve(prefix)


def list_tool_calls(corpus_root: Path, session_id: str) -> list[ToolCallEntry]:
    return collect_tool_calls(resolve_session(corpus_root, session_id))


def context_window(
    corpus_root: Path, session_id: str, line: int, radius: int = 3
) -> list[ContextEntry]:
    return read_context(resolve_session(corpus_root, session_id), line, radius)


def read_session(
    corpus_root: Path, session_id: str, start: int | None = None, end: int | None = None
) -> tuple[SessionFile, list[tuple[int, int, Record]]]:
    session = resolve_session(corpus_root, session_id)
    return session, read_messages(session, start, end)


def recent(
    corpus_root: Path,
    limit: int = 10,
    role: str | None = None,
    workers: int | None = None,
    progress: bool = False,
) -> ScanOutcome:
    return recent_messages(
        _sessions(corpus_root), limit=limit, role=role, workers=workers, progress=progress
    )


def frequency(
    corpus_root: Path,
    mode: FrequencyMode | str,
    raw: bool = False,
    limit: int | None = None,
    workers: int | None = None,
    progress: bool = False,
) -> FrequencyTable:
    try:
        mode = FrequencyMode(mode)
    except ValueError:
        choices = ", ".join(m.value for m in FrequencyMode)
        raise InvalidQuery(f"Unknown freq mode '{mode}'. Use: {choices}") from None
    return count_frequency(
        _sessions(corpus_root), mode, raw=raw, limit=limit, workers=workers, progress=progress
    )
