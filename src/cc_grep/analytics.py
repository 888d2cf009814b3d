"""Aggregate statistics and frequency analysis across conversation logs."""

import re
import string
from collections import Counter
from functools import partial

from cc_grep.discovery import project_labels
from cc_grep.errors import FileReadError, MalformedRecord
from cc_grep.models import (
    CorpusStats,
    FrequencyMode,
    FrequencyTable,
    ProjectSummary,
    ScanWarning,
    SessionFile,
)
from cc_grep.parser import iter_lines, searchable_text, tool_names
from cc_grep.scanner import run_parallel
from cc_grep.sessions import summarize_sessions

WORD_MIN_LENGTH = 3
WORD_SPLIT = re.compile(r"[\W_]+")
LETTERS = string.ascii_lowercase

READ_CHUNK_SIZE = 1024 * 1024


def format_count(n: int) -> str:
    """Format a number with comma separators (e.g., 1,234,567)."""
    return f"{n:,}"


def format_bytes(size: int) -> str:
    """Format bytes into a human-readable string (e.g., "2.85GB")."""
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f}MB"
    return f"{size / (1024 * 1024 * 1024):.2f}GB"


def _apply_labels(projects: dict[str, ProjectSummary]) -> None:
    labels = project_labels({d: summary.project for d, summary in projects.items()})
    for project_dir, summary in projects.items():
        summary.project = labels[project_dir]


def corpus_stats(files: list[SessionFile]) -> CorpusStats:
    """Session counts and sizes, per project and overall. No file is read."""
    projects: dict[str, ProjectSummary] = {}
    for f in files:
        summary = projects.setdefault(
            f.project_dir, ProjectSummary(project=f.project, project_dir=f.project_dir)
        )
        summary.session_count += 1
        summary.total_size_bytes += f.size_bytes

    _apply_labels(projects)
    ordered = sorted(projects.values(), key=lambda p: (-p.total_size_bytes, p.project))
    return CorpusStats(
        total_sessions=len(files),
        total_size=sum(f.size_bytes for f in files),
        projects=ordered,
    )


def project_summaries(
    files: list[SessionFile], workers: int | None = None, progress: bool = False
) -> list[ProjectSummary]:
    """Projects with session counts, sizes and date ranges, latest activity first."""
    projects: dict[str, ProjectSummary] = {}
    for session in summarize_sessions(files, workers=workers, progress=progress):
        file = session.file
        summary = projects.setdefault(
            file.project_dir, ProjectSummary(project=file.project, project_dir=file.project_dir)
        )
        summary.session_count += 1
        summary.total_size_bytes += file.size_bytes

        first, last = session.first_timestamp, session.last_timestamp
        if first is not None and (
            summary.first_timestamp is None
            or first.timestamp() < summary.first_timestamp.timestamp()
        ):
            summary.first_timestamp = first
        if last is not None and (
            summary.last_timestamp is None
            or last.timestamp() > summary.last_timestamp.timestamp()
        ):
            summary.last_timestamp = last

    _apply_labels(projects)

    def latest_first(p: ProjectSummary) -> tuple:
        ts = p.last_timestamp
        return (ts is None, -ts.timestamp() if ts else 0.0, p.project)

    return sorted(projects.values(), key=latest_first)


def _count_letters(text: str, counts: Counter) -> None:
    lower = text.lower()
    for letter in LETTERS:
        n = lower.count(letter)
        if n:
            counts[letter] += n


def _count_words(text: str, counts: Counter) -> None:
    for word in WORD_SPLIT.split(text.lower()):
        if len(word) >= WORD_MIN_LENGTH:
            counts[word] += 1


def _count_raw(session: SessionFile, mode: FrequencyMode, counts: Counter) -> None:
    try:
        with open(session.path, "rb") as f:
            if mode == FrequencyMode.CHARS:
                while True:
                    chunk = f.read(READ_CHUNK_SIZE)
                    if not chunk:
                        break
                    lower = chunk.lower()
                    for letter in LETTERS:
                        n = lower.count(letter.encode())
                        if n:
                            counts[letter] += n
            else:
                for raw in f:
                    _count_words(raw.decode("utf-8", errors="replace"), counts)
    except OSError as e:
        raise FileReadError(session.path, e.strerror or str(e)) from e


def count_file(
    session: SessionFile, mode: FrequencyMode, raw: bool = False
) -> tuple[Counter, list[ScanWarning]]:
    """Frequency counts for a single file, plus any recovered errors."""
    counts: Counter = Counter()
    warnings: list[ScanWarning] = []
    try:
        if raw and mode in (FrequencyMode.CHARS, FrequencyMode.WORDS):
            _count_raw(session, mode, counts)
            return counts, warnings

        for line_number, item in iter_lines(session.path):
            if isinstance(item, MalformedRecord):
                warnings.append(ScanWarning(session.path, item.reason, line_number))
                continue
            if not item.is_message:
                continue

            if mode == FrequencyMode.CHARS:
                _count_letters(searchable_text(item), counts)
            elif mode == FrequencyMode.WORDS:
                _count_words(searchable_text(item), counts)
            elif mode == FrequencyMode.TOOLS:
                counts.update(tool_names(item))
            elif mode == FrequencyMode.ROLES:
                counts[item.role_label] += 1
    except FileReadError as e:
        return Counter(), [ScanWarning(session.path, f"cannot read file: {e.reason}")]

    return counts, warnings


def frequency(
    files: list[SessionFile],
    mode: FrequencyMode,
    raw: bool = False,
    limit: int | None = None,
    workers: int | None = None,
    progress: bool = False,
) -> FrequencyTable:
    """Count characters, words, tool calls or roles across all files.

    Character rows are always a-z in order; other modes are ranked by count.
    ``raw`` only affects the character and word modes.
    """
    mode = FrequencyMode(mode)
    results = run_parallel(
        partial(count_file, mode=mode, raw=raw),
        files,
        workers=workers,
        description="Counting..." if progress else None,
    )

    totals: Counter = Counter()
    warnings: list[ScanWarning] = []
    for counts, file_warnings in results:
        totals.update(counts)
        warnings.extend(file_warnings)

    if mode == FrequencyMode.CHARS:
        rows = [(letter, totals.get(letter, 0)) for letter in LETTERS]
    else:
        rows = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
        if limit is not None and limit > 0:
            rows = rows[:limit]

    reads_raw = raw and mode in (FrequencyMode.CHARS, FrequencyMode.WORDS)
    return FrequencyTable(
        mode=mode,
        label="raw JSONL bytes" if reads_raw else "parsed content",
        rows=rows,
        total=sum(totals.values()),
        files=len(files),
        total_bytes=sum(f.size_bytes for f in files),
        warnings=warnings,
    )
