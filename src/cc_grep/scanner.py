"""Parallel per-file scanning of session logs."""

import heapq
import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ProcessPoolExecutor
from contextlib import contextmanager
from functools import partial
from typing import TypeVar

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from cc_grep.config import default_workers
from cc_grep.errors import FileReadError, MalformedRecord
from cc_grep.filters import FilterCriteria
from cc_grep.matcher import Matcher
from cc_grep.models import FileScanResult, Match, ScanOutcome, ScanWarning, SessionFile
from cc_grep.parser import iter_lines, searchable_text

logger = logging.getLogger(__name__)

# Progress goes to stderr so stdout stays pipeable
console = Console(stderr=True)

T = TypeVar("T")
R = TypeVar("R")


def match_sort_key(match: Match) -> tuple:
    """Newest first; records without a timestamp last; then file position."""
    ts = match.record.timestamp
    return (ts is None, -ts.timestamp() if ts else 0.0, match.session_id, match.line_number)


@contextmanager
def _progress(description: str | None, total: int):
    if description is None:
        yield None
        return
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        yield progress, progress.add_task(description, total=total)


def run_parallel(
    func: Callable[[T], R],
    items: Iterable[T],
    workers: int | None = None,
    description: str | None = None,
) -> list[R]:
    """Apply ``func`` to every item across a process pool.

    Results come back in input order once every item is done. With one worker,
    or at most one item, everything runs in this process.
    """
    items = list(items)
    workers = min(workers or default_workers(), len(items))

    results: list[R] = []
    with _progress(description, len(items)) as bar:
        if workers <= 1:
            mapped = map(func, items)
            executor = None
        else:
            executor = ProcessPoolExecutor(max_workers=workers)
            chunksize = max(1, len(items) // (workers * 4))
            mapped = executor.map(func, items, chunksize=chunksize)

        try:
            for result in mapped:
                results.append(result)
                if bar is not None:
                    progress, task = bar
                    progress.advance(task)
        finally:
            if executor is not None:
                executor.shutdown()

    return results


def scan_file(
    session: SessionFile,
    criteria: FilterCriteria,
    matcher: Matcher,
    keep: int | None = None,
) -> FileScanResult:
    """Scan one session file, returning its matches and recovered errors.

    With ``keep``, only the file's top-``keep`` matches by recency are returned.
    An unreadable file yields no matches and a single warning.
    """
    result = FileScanResult(session_id=session.session_id)

    try:
        for line_number, item in iter_lines(session.path):
            if isinstance(item, MalformedRecord):
                logger.debug("Skipping %s:%d: %s", session.path, line_number, item.reason)
                result.warnings.append(ScanWarning(session.path, item.reason, line_number))
                continue

            result.records_scanned += 1
            if not item.is_message:
                continue

            # Cheap field checks before building the text
            if not criteria.accepts_record(item):
                continue

            text = searchable_text(item)
            if not criteria.accepts_text(text):
                continue

            terms = matcher.match(text)
            if terms is None:
                continue

            result.matches.append(
                Match(
                    record=item,
                    matched_terms=terms,
                    line_number=line_number,
                    session_id=session.session_id,
                    project=session.project,
                    project_dir=session.project_dir,
                )
            )
    except FileReadError as e:
        logger.debug("Failed to read %s: %s", e.path, e.reason)
        return FileScanResult(
            session_id=session.session_id,
            warnings=[ScanWarning(session.path, f"cannot read file: {e.reason}")],
        )

    if keep is not None and len(result.matches) > keep:
        result.matches = heapq.nsmallest(keep, result.matches, key=match_sort_key)

    return result


def merge_results(results: Iterable[FileScanResult], limit: int | None = None) -> ScanOutcome:
    """Merge per-file results into one recency-ordered list."""
    outcome = ScanOutcome()
    for result in results:
        outcome.matches.extend(result.matches)
        outcome.warnings.extend(result.warnings)
        outcome.files_scanned += 1

    outcome.matches.sort(key=match_sort_key)
    if limit is not None and limit > 0:
        del outcome.matches[limit:]
    return outcome


def scan(
    files: list[SessionFile],
    criteria: FilterCriteria,
    matcher: Matcher,
    limit: int | None = None,
    workers: int | None = None,
    progress: bool = False,
) -> ScanOutcome:
    """Scan every selected file and return matches ordered newest first.

    The whole corpus is always scanned; ``limit`` only bounds the output.
    """
    selected = [f for f in files if criteria.accepts_session(f)]
    keep = limit if limit is not None and limit > 0 else None

    worker = partial(scan_file, criteria=criteria, matcher=matcher, keep=keep)
    results = run_parallel(
        worker,
        selected,
        workers=workers,
        description="Scanning sessions..." if progress else None,
    )

    outcome = merge_results(results, limit)
    logger.debug(
        "Scanned %d files: %d matches, %d warnings",
        outcome.files_scanned,
        len(outcome.matches),
        len(outcome.warnings),
    )
    return outcome
