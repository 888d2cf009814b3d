"""Terminal, JSON and Markdown rendering of engine results."""

import json
import re
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cc_grep.analytics import format_bytes, format_count
from cc_grep.config import OUTPUT_TAG_CLOSE, OUTPUT_TAG_OPEN
from cc_grep.models import (
    ContextEntry,
    CorpusStats,
    CountView,
    FrequencyMode,
    FrequencyTable,
    Match,
    ProjectSummary,
    Record,
    ScanWarning,
    SearchReport,
    SessionFile,
    SessionSummary,
    SummaryView,
    ToolCallEntry,
)
from cc_grep.parser import arguments_text, display_text, searchable_text

console = Console()
err_console = Console(stderr=True)

SNIPPET_CONTEXT_CHARS = 150
MARKDOWN_PREVIEW_CHARS = 500
MAX_WARNINGS_SHOWN = 5

ROLE_STYLES = {"user": "cyan", "assistant": "green", "system": "yellow"}


def format_timestamp(ts: datetime | None, length: int = 19) -> str:
    if ts is None:
        return "unknown"
    return ts.isoformat()[:length].replace("T", " ")


def format_date(ts: datetime | None) -> str:
    return format_timestamp(ts, 10)


def format_age(ts: datetime | None) -> str:
    """Relative age, e.g. "3 days ago"."""
    if ts is None:
        return "unknown"
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    age = datetime.now(tz=timezone.utc) - ts
    if age.days > 0:
        return f"{age.days} days ago"
    elif age.seconds > 3600:
        return f"{age.seconds // 3600} hours ago"
    return f"{age.seconds // 60} minutes ago"


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def extract_snippet(
    text: str,
    terms: list[str],
    regex: bool = False,
    context_chars: int = SNIPPET_CONTEXT_CHARS,
) -> str:
    """Cut a window of text around the first occurrence of any term."""
    positions = []
    for term in terms:
        found = re.search(term if regex else re.escape(term), text, re.IGNORECASE)
        if found:
            positions.append(found.start())
    if not positions:
        return truncate(text, context_chars * 2)

    pos = min(positions)
    start = max(0, pos - context_chars)
    end = min(len(text), pos + context_chars)
    snippet = text[start:end].replace("\n", " ")
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(text) else ""
    return f"{prefix}{snippet}{suffix}"


def highlight_matches(text: str, terms: list[str], regex: bool = False) -> Text:
    """Highlight query terms in text."""
    rendered = Text(text)
    for term in terms:
        if not term:
            continue
        pattern = term if regex else re.escape(term)
        try:
            rendered.highlight_regex(re.compile(pattern, re.IGNORECASE), style="bold yellow")
        except re.error:
            continue
    return rendered


def role_text(role: str) -> Text:
    return Text(role, style=ROLE_STYLES.get(role, "dim"))


def print_warnings(warnings: list[ScanWarning]) -> None:
    """Report recovered errors once, after the results."""
    if not warnings:
        return
    err_console.print(f"[yellow]{len(warnings)} warning(s): skipped unreadable lines or files[/yellow]")
    for warning in warnings[:MAX_WARNINGS_SHOWN]:
        err_console.print(f"  [dim]{escape(str(warning))}[/dim]")
    if len(warnings) > MAX_WARNINGS_SHOWN:
        err_console.print(f"  [dim]... and {len(warnings) - MAX_WARNINGS_SHOWN} more (use --verbose)[/dim]")


# Search results


def print_search_hit(match: Match, regex: bool = False) -> None:
    text = searchable_text(match.record)
    terms = list(match.matched_terms)
    snippet = extract_snippet(text, terms, regex=regex)

    header = Text()
    header.append(match.project, style="bold magenta")
    header.append(" | ")
    header.append_text(role_text(match.record.role_label))
    header.append(f" | {format_timestamp(match.timestamp)}", style="dim")

    body = highlight_matches(truncate(snippet, MARKDOWN_PREVIEW_CHARS), terms, regex=regex)
    console.print(
        Panel(
            body,
            title=header,
            title_align="left",
            subtitle=f"→ cc-grep context {match.session_id[:8]} {match.line_number}",
            subtitle_align="left",
        )
    )


def format_human_output(report: SearchReport, regex: bool = False) -> None:
    """Format results for human-readable output."""
    query = ", ".join(report.terms)
    if not report.matches:
        console.print(f"[yellow]No results found for '{escape(query)}'[/yellow]")
        return

    for match in report.matches:
        print_search_hit(match, regex=regex)

    console.print("─" * 50)
    console.print(f"{len(report.matches)} results found in {report.files_scanned} sessions")


def match_to_dict(match: Match) -> dict:
    return {
        "project": match.project,
        "session_id": match.session_id,
        "line": match.line_number,
        "role": match.record.role_label,
        "timestamp": match.timestamp.isoformat() if match.timestamp else None,
        "matched_terms": list(match.matched_terms),
        "text": searchable_text(match.record),
    }


def format_json_lines(matches: list[Match]) -> None:
    """One JSON object per match, for programmatic use."""
    for match in matches:
        console.out(json.dumps(match_to_dict(match), ensure_ascii=False), highlight=False)


def format_hit_markdown(match: Match) -> str:
    text = truncate(searchable_text(match.record), MARKDOWN_PREVIEW_CHARS)
    return (
        f"### {match.project} — {match.record.role_label} ({format_timestamp(match.timestamp)})\n\n"
        f"> Session: `{match.session_id}` Line: {match.line_number}\n\n"
        f"{text}\n"
    )


def search_markdown(report: SearchReport, filters: list[str]) -> str:
    """Markdown document of search results, wrapped in the output marker."""
    lines = [
        OUTPUT_TAG_OPEN,
        "# cc-grep Search Results",
        "",
        f"**Query:** `{', '.join(report.terms)}`",
    ]
    if filters:
        lines.append(f"**Filters:** {', '.join(filters)}")
    lines.extend([f"**Results:** {len(report.matches)}", "", "---", ""])

    for match in report.matches:
        lines.extend([format_hit_markdown(match), "---", ""])

    lines.append(OUTPUT_TAG_CLOSE)
    return "\n".join(lines) + "\n"


def export_to_markdown(report: SearchReport, filters: list[str], output_path: Path) -> None:
    """Export search results to a markdown file."""
    output_path.write_text(search_markdown(report, filters), encoding="utf-8")
    err_console.print(f"[green]Saved {len(report.matches)} results to {output_path}[/green]")


def print_counts(counts: CountView, query: str) -> None:
    console.print(f"Match counts for '{escape(query)}'\n")
    for project, count in counts.rows:
        console.print(f"  [cyan]{escape(project):40}[/cyan] {count:>5}")
    console.print(f"\n{counts.total} total matches across {len(counts.rows)} projects")


def print_summary(summary: SummaryView, query: str) -> None:
    console.print(f"Summary for '{escape(query)}'\n")

    console.print("  [bold]Projects:[/bold]")
    for project, count in summary.projects:
        console.print(f"    {escape(project):38} {count:>5} matches")

    console.print("\n  [bold]Roles:[/bold]")
    for role, count in summary.roles:
        console.print(f"    {role:38} {count:>5}")

    if summary.earliest and summary.latest:
        earliest, latest = format_date(summary.earliest), format_date(summary.latest)
        if earliest == latest:
            console.print(f"\n  Date:     {earliest}")
        else:
            console.print(f"\n  Dates:    {earliest} → {latest}")

    console.print(f"  Sessions: {summary.session_count}")
    if summary.topics:
        console.print(f"\n  Topics:   {', '.join(summary.topics)}")

    console.print(f"\n{summary.total} total matches")


# Sessions


def print_session_header(session: SessionFile) -> None:
    header = Text()
    header.append(session.project, style="bold magenta")
    header.append(f" | {session.session_id}", style="cyan")
    header.append(f" | {format_bytes(session.size_bytes)}", style="dim")
    console.print(header)


def print_sessions(summaries: list[SessionSummary], total: int | None = None) -> None:
    shown = len(summaries)
    console.print(f"{total if total is not None else shown} sessions found (showing {shown})\n")
    for summary in summaries:
        print_session_header(summary.file)
        preview = summary.preview or "[no user message]"
        last = summary.last_timestamp
        console.print(f"  {format_date(last)} ({format_age(last)}) {escape(preview)}", highlight=False)
        console.print()


def print_record(record: Record, index: int, thinking: bool = True) -> None:
    header = Text()
    header.append(f"[{index}] ", style="bold")
    header.append_text(role_text(record.role_label))
    header.append(f" {format_timestamp(record.timestamp)}", style="dim")
    console.print(header)
    console.print(escape(display_text(record, thinking=thinking)), highlight=False)
    console.print()


def print_session(session: SessionFile, messages: list[tuple[int, int, Record]], thinking: bool) -> None:
    console.print(
        f"Session: {session.session_id} | Project: {escape(session.project)} | "
        f"Size: {format_bytes(session.size_bytes)}\n"
    )
    for index, _, record in messages:
        print_record(record, index, thinking=thinking)
    console.print("─" * 80)
    console.print(f"{len(messages)} messages displayed")


def session_markdown(session: SessionFile, messages: list[tuple[int, int, Record]], thinking: bool) -> str:
    lines = [
        OUTPUT_TAG_OPEN,
        f"# Session {session.session_id}",
        "",
        f"**Project:** {session.project}  ",
        f"**Size:** {format_bytes(session.size_bytes)}",
        "",
    ]
    for index, _, record in messages:
        lines.extend([
            f"## [{index}] {record.role_label} ({format_timestamp(record.timestamp)})",
            "",
            display_text(record, thinking=thinking),
            "",
        ])
    lines.append(OUTPUT_TAG_CLOSE)
    return "\n".join(lines) + "\n"


def print_tool_calls(session: SessionFile, entries: list[ToolCallEntry]) -> None:
    console.print(f"Tool calls in session: {session.session_id} ({escape(session.project)})\n")
    for entry in entries:
        line = Text()
        line.append(f"{format_timestamp(entry.timestamp)} ", style="dim")
        line.append_text(role_text(entry.role))
        line.append(f" {entry.tool_name}", style="bold")
        line.append(f" {truncate(arguments_text(entry.arguments), 100)}", style="dim")
        console.print(line)
    console.print(f"\n{len(entries)} tool calls")


def print_context(session: SessionFile, entries: list[ContextEntry]) -> None:
    console.print(f"Context in {session.session_id} ({escape(session.project)})\n")
    for entry in entries:
        marker = "»" if entry.is_center else " "
        header = Text(f"{marker} line {entry.line_number} ", style="bold" if entry.is_center else "")
        header.append_text(role_text(entry.record.role_label))
        header.append(f" {format_timestamp(entry.record.timestamp)}", style="dim")
        console.print(header)
        text = display_text(entry.record)
        if text:
            console.print(escape(truncate(text, 1000)), highlight=False)
        console.print()


# Corpus statistics


def print_stats(stats: CorpusStats, top: int = 15) -> None:
    console.print("[bold cyan]cc-grep Stats[/bold cyan]")
    console.print("═" * 50)
    console.print(f"  Total sessions:  [bold]{stats.total_sessions}[/bold]")
    console.print(f"  Total size:      [bold]{format_bytes(stats.total_size)}[/bold]")
    console.print(f"  Projects:        [bold]{len(stats.projects)}[/bold]\n")

    console.print("[bold]Top Projects by Size[/bold]")
    console.print("─" * 50)
    for project in stats.projects[:top]:
        console.print(
            f"  [cyan]{escape(project.project):30}[/cyan] {project.session_count:>4} sessions"
            f"  {format_bytes(project.total_size_bytes):>8}"
        )
    if len(stats.projects) > top:
        console.print(f"  ... and {len(stats.projects) - top} more projects")


def print_projects(projects: list[ProjectSummary]) -> None:
    console.print(f"[bold]{len(projects)}[/bold] projects\n")
    for project in projects:
        first, last = format_date(project.first_timestamp), format_date(project.last_timestamp)
        date_range = first if first == last else f"{first} → {last}"
        console.print(
            f"  [cyan]{escape(project.project):30}[/cyan] {project.session_count:>4} sessions"
            f"  {format_bytes(project.total_size_bytes):>8}  [dim]{date_range}[/dim]"
        )


def print_frequency(table: FrequencyTable) -> None:
    titles = {
        FrequencyMode.CHARS: f"Character Frequency (a-z, case-insensitive, {table.label})",
        FrequencyMode.WORDS: f"Word Frequency (top words, 3+ chars, {table.label})",
        FrequencyMode.TOOLS: "Tool Usage Frequency",
        FrequencyMode.ROLES: "Message Role Frequency",
    }
    grid = Table(title=titles[table.mode], title_justify="left", show_header=False, box=None)
    grid.add_column(style="bold")
    grid.add_column(justify="right")
    grid.add_column(justify="right")
    grid.add_column(style="cyan")

    max_count = max((count for _, count in table.rows), default=0) or 1
    for key, count in table.rows:
        pct = count / table.total * 100 if table.total else 0.0
        bar = "█" * int(count / max_count * 40)
        grid.add_row(escape(key), format_count(count), f"({pct:5.2f}%)", bar)

    console.print(grid)
    console.print("─" * 60)
    console.print(
        f"  Total: [bold]{format_count(table.total)}[/bold] across {table.files} files"
        f" ({format_bytes(table.total_bytes)})"
    )
