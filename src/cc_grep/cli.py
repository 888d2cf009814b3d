"""CLI for cc-grep."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from cc_grep import __version__
from cc_grep.config import PROJECTS_DIR_ENV, WORKERS_ENV, configure_logging, resolve_corpus_root
from cc_grep.errors import AmbiguousPrefix, CCGrepError
from cc_grep.models import CombineMode, FrequencyMode, MatchMode, ViewMode

app = typer.Typer(
    name="cc-grep",
    help="Fast parallel search through Claude Code conversation logs.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"cc-grep {__version__}")
        raise typer.Exit()


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print engine errors in red and exit with status 1."""
    try:
        yield
    except AmbiguousPrefix as e:
        err_console.print(f"[red]Error: {escape(str(e))}:[/red]")
        for candidate in e.candidates:
            err_console.print(f"  {candidate}")
        err_console.print("[red]Please provide a more specific session ID[/red]")
        raise typer.Exit(1)
    except CCGrepError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def corpus_root(ctx: typer.Context) -> Path:
    with handle_errors():
        return resolve_corpus_root(ctx.obj["path"])


def show_progress() -> bool:
    return err_console.is_terminal


@app.callback()
def main(
    ctx: typer.Context,
    path: Annotated[
        str | None,
        typer.Option(
            "--path",
            envvar=PROJECTS_DIR_ENV,
            help="Path to Claude projects directory (default: ~/.claude/projects)",
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-j", envvar=WORKERS_ENV, min=1, help="Parallel worker processes"),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Log skipped lines and other details")
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Search Claude Code conversation logs."""
    configure_logging(verbose)
    ctx.obj = {"path": path, "workers": workers}


@app.command()
def search(
    ctx: typer.Context,
    query: Annotated[list[str], typer.Argument(help="Search terms (OR'd together by default)")],
    regex: Annotated[bool, typer.Option("--regex", "-e", help="Treat terms as regexes")] = False,
    and_mode: Annotated[bool, typer.Option("--and", help="Require every term to match")] = False,
    role: Annotated[
        str | None, typer.Option("--role", help="Filter by role (user, assistant, system)")
    ] = None,
    tool: Annotated[str | None, typer.Option("--tool", help="Filter by tool name")] = None,
    project: Annotated[
        str | None, typer.Option("--project", "-p", help="Filter by project (substring)")
    ] = None,
    after: Annotated[
        str | None, typer.Option("--after", help="Only records on or after this date (YYYY-MM-DD)")
    ] = None,
    before: Annotated[
        str | None, typer.Option("--before", help="Only records before this date (YYYY-MM-DD)")
    ] = None,
    branch: Annotated[str | None, typer.Option("--branch", help="Filter by git branch")] = None,
    exclude_session: Annotated[
        list[str] | None,
        typer.Option("--exclude-session", "-x", help="Skip a session id or prefix (can repeat)"),
    ] = None,
    include_self: Annotated[
        bool, typer.Option("--include-self", help="Also match cc-grep's own earlier output")
    ] = False,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum number of results")] = 50,
    markdown_stdout: Annotated[
        bool, typer.Option("--output", "-o", help="Print markdown to stdout")
    ] = False,
    md_file: Annotated[
        Path | None, typer.Option("--md", help="Save results to a markdown file")
    ] = None,
    count: Annotated[bool, typer.Option("--count", "-c", help="Match counts per project")] = False,
    summary: Annotated[bool, typer.Option("--summary", help="Condensed overview of matches")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON lines")] = False,
) -> None:
    """Search across all conversations."""
    from cc_grep import engine, render
    from cc_grep.filters import FilterCriteria

    root = corpus_root(ctx)
    view = ViewMode.COUNT if count else ViewMode.SUMMARY if summary else ViewMode.RESULTS

    with handle_errors():
        criteria = FilterCriteria.build(
            role=role,
            project=project,
            after=after,
            before=before,
            tool=tool,
            branch=branch,
            exclude_sessions=exclude_session,
            include_self=include_self,
        )
        report = engine.search(
            root,
            query,
            combine=CombineMode.AND if and_mode else CombineMode.OR,
            mode=MatchMode.REGEX if regex else MatchMode.LITERAL,
            filters=criteria,
            limit=limit,
            view=view,
            workers=ctx.obj["workers"],
            progress=show_progress(),
        )

    query_display = ", ".join(query)
    if report.counts is not None:
        render.print_counts(report.counts, query_display)
    elif report.summary is not None:
        render.print_summary(report.summary, query_display)
    elif json_output:
        render.format_json_lines(report.matches)
    elif markdown_stdout:
        render.console.out(render.search_markdown(report, criteria.describe()), highlight=False)
    else:
        render.format_human_output(report, regex=regex)

    if md_file is not None:
        render.export_to_markdown(report, criteria.describe(), md_file)

    render.print_warnings(report.warnings)


@app.command()
def sessions(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum sessions to show")] = 20,
    project: Annotated[
        str | None, typer.Option("--project", "-p", help="Filter by project (substring)")
    ] = None,
    after: Annotated[
        str | None, typer.Option("--after", help="Sessions last active on or after this date")
    ] = None,
    before: Annotated[
        str | None, typer.Option("--before", help="Sessions last active before this date")
    ] = None,
) -> None:
    """List sessions, most recently active first."""
    from cc_grep import engine, render
    from cc_grep.filters import FilterCriteria

    root = corpus_root(ctx)
    with handle_errors():
        criteria = FilterCriteria.build(project=project, after=after, before=before)
        found = engine.list_sessions(
            root, criteria, limit=None, workers=ctx.obj["workers"], progress=show_progress()
        )

    shown = found[:limit] if limit > 0 else found
    render.print_sessions(shown, total=len(found))


@app.command()
def show(
    ctx: typer.Context,
    session: Annotated[str, typer.Argument(help="Session ID (or prefix)")],
    thinking: Annotated[bool, typer.Option("--thinking", help="Show thinking blocks")] = False,
    start: Annotated[
        int | None, typer.Option("--from", min=1, help="Start from this message number")
    ] = None,
    end: Annotated[int | None, typer.Option("--to", min=1, help="End at this message number")] = None,
) -> None:
    """Show a conversation."""
    from cc_grep import engine, render

    root = corpus_root(ctx)
    with handle_errors():
        session_file, messages = engine.read_session(root, session, start, end)
    render.print_session(session_file, messages, thinking=thinking)


@app.command()
def tools(
    ctx: typer.Context,
    session: Annotated[str, typer.Argument(help="Session ID (or prefix)")],
) -> None:
    """Show tool calls in a session."""
    from cc_grep import engine, render

    root = corpus_root(ctx)
    with handle_errors():
        session_file = engine.resolve_session(root, session)
        entries = engine.list_tool_calls(root, session_file.session_id)
    render.print_tool_calls(session_file, entries)


@app.command()
def context(
    ctx: typer.Context,
    session: Annotated[str, typer.Argument(help="Session ID (or prefix)")],
    line: Annotated[int, typer.Argument(min=1, help="Line number to center on")],
    radius: Annotated[
        int, typer.Option("--context", "-C", min=0, help="Lines to show before and after")
    ] = 3,
) -> None:
    """Show records around a specific line in a session."""
    from cc_grep import engine, render

    root = corpus_root(ctx)
    with handle_errors():
        session_file = engine.resolve_session(root, session)
        entries = engine.context_window(root, session_file.session_id, line, radius)
    render.print_context(session_file, entries)


@app.command()
def stats(ctx: typer.Context) -> None:
    """Show aggregate statistics."""
    from cc_grep import engine, render

    root = corpus_root(ctx)
    with handle_errors():
        result = engine.stats(root)
    render.print_stats(result)


@app.command()
def projects(ctx: typer.Context) -> None:
    """List projects with session counts, sizes and date ranges."""
    from cc_grep import engine, render

    root = corpus_root(ctx)
    with handle_errors():
        result = engine.projects(root, workers=ctx.obj["workers"], progress=show_progress())
    render.print_projects(result)


@app.command()
def freq(
    ctx: typer.Context,
    mode: Annotated[
        FrequencyMode, typer.Argument(help="What to count: chars, words, tools, roles")
    ] = FrequencyMode.CHARS,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Max items to show")] = 30,
    raw: Annotated[
        bool, typer.Option("--raw", help="Count raw JSONL bytes (chars and words only)")
    ] = False,
) -> None:
    """Frequency analysis across all conversations."""
    from cc_grep import engine, render

    root = corpus_root(ctx)
    with handle_errors():
        table = engine.frequency(
            root, mode, raw=raw, limit=limit, workers=ctx.obj["workers"], progress=show_progress()
        )
    render.print_frequency(table)
    render.print_warnings(table.warnings)


@app.command()
def recent(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of messages to show")] = 10,
    role: Annotated[str | None, typer.Option("--role", help="Filter by role")] = None,
) -> None:
    """Show the most recent messages across all sessions."""
    from cc_grep import engine, render

    root = corpus_root(ctx)
    with handle_errors():
        outcome = engine.recent(
            root, limit=limit, role=role, workers=ctx.obj["workers"], progress=show_progress()
        )
    if not outcome.matches:
        console.print("[yellow]No messages found[/yellow]")
    for match in outcome.matches:
        render.print_search_hit(match)
    render.print_warnings(outcome.warnings)


@app.command()
def export(
    ctx: typer.Context,
    session: Annotated[str, typer.Argument(help="Session ID (or prefix)")],
    markdown_stdout: Annotated[
        bool, typer.Option("--output", "-o", help="Print to stdout instead of a file")
    ] = False,
    md_file: Annotated[
        Path | None, typer.Option("--md", help="Output file path (default: <session-id>.md)")
    ] = None,
    thinking: Annotated[bool, typer.Option("--thinking", help="Include thinking blocks")] = False,
) -> None:
    """Export a session as markdown."""
    from cc_grep import engine, render

    root = corpus_root(ctx)
    with handle_errors():
        session_file, messages = engine.read_session(root, session)

    document = render.session_markdown(session_file, messages, thinking=thinking)
    if markdown_stdout:
        render.console.out(document, highlight=False)
        return

    output_path = md_file or Path(f"{session_file.session_id}.md")
    output_path.write_text(document, encoding="utf-8")
    err_console.print(f"[green]Exported {len(messages)} messages to {output_path}[/green]")


if __name__ == "__main__":
    app()
