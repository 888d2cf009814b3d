"""Runtime configuration: default locations, environment overrides, logging."""

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from cc_grep.errors import FileReadError

# Claude Code sessions location
DEFAULT_PROJECTS_DIR = Path.home() / ".claude" / "projects"

PROJECTS_DIR_ENV = "CC_GREP_PROJECTS_DIR"
WORKERS_ENV = "CC_GREP_WORKERS"

# Wraps everything cc-grep writes for an agent to read back, so later searches
# can recognise and skip their own output.
OUTPUT_TAG_OPEN = "<cc-grep-output>"
OUTPUT_TAG_CLOSE = "</cc-grep-output>"

LOG_FORMAT = "%(message)s"


def resolve_corpus_root(path_override: str | Path | None = None) -> Path:
    """Pick the corpus root: explicit path, then environment, then default.

    Raises FileReadError if the directory does not exist.
    """
    if path_override:
        root = Path(path_override).expanduser()
    elif os.environ.get(PROJECTS_DIR_ENV):
        root = Path(os.environ[PROJECTS_DIR_ENV]).expanduser()
    else:
        root = DEFAULT_PROJECTS_DIR

    if not root.is_dir():
        raise FileReadError(root, "Claude projects directory not found")
    return root


def default_workers() -> int:
    """Worker count for parallel scans (env override, else CPU count)."""
    value = os.environ.get(WORKERS_ENV)
    if value:
        try:
            return max(1, int(value))
        except ValueError:
            logging.getLogger(__name__).warning(
                "Ignoring non-integer %s=%r", WORKERS_ENV, value
            )
    return os.cpu_count() or 1


def configure_logging(verbose: bool = False) -> None:
    """Route log records to stderr through rich."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        show_time=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )
