"""Session file discovery under a corpus root."""

import logging
from collections import Counter
from pathlib import Path

from cc_grep.models import SessionFile

logger = logging.getLogger(__name__)

SESSION_SUFFIX = ".jsonl"

# Leading path components that never name a project
HOME_PREFIXES = ("Users", "home", "root")


def extract_project_name(encoded_path: str) -> str:
    """Extract a project name from an encoded project directory name.

    Format: -Users-name-Code-project (the original path with / replaced by -)
    Returns: project (last component of the original path)
    """
    parts = encoded_path.split("-")

    # Filter out empty parts and common prefixes
    meaningful_parts = [p for p in parts if p and p not in HOME_PREFIXES]

    if meaningful_parts:
        return meaningful_parts[-1]
    return encoded_path


def project_labels(names: dict[str, str]) -> dict[str, str]:
    """Map each project directory to the label shown for it.

    ``names`` maps project directories to display names. A display name shared
    by several directories is replaced by the directory name itself.
    """
    owners = Counter(names.values())
    return {
        project_dir: name if owners[name] == 1 else project_dir
        for project_dir, name in names.items()
    }


def discover_sessions(root: Path) -> list[SessionFile]:
    """Discover all JSONL session files below ``root``.

    Each top-level directory is a project; session files may sit anywhere below
    it. Files are returned largest first, path as tie-breaker.
    """
    if not root.is_dir():
        return []

    sessions: list[SessionFile] = []
    for path in root.glob(f"**/*{SESSION_SUFFIX}"):
        relative = path.relative_to(root)
        if len(relative.parts) < 2:
            # not inside a project directory
            continue
        try:
            if not path.is_file():
                continue
            size = path.stat().st_size
        except OSError as e:
            logger.warning("Cannot stat %s: %s", path, e)
            continue

        project_dir = relative.parts[0]
        sessions.append(
            SessionFile(
                path=path,
                session_id=path.stem,
                project_dir=project_dir,
                project=extract_project_name(project_dir),
                size_bytes=size,
            )
        )

    sessions.sort(key=lambda s: (-s.size_bytes, str(s.path)))
    logger.debug("Discovered %d session files under %s", len(sessions), root)
    return sessions
