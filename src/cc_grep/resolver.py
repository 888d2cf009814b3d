"""Session-id prefix resolution and context windows."""

import logging

from cc_grep.errors import AmbiguousPrefix, InvalidQuery, MalformedRecord, SessionNotFound
from cc_grep.models import ContextEntry, SessionFile
from cc_grep.parser import iter_lines

logger = logging.getLogger(__name__)


def describe_candidate(session: SessionFile) -> str:
    return f"{session.session_id} ({session.project_dir})"


class SessionIndex:
    """In-memory lookup of the sessions discovered for one invocation.

    The same id may exist in more than one project; such an id never resolves
    on its own.
    """

    def __init__(self, files: list[SessionFile]):
        self.by_id: dict[str, list[SessionFile]] = {}
        for session in files:
            self.by_id.setdefault(session.session_id, []).append(session)

    def __len__(self) -> int:
        return sum(len(sessions) for sessions in self.by_id.values())

    def candidates(self, prefix: str) -> list[SessionFile]:
        return [
            s for sid, sessions in self.by_id.items() if sid.startswith(prefix) for s in sessions
        ]

    def resolve(self, prefix: str) -> SessionFile:
        """Resolve an id or unique id prefix to its session.

        An exact id always wins over longer ids sharing it as a prefix.
        """
        prefix = prefix.strip()
        if not prefix:
            raise SessionNotFound(prefix)

        matches = self.by_id.get(prefix) or self.candidates(prefix)
        if not matches:
            raise SessionNotFound(prefix)
        if len(matches) > 1:
            raise AmbiguousPrefix(prefix, [describe_candidate(s) for s in matches])
        return matches[0]


def context_window(session: SessionFile, center_line: int, radius: int = 3) -> list[ContextEntry]:
    """Records on lines [center_line - radius, center_line + radius] of a session.

    The window is clipped to the file; malformed lines inside it are left out.
    """
    if radius < 0:
        raise InvalidQuery(f"Context radius must be non-negative, got {radius}")

    first = max(1, center_line - radius)
    last = center_line + radius

    entries: list[ContextEntry] = []
    for line_number, item in iter_lines(session.path):
        if line_number > last:
            break
        if line_number < first:
            continue
        if isinstance(item, MalformedRecord):
            logger.debug("Skipping %s:%d: %s", session.path, line_number, item.reason)
            continue
        entries.append(ContextEntry(line_number, item, is_center=line_number == center_line))
    return entries
