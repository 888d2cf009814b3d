"""Filter criteria and the record predicate pipeline."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from cc_grep.config import OUTPUT_TAG_OPEN
from cc_grep.errors import InvalidDateBound
from cc_grep.models import Record, SessionFile, SessionSummary
from cc_grep.parser import searchable_text, tool_names


def parse_date_bound(value: str | date | None) -> date | None:
    """Parse a YYYY-MM-DD date (or the date part of an ISO timestamp)."""
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidDateBound(value) from None


def record_date(timestamp: datetime) -> date:
    """Calendar date of a timestamp, in UTC when it carries a zone."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.date()


def contains_ci(haystack: str | None, needle: str) -> bool:
    return haystack is not None and needle.lower() in haystack.lower()


@dataclass(frozen=True)
class FilterCriteria:
    """Optional, independent constraints on which records may match.

    ``after`` is inclusive and ``before`` exclusive, both compared as calendar
    dates. ``include_self`` disables the self-exclusion check.
    """

    role: str | None = None
    project: str | None = None
    after: date | None = None
    before: date | None = None
    tool: str | None = None
    branch: str | None = None
    exclude_sessions: frozenset[str] = frozenset()
    include_self: bool = False

    @classmethod
    def build(
        cls,
        role: str | None = None,
        project: str | None = None,
        after: str | date | None = None,
        before: str | date | None = None,
        tool: str | None = None,
        branch: str | None = None,
        exclude_sessions: Iterable[str] | None = None,
        include_self: bool = False,
    ) -> "FilterCriteria":
        """Build criteria from raw option values, validating dates eagerly."""
        return cls(
            role=role.lower() if role else None,
            project=project or None,
            after=parse_date_bound(after),
            before=parse_date_bound(before),
            tool=tool or None,
            branch=branch or None,
            exclude_sessions=frozenset(s for s in (exclude_sessions or ()) if s),
            include_self=include_self,
        )

    # Session-level checks, applied before a file is opened

    def accepts_session(self, session: SessionFile) -> bool:
        if self.project and not (
            contains_ci(session.project, self.project)
            or contains_ci(session.project_dir, self.project)
        ):
            return False
        if any(session.session_id.startswith(s) for s in self.exclude_sessions):
            return False
        return True

    def accepts_session_summary(self, summary: SessionSummary) -> bool:
        """Listing filter: date bounds apply to the session's last activity."""
        if not self.accepts_session(summary.file):
            return False
        if self.after or self.before:
            if summary.last_timestamp is None:
                return False
            return self.date_in_range(record_date(summary.last_timestamp))
        return True

    # Record-level checks, cheapest first

    def date_in_range(self, day: date) -> bool:
        if self.after and day < self.after:
            return False
        if self.before and day >= self.before:
            return False
        return True

    def accepts_record(self, record: Record) -> bool:
        if self.role and (record.role or "").lower() != self.role:
            return False

        if self.after or self.before:
            if record.timestamp is None:
                return False
            if not self.date_in_range(record_date(record.timestamp)):
                return False

        if self.branch and not contains_ci(record.git_branch, self.branch):
            return False

        if self.tool and not any(contains_ci(name, self.tool) for name in tool_names(record)):
            return False

        return True

    def accepts_text(self, text: str) -> bool:
        """Self-exclusion: drop records that quote cc-grep's own output."""
        return self.include_self or OUTPUT_TAG_OPEN not in text

    def evaluate(self, record: Record, session: SessionFile) -> bool:
        return (
            self.accepts_session(session)
            and self.accepts_record(record)
            and self.accepts_text(searchable_text(record))
        )

    def describe(self) -> list[str]:
        """Active filters as ``name=value`` strings, for report headers."""
        parts = []
        for name in ("role", "tool", "project", "after", "before", "branch"):
            value = getattr(self, name)
            if value:
                parts.append(f"{name}={value}")
        if self.exclude_sessions:
            parts.append("exclude=" + ",".join(sorted(self.exclude_sessions)))
        return parts
