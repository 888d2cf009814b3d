"""Data models for cc-grep."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Union


class RecordKind(str, Enum):
    """Value of a log line's ``type`` discriminator."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    FILE_HISTORY_SNAPSHOT = "file-history-snapshot"
    PROGRESS = "progress"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, value: str) -> "RecordKind":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


MESSAGE_KINDS = frozenset({RecordKind.USER, RecordKind.ASSISTANT, RecordKind.SYSTEM})


class MatchMode(str, Enum):
    LITERAL = "literal"
    REGEX = "regex"


class CombineMode(str, Enum):
    OR = "or"
    AND = "and"


class ViewMode(str, Enum):
    RESULTS = "results"
    COUNT = "count"
    SUMMARY = "summary"


class FrequencyMode(str, Enum):
    CHARS = "chars"
    WORDS = "words"
    TOOLS = "tools"
    ROLES = "roles"


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ThinkingBlock:
    thinking: str


@dataclass(frozen=True)
class ToolCall:
    name: str
    arguments: Any = None


@dataclass(frozen=True)
class ToolResult:
    payload: Any = None


ContentBlock = Union[TextBlock, ThinkingBlock, ToolCall, ToolResult]


@dataclass(frozen=True)
class Record:
    """One parsed line of a session log."""

    kind: RecordKind
    timestamp: datetime | None = None
    role: str | None = None  # "user" | "assistant" | "system", None for non-messages
    content: tuple[ContentBlock, ...] = ()
    uuid: str | None = None
    git_branch: str | None = None
    cwd: str | None = None

    @property
    def is_message(self) -> bool:
        return self.kind in MESSAGE_KINDS

    @property
    def role_label(self) -> str:
        return self.role or "other"


@dataclass(frozen=True)
class SessionFile:
    """A Claude Code session (JSONL file) found on disk."""

    path: Path
    session_id: str
    project_dir: str  # raw directory name, e.g. -Users-name-Code-project
    project: str  # display name derived from project_dir
    size_bytes: int = 0


@dataclass
class SessionSummary:
    """Aggregate facts about one session, derived by reading its file."""

    file: SessionFile
    record_count: int = 0
    message_count: int = 0
    first_timestamp: datetime | None = None
    last_timestamp: datetime | None = None
    git_branch: str | None = None
    preview: str | None = None
    error: str | None = None  # set when the file could not be read

    @property
    def session_id(self) -> str:
        return self.file.session_id

    @property
    def project(self) -> str:
        return self.file.project


@dataclass
class ProjectSummary:
    """Sessions grouped by project directory."""

    project: str
    project_dir: str = ""
    session_count: int = 0
    total_size_bytes: int = 0
    first_timestamp: datetime | None = None
    last_timestamp: datetime | None = None


@dataclass(frozen=True)
class Match:
    """A record that passed the filters and the matcher."""

    record: Record
    matched_terms: tuple[str, ...]
    line_number: int
    session_id: str
    project: str
    project_dir: str

    @property
    def timestamp(self) -> datetime | None:
        return self.record.timestamp


@dataclass(frozen=True)
class ScanWarning:
    """A recovered error: a skipped line or an unreadable file."""

    path: Path
    message: str
    line_number: int | None = None

    def __str__(self) -> str:
        if self.line_number is not None:
            return f"{self.path}:{self.line_number}: {self.message}"
        return f"{self.path}: {self.message}"


@dataclass
class FileScanResult:
    """Matches and warnings from scanning a single file."""

    session_id: str
    matches: list[Match] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)
    records_scanned: int = 0


@dataclass
class ScanOutcome:
    """Merged result of scanning many files."""

    matches: list[Match] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)
    files_scanned: int = 0


@dataclass
class CountView:
    rows: list[tuple[str, int]] = field(default_factory=list)  # (project, count)
    total: int = 0


@dataclass
class SummaryView:
    projects: list[tuple[str, int]] = field(default_factory=list)
    roles: list[tuple[str, int]] = field(default_factory=list)
    earliest: datetime | None = None
    latest: datetime | None = None
    session_count: int = 0
    topics: list[str] = field(default_factory=list)
    total: int = 0


@dataclass
class SearchReport:
    """What a search hands to the output layer."""

    terms: list[str]
    view: ViewMode
    matches: list[Match] = field(default_factory=list)
    counts: CountView | None = None
    summary: SummaryView | None = None
    warnings: list[ScanWarning] = field(default_factory=list)
    files_scanned: int = 0


@dataclass
class ContextEntry:
    line_number: int
    record: Record
    is_center: bool = False


@dataclass
class ToolCallEntry:
    line_number: int
    timestamp: datetime | None
    role: str
    tool_name: str
    arguments: Any = None


@dataclass
class CorpusStats:
    total_sessions: int
    total_size: int
    projects: list[ProjectSummary] = field(default_factory=list)


@dataclass
class FrequencyTable:
    mode: FrequencyMode
    label: str
    rows: list[tuple[str, int]] = field(default_factory=list)
    total: int = 0
    files: int = 0
    total_bytes: int = 0
    warnings: list[ScanWarning] = field(default_factory=list)
