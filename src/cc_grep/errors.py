"""Error types raised by the search engine."""

from pathlib import Path


class CCGrepError(Exception):
    """Base class for all cc-grep errors."""


class MalformedRecord(CCGrepError):
    """A single log line could not be decoded into a record.

    Recovered locally: the line is skipped and scanning continues.
    """

    def __init__(self, reason: str, line_number: int | None = None):
        self.reason = reason
        self.line_number = line_number
        where = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}{reason}")


class FileReadError(CCGrepError):
    """A session file (or the corpus root) could not be opened or read."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class InvalidQuery(CCGrepError):
    """The query cannot be evaluated (empty terms, bad regex, unknown mode)."""


class InvalidDateBound(CCGrepError):
    """A date filter value could not be parsed."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid date '{value}' (expected YYYY-MM-DD)")


class SessionNotFound(CCGrepError):
    """No known session id starts with the given prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"No session found matching '{prefix}'")


class AmbiguousPrefix(CCGrepError):
    """More than one session id starts with the given prefix."""

    def __init__(self, prefix: str, candidates: list[str]):
        self.prefix = prefix
        self.candidates = sorted(candidates)
        super().__init__(
            f"Ambiguous session ID '{prefix}', {len(self.candidates)} matches"
        )
