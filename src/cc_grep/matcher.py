"""Query term matching (literal or regex, OR or AND)."""

import re

from cc_grep.errors import InvalidQuery
from cc_grep.models import CombineMode, MatchMode


class Matcher:
    """Evaluates a set of query terms against record text.

    Regex terms are compiled once, case-insensitively. Instances pickle cleanly
    so they can be shipped to worker processes.
    """

    def __init__(
        self,
        terms: list[str],
        mode: MatchMode = MatchMode.LITERAL,
        combine: CombineMode = CombineMode.OR,
        match_all: bool = False,
    ):
        if match_all:
            terms = []
        elif not terms:
            raise InvalidQuery("Search query cannot be empty")
        if any(not term.strip() for term in terms):
            raise InvalidQuery("Search terms cannot be blank")

        self.terms = list(terms)
        self.mode = MatchMode(mode)
        self.combine = CombineMode(combine)
        self.match_all = match_all

        self.patterns: list[re.Pattern[str]] = []
        self.lowered: list[str] = []
        if self.mode == MatchMode.REGEX:
            for term in self.terms:
                try:
                    self.patterns.append(re.compile(term, re.IGNORECASE))
                except re.error as e:
                    raise InvalidQuery(f"Invalid regex '{term}': {e}") from None
        else:
            self.lowered = [term.lower() for term in self.terms]

    @classmethod
    def everything(cls) -> "Matcher":
        """A matcher that accepts any text and reports no terms."""
        return cls([], match_all=True)

    def _hits(self, text: str) -> list[bool]:
        if self.mode == MatchMode.REGEX:
            return [pattern.search(text) is not None for pattern in self.patterns]
        lower = text.lower()
        return [term in lower for term in self.lowered]

    def match(self, text: str) -> tuple[str, ...] | None:
        """Return the matched terms, or None if the text does not match."""
        if self.match_all:
            return ()

        if self.combine == CombineMode.AND:
            if self.mode == MatchMode.REGEX:
                ok = all(pattern.search(text) for pattern in self.patterns)
            else:
                lower = text.lower()
                ok = all(term in lower for term in self.lowered)
            return tuple(self.terms) if ok else None

        matched = tuple(term for term, hit in zip(self.terms, self._hits(text)) if hit)
        return matched or None

    def __repr__(self) -> str:
        if self.match_all:
            return "Matcher(<everything>)"
        return f"Matcher({self.terms!r}, mode={self.mode.value}, combine={self.combine.value})"
