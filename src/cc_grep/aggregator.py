"""Views over a set of matches: result list, per-project counts, summary."""

import re
from collections import Counter

from cc_grep.discovery import project_labels
from cc_grep.models import CountView, Match, SummaryView
from cc_grep.parser import searchable_text
from cc_grep.scanner import match_sort_key

TOPIC_MIN_LENGTH = 4
TOPIC_LIMIT = 10

TOKEN_SPLIT = re.compile(r"[^\w]+")

# Stop words to skip in topic extraction
STOP_WORDS = frozenset([
    "the", "and", "for", "that", "this", "with", "from", "are", "was",
    "were", "been", "have", "has", "had", "not", "but", "what", "all",
    "can", "her", "his", "one", "our", "out", "you", "your", "which",
    "their", "them", "then", "than", "into", "could", "would", "there",
    "about", "just", "like", "some", "also", "more", "when", "will",
    "each", "make", "way", "she", "how", "its", "may", "use", "used",
    "using", "let", "get", "got", "did", "does", "done", "any", "very",
    "here", "where", "should", "need", "don", "doesn", "isn", "they",
    "file", "line", "code", "run", "set", "new", "see", "now", "try", "want",
    "tool", "result", "true", "false", "null", "none",
])


def ranked(counter: Counter) -> list[tuple[str, int]]:
    """Counter items by count descending, then key."""
    return sorted(counter.items(), key=lambda item: (-item[1], item[0]))


def result_list(matches: list[Match], limit: int | None = None) -> list[Match]:
    ordered = sorted(matches, key=match_sort_key)
    if limit is not None and limit > 0:
        return ordered[:limit]
    return ordered


def by_project(matches: list[Match], counts: Counter) -> list[tuple[str, int]]:
    """Rank per-directory counts under each directory's label."""
    labels = project_labels({match.project_dir: match.project for match in matches})
    return ranked(Counter({labels[project_dir]: n for project_dir, n in counts.items()}))


def count_view(matches: list[Match]) -> CountView:
    counts = Counter(match.project_dir for match in matches)
    return CountView(rows=by_project(matches, counts), total=sum(counts.values()))


def extract_topics(
    texts: list[str],
    terms: list[str],
    limit: int = TOPIC_LIMIT,
) -> list[str]:
    """Most frequent meaningful tokens across texts.

    Stop words, tokens shorter than TOPIC_MIN_LENGTH and tokens containing a
    query term are skipped.
    """
    lowered_terms = [t.lower() for t in terms if t]
    words: Counter = Counter()
    for text in texts:
        for token in TOKEN_SPLIT.split(text.lower()):
            if len(token) < TOPIC_MIN_LENGTH or token in STOP_WORDS:
                continue
            words[token] += 1

    topics = [
        word
        for word, _ in ranked(words)
        if not any(term in word for term in lowered_terms)
    ]
    return topics[:limit]


def summary_view(
    matches: list[Match],
    terms: list[str],
    topic_limit: int = TOPIC_LIMIT,
) -> SummaryView:
    projects: Counter = Counter()
    roles: Counter = Counter()
    sessions: set[tuple[str, str]] = set()
    timestamps = []

    for match in matches:
        projects[match.project_dir] += 1
        roles[match.record.role_label] += 1
        sessions.add((match.project_dir, match.session_id))
        if match.timestamp is not None:
            timestamps.append(match.timestamp)

    ordered = sorted(timestamps, key=lambda ts: ts.timestamp())
    return SummaryView(
        projects=by_project(matches, projects),
        roles=ranked(roles),
        earliest=ordered[0] if ordered else None,
        latest=ordered[-1] if ordered else None,
        session_count=len(sessions),
        topics=extract_topics(
            [searchable_text(match.record) for match in matches], terms, topic_limit
        ),
        total=len(matches),
    )
