"""Text utilities shared by the detectors.

Keyword extraction and Jaccard similarity are the only notion of "topic"
this layer has: no stemming, no embeddings.  Edit distance comes from
rapidfuzz's Levenshtein implementation.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from rapidfuzz.distance import Levenshtein

STOP_WORDS: frozenset[str] = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "her",
    "was", "one", "our", "out", "day", "get", "has", "him", "his", "how",
    "its", "may", "now", "see", "than", "that", "this", "will", "with", "from",
})

# Calendar content matching keeps "from"
CALENDAR_STOP_WORDS: frozenset[str] = STOP_WORDS - {"from"}

MIN_KEYWORD_LENGTH = 3

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

_SUBJECT_PREFIXES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^re:\s*", re.IGNORECASE),
    re.compile(r"^fwd?:\s*", re.IGNORECASE),
    re.compile(r"^fw:\s*", re.IGNORECASE),
    re.compile(r"^\[.*?\]\s*"),
)


# ── Keywords ─────────────────────────────────────────────────────────────────

def tokenize_keywords(text: str, stop_words: frozenset[str] = STOP_WORDS) -> list[str]:
    """Keyword tokens in text order, duplicates kept."""
    words = _WHITESPACE.split(_NON_WORD.sub(" ", text.lower()))
    return [w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in stop_words]


def extract_keywords(text: str, stop_words: frozenset[str] = STOP_WORDS) -> set[str]:
    """Lowercase, stop-word-filtered tokens of at least three characters."""
    return set(tokenize_keywords(text, stop_words))


def jaccard_similarity(a: Iterable[str], b: Iterable[str], *, empty: float = 0.0) -> float:
    """|a ∩ b| / |a ∪ b|.

    ``empty`` is returned when both sets are empty; when exactly one is
    empty the similarity is 0.0.
    """
    set_a, set_b = set(a), set(b)
    if not set_a and not set_b:
        return empty
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


# ── Subjects & addresses ─────────────────────────────────────────────────────

def normalize_subject(subject: str) -> str:
    """Strip repeated Re:/Fwd:/Fw:/[tag] prefixes and collapse whitespace."""
    normalized = subject
    changed = True
    while changed:
        changed = False
        for prefix in _SUBJECT_PREFIXES:
            stripped = prefix.sub("", normalized, count=1)
            if stripped != normalized:
                normalized = stripped
                changed = True
    return _WHITESPACE.sub(" ", normalized.strip())


def normalize_address(address: str) -> str:
    return address.strip().lower()


# ── Edit distance ────────────────────────────────────────────────────────────

def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def similarity_ratio(a: str, b: str) -> float:
    """1 - distance / max(len); two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest
