"""KeywordMatcher — matches one email against the pattern library.

Matching rules:
    1. Each pattern is checked against each of its context fields.
       Field text: subject; body (snippet when absent); sender as
       "display-name email".
    2. KEYWORD patterns: case-insensitive substring search (unless the rule
       is case-sensitive).  On a miss, and when fuzzy matching is enabled,
       fall back to an edit-distance search over windows of 1, 2 and 3
       consecutive words.
    3. REGEX patterns: first occurrence only, compiled at catalog build.
    4. aggregate_weight counts each matched pattern id once, however many
       fields it hit.

Fuzzy acceptance needs BOTH distance <= max_fuzzy_distance AND
similarity ratio >= fuzzy_match_threshold.  Exact matching never depends
on the fuzzy settings.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from inbox_triage.core.errors import InvalidOptionsError
from inbox_triage.core.pattern_catalog import PatternCatalog, PatternLike, build_pattern, default_catalog
from inbox_triage.core.text import levenshtein_distance, similarity_ratio
from inbox_triage.domain.email import Email
from inbox_triage.domain.enums import ContextField, PatternKind
from inbox_triage.domain.patterns import KeywordMatchResult, Pattern, PatternMatch

logger = logging.getLogger(__name__)

# Window sizes (in words) tried by the fuzzy search, in order.
FUZZY_WINDOW_SIZES: tuple[int, ...] = (1, 2, 3)


@dataclass(frozen=True)
class MatcherOptions:
    """Fuzzy matching configuration."""

    enable_fuzzy_matching: bool = True
    # Minimum similarity ratio (1 - distance / max length)
    fuzzy_match_threshold: float = 0.8
    # Maximum Levenshtein distance
    max_fuzzy_distance: int = 2

    def __post_init__(self) -> None:
        if not 0.0 <= self.fuzzy_match_threshold <= 1.0:
            raise InvalidOptionsError("fuzzy_match_threshold must be within [0, 1]")
        if self.max_fuzzy_distance < 0:
            raise InvalidOptionsError("max_fuzzy_distance must be non-negative")


@dataclass(frozen=True)
class _FuzzyHit:
    matched_text: str
    position: Optional[int]


# ── Field extraction ─────────────────────────────────────────────────────────

def field_text(email: Email, field: ContextField) -> str:
    if field == ContextField.SUBJECT:
        return email.subject
    if field == ContextField.BODY:
        return email.text_body
    if field == ContextField.SENDER:
        return email.sender_text
    return ""


# ── Fuzzy search ─────────────────────────────────────────────────────────────

def fuzzy_search(
    text: str,
    keyword: str,
    *,
    threshold: float,
    max_distance: int,
    case_sensitive: bool = False,
) -> Optional[_FuzzyHit]:
    """Find *keyword* in *text*, tolerating small edit distances.

    An exact substring hit is always returned first.  Otherwise the first
    1-, 2- or 3-word window (scanning left to right, shortest window first)
    within both the distance and similarity limits wins.
    """
    search_text = text if case_sensitive else text.lower()
    search_keyword = keyword if case_sensitive else keyword.lower()

    index = search_text.find(search_keyword)
    if index != -1:
        return _FuzzyHit(text[index:index + len(keyword)], index)

    words = search_text.split()
    for i in range(len(words)):
        for size in FUZZY_WINDOW_SIZES:
            if i + size > len(words):
                break
            window = " ".join(words[i:i + size])
            if levenshtein_distance(window, search_keyword) > max_distance:
                continue
            if similarity_ratio(window, search_keyword) < threshold:
                continue
            position = search_text.find(window)
            if position == -1:
                return _FuzzyHit(window, None)
            return _FuzzyHit(text[position:position + len(window)], position)
    return None


# ── Matcher ──────────────────────────────────────────────────────────────────

class KeywordMatcher:
    """Matches emails against a PatternCatalog.

    Safe to call concurrently: matching only reads the catalog and options.
    ``reconfigure`` swaps both in a single assignment; callers that need
    strict isolation should build a fresh matcher instead.
    """

    def __init__(
        self,
        catalog: PatternCatalog | None = None,
        options: MatcherOptions | None = None,
    ) -> None:
        self._config: tuple[PatternCatalog, MatcherOptions] = (
            catalog if catalog is not None else default_catalog(),
            options or MatcherOptions(),
        )

    # ── Configuration ────────────────────────────────────────────────────

    @property
    def catalog(self) -> PatternCatalog:
        return self._config[0]

    @property
    def options(self) -> MatcherOptions:
        return self._config[1]

    def reconfigure(
        self,
        catalog: PatternCatalog | None = None,
        options: MatcherOptions | None = None,
    ) -> None:
        """Atomically replace the catalog and/or options."""
        current_catalog, current_options = self._config
        self._config = (
            catalog if catalog is not None else current_catalog,
            options or current_options,
        )
        logger.info(
            "KeywordMatcher reconfigured: rules=%d fuzzy=%s",
            len(self.catalog), self.options.enable_fuzzy_matching,
        )

    def add_patterns(self, patterns: Iterable[PatternLike]) -> None:
        """Append custom patterns (fails fast on bad regex or duplicate id)."""
        self.reconfigure(catalog=self.catalog.extend(patterns))

    # ── Public API ───────────────────────────────────────────────────────

    def match_email(self, email: Email) -> KeywordMatchResult:
        """Match an email against every pattern in the catalog."""
        catalog, options = self._config
        return self._match(email, catalog.patterns, options)

    def match_email_with_patterns(
        self,
        email: Email,
        patterns: Iterable[PatternLike],
    ) -> KeywordMatchResult:
        """Match an email against an ad-hoc pattern set."""
        built = [build_pattern(p) for p in patterns]
        return self._match(email, built, self.options)

    def match_emails(self, emails: Iterable[Email]) -> dict[str, KeywordMatchResult]:
        """Batch variant keyed by email id.  Fails fast on the first error."""
        catalog, options = self._config
        results = {email.id: self._match(email, catalog.patterns, options) for email in emails}
        logger.info(
            "Matched %d email(s); %d with red-flag patterns",
            len(results), sum(1 for r in results.values() if r.has_matches),
        )
        return results

    # ── Internals ────────────────────────────────────────────────────────

    def _match(
        self,
        email: Email,
        patterns: Iterable[Pattern],
        options: MatcherOptions,
    ) -> KeywordMatchResult:
        matches: list[PatternMatch] = []
        weights: dict[str, float] = {}

        for pattern in patterns:
            found = self._match_pattern(pattern, email, options)
            if found:
                matches.extend(found)
                weights.setdefault(pattern.id, pattern.weight)

        aggregate = sum(weights.values())
        logger.debug(
            "Email %s: %d match(es) across %d pattern(s), aggregate_weight=%.2f",
            email.id, len(matches), len(weights), aggregate,
        )
        return KeywordMatchResult(
            matches=matches,
            total_matches=len(matches),
            has_matches=bool(matches),
            aggregate_weight=aggregate,
        )

    @staticmethod
    def _match_pattern(
        pattern: Pattern,
        email: Email,
        options: MatcherOptions,
    ) -> list[PatternMatch]:
        matches: list[PatternMatch] = []

        for field in pattern.context_fields:
            text = field_text(email, field)
            if not text:
                continue

            if pattern.kind == PatternKind.REGEX:
                hit = pattern.compiled.search(text)
                if hit:
                    matches.append(PatternMatch(
                        pattern=pattern, field=field,
                        matched_text=hit.group(0), position=hit.start(),
                    ))
                continue

            search_text = text if pattern.case_sensitive else text.lower()
            search_keyword = pattern.pattern if pattern.case_sensitive else pattern.pattern.lower()
            index = search_text.find(search_keyword)
            if index != -1:
                matches.append(PatternMatch(
                    pattern=pattern, field=field,
                    matched_text=text[index:index + len(pattern.pattern)], position=index,
                ))
                continue

            if not options.enable_fuzzy_matching:
                continue

            fuzzy = fuzzy_search(
                text,
                pattern.pattern,
                threshold=options.fuzzy_match_threshold,
                max_distance=options.max_fuzzy_distance,
                case_sensitive=pattern.case_sensitive,
            )
            if fuzzy is not None:
                matches.append(PatternMatch(
                    pattern=pattern, field=field,
                    matched_text=fuzzy.matched_text, position=fuzzy.position,
                ))

        return matches
