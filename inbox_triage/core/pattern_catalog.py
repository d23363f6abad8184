"""Pattern library — the default red-flag rules and an immutable catalog.

Weights follow the severity bands used by composite scoring:
    HIGH    0.8 – 1.0
    MEDIUM  0.5 – 0.7
    LOW     0.2 – 0.4

A PatternCatalog is built once and never mutated.  ``extend`` returns a new
catalog, so a matcher can swap catalogs while other callers keep scoring
against the old one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from functools import lru_cache
from typing import Any, Optional, Union

from pydantic import ValidationError

from inbox_triage.core.errors import DuplicatePatternError, InvalidPatternError
from inbox_triage.domain.enums import ContextField, PatternCategory, Severity
from inbox_triage.domain.patterns import KeywordPattern, Pattern, PatternAdapter, RegexPattern

logger = logging.getLogger(__name__)

PatternLike = Union[KeywordPattern, RegexPattern, dict[str, Any]]

_SB = [ContextField.SUBJECT, ContextField.BODY]


def _keyword(pattern_id: str, keyword: str, severity: Severity, weight: float,
             category: PatternCategory, description: str) -> KeywordPattern:
    return KeywordPattern(
        id=pattern_id, pattern=keyword, severity=severity, weight=weight,
        category=category, context_fields=_SB, description=description,
    )


def _regex(pattern_id: str, expression: str, severity: Severity, weight: float,
           category: PatternCategory, description: str,
           fields: Optional[list[ContextField]] = None) -> RegexPattern:
    return RegexPattern(
        id=pattern_id, pattern=expression, severity=severity, weight=weight,
        category=category, context_fields=fields or _SB, description=description,
    )


# ── Default rules ────────────────────────────────────────────────────────────

DEFAULT_PATTERNS: tuple[Pattern, ...] = (
    # Urgency
    _keyword("urgency-urgent-keyword", "urgent", Severity.HIGH, 0.9, PatternCategory.URGENCY,
             'Detects "urgent" keyword indicating time-sensitive matter'),
    _keyword("urgency-asap-keyword", "asap", Severity.HIGH, 0.85, PatternCategory.URGENCY,
             'Detects "ASAP" abbreviation for urgent requests'),
    _keyword("urgency-immediate-keyword", "immediate", Severity.HIGH, 0.9, PatternCategory.URGENCY,
             'Detects "immediate" indicating need for instant action'),
    _regex("urgency-priority-high-regex", r"\b(high|top|critical)\s+priority\b",
           Severity.HIGH, 0.85, PatternCategory.URGENCY,
           "Detects high/top/critical priority mentions"),
    _regex("urgency-time-sensitive-regex", r"\btime[- ]sensitive\b",
           Severity.HIGH, 0.8, PatternCategory.URGENCY,
           'Detects "time-sensitive" or "time sensitive" phrases'),

    # Deadlines
    _keyword("deadline-keyword", "deadline", Severity.HIGH, 0.85, PatternCategory.DEADLINE,
             'Detects "deadline" keyword for time-bound tasks'),
    _regex("deadline-due-today-regex", r"\bdue\s+(today|now|immediately|eod|end of (day|week))\b",
           Severity.HIGH, 0.95, PatternCategory.DEADLINE,
           "Detects immediate due dates (today, now, EOD)"),
    _regex("deadline-overdue-regex", r"\b(overdue|past\s+due|late|missed\s+deadline)\b",
           Severity.HIGH, 1.0, PatternCategory.DEADLINE,
           "Detects overdue or missed deadline language"),
    _regex("deadline-response-needed-regex",
           r"\b(need|require|must have)\s+(your\s+)?(response|reply|answer|feedback)\s+(by|before|asap)\b",
           Severity.MEDIUM, 0.7, PatternCategory.DEADLINE,
           "Detects requests for timely response"),

    # Incidents & outages
    _keyword("incident-keyword", "incident", Severity.HIGH, 0.9, PatternCategory.INCIDENT,
             'Detects "incident" keyword for system issues'),
    _keyword("incident-outage-keyword", "outage", Severity.HIGH, 0.95, PatternCategory.OUTAGE,
             'Detects "outage" keyword for service disruptions'),
    _regex("incident-down-regex",
           r"\b(system|service|server|website|application|app|site)\s+(is\s+)?(down|offline|unavailable|not\s+working)\b",
           Severity.HIGH, 0.95, PatternCategory.INCIDENT,
           "Detects system/service down notifications"),
    _regex("incident-production-issue-regex", r"\b(production|prod|live)\s+(issue|problem|bug|error|failure)\b",
           Severity.HIGH, 0.9, PatternCategory.INCIDENT,
           "Detects production environment issues"),
    _regex("incident-critical-bug-regex", r"\bcritical\s+(bug|issue|error|defect)\b",
           Severity.HIGH, 0.9, PatternCategory.INCIDENT,
           "Detects critical bug reports"),

    # Emergencies
    _keyword("emergency-keyword", "emergency", Severity.HIGH, 1.0, PatternCategory.EMERGENCY,
             'Detects "emergency" keyword for critical situations'),
    _keyword("emergency-critical-keyword", "critical", Severity.HIGH, 0.9, PatternCategory.EMERGENCY,
             'Detects "critical" keyword for severe issues'),
    _regex("emergency-alert-regex", r"\b(red\s+alert|code\s+red|sev[- ]?1|severity\s+1|p0|priority\s+0)\b",
           Severity.HIGH, 1.0, PatternCategory.EMERGENCY,
           "Detects highest severity alerts (Sev1, P0, Code Red)"),
    _regex("emergency-security-breach-regex",
           r"\b(security\s+)?(breach|hack|compromise|attack|vulnerability|exploit)\b",
           Severity.HIGH, 1.0, PatternCategory.EMERGENCY,
           "Detects security incidents and breaches"),

    # Escalation
    _keyword("escalation-keyword", "escalation", Severity.MEDIUM, 0.7, PatternCategory.ESCALATION,
             'Detects "escalation" keyword indicating management involvement'),
    _regex("escalation-escalate-regex", r"\b(escalate|escalating|escalated)\s+(to|this|the\s+issue)\b",
           Severity.MEDIUM, 0.7, PatternCategory.ESCALATION,
           "Detects escalation action verbs"),
    _regex("escalation-management-attention-regex",
           r"\b(ceo|cto|cfo|vp|director|executive|management|leadership)\s+(needs|requires|wants|attention)\b",
           Severity.HIGH, 0.85, PatternCategory.ESCALATION,
           "Detects executive/management attention requirements"),

    # VIP indicators
    _regex("vip-exec-titles-regex", r"\b(ceo|cto|cfo|coo|president|vice\s+president|vp|director|head\s+of)\b",
           Severity.MEDIUM, 0.6, PatternCategory.VIP,
           "Detects executive titles in sender or signature",
           fields=[ContextField.SENDER, ContextField.BODY]),
    _regex("vip-board-member-regex", r"\b(board\s+member|board\s+of\s+directors|founder|co-founder)\b",
           Severity.HIGH, 0.8, PatternCategory.VIP,
           "Detects board members and founders",
           fields=[ContextField.SENDER, ContextField.BODY]),

    # Additional context
    _regex("urgency-action-required-regex", r"\b(action|attention)\s+(required|needed|requested)\b",
           Severity.MEDIUM, 0.65, PatternCategory.URGENCY,
           "Detects action/attention required phrases"),
    _regex("urgency-please-respond-regex",
           r"\bplease\s+(respond|reply|get back)\s+(asap|immediately|urgently|soon)\b",
           Severity.MEDIUM, 0.6, PatternCategory.URGENCY,
           "Detects urgent response requests",
           fields=[ContextField.BODY]),
    _regex("incident-customer-impact-regex",
           r"\b(customer|client|user)s?\s+(affected|impacted|complaining|reporting)\b",
           Severity.HIGH, 0.85, PatternCategory.INCIDENT,
           "Detects customer impact notifications",
           fields=[ContextField.BODY]),
    _regex("deadline-final-reminder-regex", r"\b(final|last|urgent)\s+(reminder|notice|warning)\b",
           Severity.HIGH, 0.8, PatternCategory.DEADLINE,
           "Detects final reminder/warning messages"),
)


# ── Catalog ──────────────────────────────────────────────────────────────────

def build_pattern(raw: PatternLike) -> Pattern:
    """Validate a pattern instance or dict into a concrete pattern variant.

    Raises:
        InvalidPatternError: If the definition is malformed or its regex
            does not compile.
    """
    if isinstance(raw, (KeywordPattern, RegexPattern)):
        return raw
    try:
        return PatternAdapter.validate_python(raw)
    except ValidationError as exc:
        pattern_id = raw.get("id", "<unknown>") if isinstance(raw, dict) else "<unknown>"
        raise InvalidPatternError(str(pattern_id), str(exc)) from exc


class PatternCatalog:
    """An immutable, id-indexed collection of patterns.

    Construction fails fast: every regex is compiled and every id checked
    for uniqueness before the catalog is usable.
    """

    __slots__ = ("_patterns", "_by_id")

    def __init__(self, patterns: Iterable[PatternLike] = DEFAULT_PATTERNS) -> None:
        built: list[Pattern] = []
        by_id: dict[str, Pattern] = {}
        for raw in patterns:
            pattern = build_pattern(raw)
            if pattern.id in by_id:
                raise DuplicatePatternError(pattern.id)
            by_id[pattern.id] = pattern
            built.append(pattern)
        self._patterns: tuple[Pattern, ...] = tuple(built)
        self._by_id = by_id

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def patterns(self) -> tuple[Pattern, ...]:
        return self._patterns

    def get(self, pattern_id: str) -> Optional[Pattern]:
        return self._by_id.get(pattern_id)

    def weight_of(self, pattern_id: str) -> float:
        pattern = self._by_id.get(pattern_id)
        return pattern.weight if pattern is not None else 0.0

    def by_category(self, category: PatternCategory) -> list[Pattern]:
        return [p for p in self._patterns if p.category == category]

    def by_severity(self, severity: Severity) -> list[Pattern]:
        return [p for p in self._patterns if p.severity == severity]

    def for_field(self, field: ContextField) -> list[Pattern]:
        return [p for p in self._patterns if field in p.context_fields]

    # ── Derivation ───────────────────────────────────────────────────────

    def extend(self, patterns: Iterable[PatternLike]) -> PatternCatalog:
        """Return a new catalog with *patterns* appended."""
        extended = PatternCatalog([*self._patterns, *patterns])
        logger.info("Extended pattern catalog: %d → %d rules", len(self), len(extended))
        return extended

    # ── Dunder ───────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._by_id

    def __repr__(self) -> str:
        return f"PatternCatalog(rules={len(self)})"


@lru_cache(maxsize=1)
def default_catalog() -> PatternCatalog:
    """The process-wide default catalog, built on first use."""
    return PatternCatalog(DEFAULT_PATTERNS)
