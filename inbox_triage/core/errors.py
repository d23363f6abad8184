"""Exceptions raised by the triage engines.

Scoring itself never raises on degenerate input; these are configuration-time
failures only.
"""

from __future__ import annotations


class TriageError(Exception):
    """Base class for inbox-triage configuration errors."""


class InvalidPatternError(TriageError, ValueError):
    """Raised when a pattern definition cannot be built (e.g. bad regex)."""

    def __init__(self, pattern_id: str, reason: str) -> None:
        self.pattern_id = pattern_id
        self.reason = reason
        super().__init__(f"Pattern '{pattern_id}' is invalid: {reason}")


class DuplicatePatternError(TriageError, ValueError):
    """Raised when a catalog would contain two patterns with the same id."""

    def __init__(self, pattern_id: str) -> None:
        self.pattern_id = pattern_id
        super().__init__(f"Duplicate pattern id: '{pattern_id}'")


class InvalidOptionsError(TriageError, ValueError):
    """Raised when engine options are out of range or inconsistent."""
