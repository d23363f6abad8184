"""Pattern models — weighted detection rules and their matches.

A pattern is a tagged variant: either a KEYWORD (literal string, matched as a
substring with fuzzy fallback) or a REGEX (compiled once, first match only).
The ``kind`` field is the explicit discriminant, so plain dicts validate
straight into the right variant through ``PatternAdapter``.

Patterns are immutable.  A regex that does not compile is rejected when the
model is built, never when an email is matched.
"""

from __future__ import annotations

import re
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, PrivateAttr, TypeAdapter, field_validator

from inbox_triage.domain.enums import ContextField, PatternCategory, PatternKind, Severity


class _PatternBase(BaseModel):
    id: str = Field(..., min_length=1, max_length=128, description="Globally unique rule id")
    pattern: str = Field(..., min_length=1, description="Literal keyword or regular expression")
    severity: Severity
    weight: float = Field(..., ge=0.0, le=1.0, description="Contribution to aggregate weight")
    category: PatternCategory
    context_fields: list[ContextField] = Field(..., min_length=1)
    description: str = ""
    case_sensitive: bool = False

    model_config = {"frozen": True}


class KeywordPattern(_PatternBase):
    """Literal keyword, matched case-insensitively unless marked otherwise."""

    kind: Literal["keyword"] = PatternKind.KEYWORD.value


class RegexPattern(_PatternBase):
    """Regular expression, compiled once when the pattern is built."""

    kind: Literal["regex"] = PatternKind.REGEX.value

    _compiled: re.Pattern[str] = PrivateAttr()

    @field_validator("pattern")
    @classmethod
    def pattern_must_compile(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid regular expression {v!r}: {exc}") from exc
        return v

    def model_post_init(self, __context) -> None:
        flags = 0 if self.case_sensitive else re.IGNORECASE
        self._compiled = re.compile(self.pattern, flags)

    @property
    def compiled(self) -> re.Pattern[str]:
        return self._compiled


Pattern = Annotated[Union[KeywordPattern, RegexPattern], Field(discriminator="kind")]

PatternAdapter: TypeAdapter[Pattern] = TypeAdapter(Pattern)


class PatternMatch(BaseModel):
    """A single occurrence of a pattern in one field of an email.

    Matches are not de-duplicated: a rule hitting subject and body yields two.
    """

    pattern: Pattern
    field: ContextField
    matched_text: str
    position: Optional[int] = Field(default=None, description="Character offset, when known")

    model_config = {"frozen": True}


class KeywordMatchResult(BaseModel):
    """All pattern matches for one email."""

    matches: list[PatternMatch] = Field(default_factory=list)
    total_matches: int = 0
    has_matches: bool = False
    aggregate_weight: float = Field(
        default=0.0,
        ge=0.0,
        description="Sum of weights of the unique pattern ids that matched",
    )

    model_config = {"frozen": True}

    @property
    def matched_pattern_ids(self) -> list[str]:
        """Unique matched pattern ids in first-match order."""
        return list(dict.fromkeys(m.pattern.id for m in self.matches))
