"""Red-flag scoring models — the composite, explainable verdict for one email.

A RedFlagScore is derived entirely from the per-signal results handed to the
scorer.  Absent signals are reported (``is_present=False``) but never dilute
the score of the present ones.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from inbox_triage.domain.calendar import CalendarProximityResult
from inbox_triage.domain.email import VipDetectionResult
from inbox_triage.domain.enums import RedFlagSeverity, SignalKind
from inbox_triage.domain.patterns import KeywordMatchResult
from inbox_triage.domain.velocity import VelocityResult


class RedFlagSignals(BaseModel):
    """The four optional inputs to composite scoring."""

    keyword_match: Optional[KeywordMatchResult] = None
    vip_detection: Optional[VipDetectionResult] = None
    thread_velocity: Optional[VelocityResult] = None
    calendar_proximity: Optional[CalendarProximityResult] = None

    model_config = {"frozen": True}

    @property
    def present(self) -> list[SignalKind]:
        present = []
        if self.keyword_match is not None:
            present.append(SignalKind.KEYWORD)
        if self.vip_detection is not None:
            present.append(SignalKind.VIP)
        if self.thread_velocity is not None:
            present.append(SignalKind.VELOCITY)
        if self.calendar_proximity is not None:
            present.append(SignalKind.CALENDAR)
        return present


class SignalContribution(BaseModel):
    signal: SignalKind
    raw_score: float = Field(..., ge=0.0, le=1.0)
    weight: float = Field(..., ge=0.0)
    contribution: float = Field(..., ge=0.0, description="raw_score * weight, 0 when absent")
    is_present: bool

    model_config = {"frozen": True}


class ScoringReason(BaseModel):
    """A reason from one signal, tagged with the signal that produced it."""

    signal: SignalKind
    type: str
    description: str
    weight: float

    model_config = {"frozen": True}


class RedFlagScore(BaseModel):
    is_flagged: bool
    score: float = Field(..., ge=0.0, le=1.0, description="Composite score, 2 decimals")
    severity: RedFlagSeverity
    signal_breakdown: list[SignalContribution] = Field(..., min_length=4, max_length=4)
    reasons: list[ScoringReason] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("signal_breakdown")
    @classmethod
    def one_entry_per_signal(cls, v: list[SignalContribution]) -> list[SignalContribution]:
        if {c.signal for c in v} != set(SignalKind):
            raise ValueError("signal_breakdown must contain exactly one entry per signal")
        return v

    def contribution_for(self, signal: SignalKind) -> SignalContribution:
        for entry in self.signal_breakdown:
            if entry.signal == signal:
                return entry
        raise KeyError(signal)
