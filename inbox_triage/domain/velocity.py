"""VelocityResult — reply cadence and escalation observations for one thread."""

from __future__ import annotations

from pydantic import BaseModel, Field

from inbox_triage.domain.enums import VelocityReasonType


class VelocityReason(BaseModel):
    type: VelocityReasonType
    description: str
    weight: float = Field(..., ge=0.0, le=1.0)

    model_config = {"frozen": True}


class VelocityResult(BaseModel):
    """Immutable velocity observation of a thread.

    Contributions are additive: simultaneous symptoms compound, capped at 1.0.
    """

    is_high_velocity: bool = False
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    reply_frequency: float = Field(default=0.0, ge=0.0, description="Messages per hour over the thread timespan")
    avg_time_between_replies: float = Field(default=0.0, ge=0.0, description="Minutes, 1 decimal")
    has_escalation_language: bool = False
    escalation_phrases: list[str] = Field(default_factory=list)
    reasons: list[VelocityReason] = Field(default_factory=list)
    message_count: int = Field(default=0, ge=0)
    thread_timespan_hours: float = Field(default=0.0, ge=0.0, description="Hours, 1 decimal")

    model_config = {"frozen": True}

    @classmethod
    def neutral(cls, message_count: int = 0) -> VelocityResult:
        """The zero result for threads too short to have a cadence."""
        return cls(message_count=message_count)
