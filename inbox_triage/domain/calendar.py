"""Calendar proximity models — how an email relates to upcoming events."""

from __future__ import annotations

from pydantic import BaseModel, Field

from inbox_triage.domain.email import CalendarEvent
from inbox_triage.domain.enums import ProximityReasonType


class ProximityReason(BaseModel):
    type: ProximityReasonType
    description: str
    weight: float = Field(..., ge=0.0)
    event_id: str

    model_config = {"frozen": True}


class RelevantEvent(BaseModel):
    """An upcoming event that scored above zero for a given email."""

    event: CalendarEvent
    proximity_score: float = Field(..., ge=0.0, le=1.0)
    time_to_event_hours: float = Field(..., description="Hours from reference time to start, 1 decimal")
    content_similarity: float = Field(..., ge=0.0, le=1.0)
    attendee_overlap: list[str] = Field(default_factory=list)
    is_organizer_match: bool = False

    model_config = {"frozen": True}


class CalendarProximityResult(BaseModel):
    """Per-email calendar correlation.

    ``score`` is the maximum per-event score, not a sum across events.
    """

    has_proximity: bool = False
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    relevant_events: list[RelevantEvent] = Field(default_factory=list)
    reasons: list[ProximityReason] = Field(default_factory=list)

    model_config = {"frozen": True}
