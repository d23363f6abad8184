"""Input contracts — the mailbox and calendar shapes this layer consumes.

These models are owned by the email-provider and calendar-sync layers; they
are restated here so the triage engines can validate at the boundary and
never re-check field constraints downstream.  Only the documented optional
fallbacks exist: body falls back to snippet, and a missing attendee list is
an empty list.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from inbox_triage.domain.enums import EventStatus
from inbox_triage.foundation.clock import ensure_utc


# ── Addresses ────────────────────────────────────────────────────────────────

class Sender(BaseModel):
    """A mailbox address with an optional display name."""

    email: str = Field(..., min_length=1, max_length=320)
    name: Optional[str] = Field(default=None, max_length=256)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.name or ''} {self.email}".strip()


class Attendee(BaseModel):
    """A calendar participant (attendee or organizer)."""

    email: str = Field(..., min_length=1, max_length=320)
    name: Optional[str] = None

    model_config = {"frozen": True}


# ── Email ────────────────────────────────────────────────────────────────────

class Email(BaseModel):
    """A single message as delivered by the unified inbox."""

    id: str = Field(..., min_length=1)
    thread_id: Optional[str] = Field(default=None, description="Provider thread id, if any")
    subject: str = ""
    sender: Sender
    recipients: list[Sender] = Field(default_factory=list)
    body: Optional[str] = Field(default=None, description="Full plain-text body")
    snippet: Optional[str] = Field(default=None, description="Preview text, used when body is absent")
    received_at: datetime

    model_config = {"frozen": True}

    @field_validator("received_at")
    @classmethod
    def received_at_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def text_body(self) -> str:
        """Body text, falling back to the snippet when the body is absent."""
        if self.body is not None:
            return self.body
        return self.snippet or ""

    @property
    def sender_text(self) -> str:
        """"display-name email" as used by sender-field patterns."""
        return str(self.sender)

    @property
    def content_text(self) -> str:
        """Subject and body joined — the text keyword extraction runs over."""
        return f"{self.subject} {self.text_body}"


class Thread(BaseModel):
    """A conversation with its member messages in provider order."""

    id: str = Field(..., min_length=1)
    subject: str = ""
    participants: list[Sender] = Field(default_factory=list)
    messages: list[Email] = Field(default_factory=list)

    model_config = {"frozen": True}


# ── Calendar ─────────────────────────────────────────────────────────────────

class CalendarEvent(BaseModel):
    """An event from the user's calendar window."""

    id: str = Field(..., min_length=1)
    title: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: datetime
    attendees: list[Attendee] = Field(default_factory=list)
    organizer: Attendee
    status: EventStatus = EventStatus.CONFIRMED

    model_config = {"frozen": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def times_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("attendees", mode="before")
    @classmethod
    def missing_attendees_are_empty(cls, v):
        return [] if v is None else v

    @property
    def content_text(self) -> str:
        return f"{self.title} {self.description or ''} {self.location or ''}"


# ── VIP (external signal, consumed only) ─────────────────────────────────────

class VipReason(BaseModel):
    type: str = Field(..., min_length=1, description="explicit_vip, high_interaction, job_title, ...")
    description: str = ""
    weight: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = {"frozen": True}


class VipDetectionResult(BaseModel):
    """Sender-importance signal produced by the VIP detector."""

    is_vip: bool = False
    score: float = Field(..., ge=0.0, le=1.0)
    reasons: list[VipReason] = Field(default_factory=list)

    model_config = {"frozen": True}
