"""Controlled enumerations for the inbox-triage domain.

Every categorical field in the domain references an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


# ── Pattern library ──────────────────────────────────────────────────────────

class PatternKind(str, Enum):
    """Discriminant for the two pattern variants."""

    KEYWORD = "keyword"
    REGEX = "regex"


class Severity(str, Enum):
    """Severity attached to an individual detection rule."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class PatternCategory(str, Enum):
    URGENCY = "urgency"
    INCIDENT = "incident"
    DEADLINE = "deadline"
    ESCALATION = "escalation"
    VIP = "vip"
    OUTAGE = "outage"
    EMERGENCY = "emergency"


class ContextField(str, Enum):
    """Email fields a pattern may be matched against."""

    SUBJECT = "subject"
    BODY = "body"
    SENDER = "sender"


# ── Signals & scoring ────────────────────────────────────────────────────────

class SignalKind(str, Enum):
    """The four independent signals fused by the composite scorer.

    Declaration order is the order of ``RedFlagScore.signal_breakdown``.
    """

    KEYWORD = "keyword"
    VIP = "vip"
    VELOCITY = "velocity"
    CALENDAR = "calendar"


class RedFlagSeverity(str, Enum):
    """Coarse bucket derived from the composite score."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class VelocityReasonType(str, Enum):
    HIGH_VELOCITY = "high_velocity"
    MEDIUM_VELOCITY = "medium_velocity"
    RAPID_BACK_AND_FORTH = "rapid_back_and_forth"
    ESCALATION_LANGUAGE = "escalation_language"


class ProximityReasonType(str, Enum):
    TIME_PROXIMITY = "time_proximity"
    CONTENT_MATCH = "content_match"
    ATTENDEE_OVERLAP = "attendee_overlap"
    ORGANIZER_MATCH = "organizer_match"


# ── Calendar ─────────────────────────────────────────────────────────────────

class EventStatus(str, Enum):
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"
