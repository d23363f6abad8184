"""CalendarProximityDetector — correlates an email with upcoming events.

Per-event contributions (summed, capped at 1.0):
    time_proximity     0.6 x step(hours to start)
    content_match      0.7 x Jaccard(email keywords, event keywords), if >= 0.3
    attendee_overlap   0.8 flat when the sender is an attendee
    organizer_match    0.9 flat when the sender organises the event

The overall score is the best single event, never a sum across events.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Optional

from inbox_triage.core.errors import InvalidOptionsError
from inbox_triage.core.text import CALENDAR_STOP_WORDS, extract_keywords, jaccard_similarity, normalize_address
from inbox_triage.domain.calendar import CalendarProximityResult, ProximityReason, RelevantEvent
from inbox_triage.domain.email import CalendarEvent, Email
from inbox_triage.domain.enums import EventStatus, ProximityReasonType
from inbox_triage.foundation.clock import ensure_utc, utc_now

logger = logging.getLogger(__name__)

# (upper bound in hours, score), checked in order
TIME_PROXIMITY_STEPS: tuple[tuple[float, float], ...] = (
    (1, 1.0),
    (24, 0.8),
    (72, 0.6),
    (168, 0.4),
)


@dataclass(frozen=True)
class CalendarOptions:
    upcoming_window_days: float = 7
    time_proximity_weight: float = 0.6
    content_match_weight: float = 0.7
    attendee_overlap_weight: float = 0.8
    organizer_match_weight: float = 0.9
    content_similarity_threshold: float = 0.3
    # Score at or above which has_proximity is set
    proximity_threshold: float = 0.5

    def __post_init__(self) -> None:
        if self.upcoming_window_days < 0:
            raise InvalidOptionsError("upcoming_window_days must be non-negative")
        for name in ("content_similarity_threshold", "proximity_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidOptionsError(f"{name} must be within [0, 1], got {value}")


def time_proximity_score(hours_to_event: float) -> float:
    """Step score of the absolute distance to an event, 0.0 beyond a week."""
    distance = abs(hours_to_event)
    for bound, score in TIME_PROXIMITY_STEPS:
        if distance <= bound:
            return score
    return 0.0


class CalendarProximityDetector:
    """Scores emails against a caller-supplied set of upcoming events.

    The event set and the options are immutable values; every mutation
    swaps in a new tuple, so in-flight detections keep a consistent view.
    """

    def __init__(
        self,
        events: Iterable[CalendarEvent] = (),
        options: CalendarOptions | None = None,
    ) -> None:
        self._events: tuple[CalendarEvent, ...] = tuple(events)
        self._options = options or CalendarOptions()

    # ── Configuration ────────────────────────────────────────────────────

    @property
    def options(self) -> CalendarOptions:
        return self._options

    def reconfigure(self, **changes: Any) -> CalendarOptions:
        self._options = replace(self._options, **changes)
        logger.info("CalendarProximityDetector reconfigured: %s", changes)
        return self._options

    @property
    def events(self) -> tuple[CalendarEvent, ...]:
        return self._events

    def replace_events(self, events: Iterable[CalendarEvent]) -> None:
        self._events = tuple(events)

    def add_event(self, event: CalendarEvent) -> bool:
        """Add *event* unless an event with the same id is already known."""
        if any(e.id == event.id for e in self._events):
            return False
        self._events = (*self._events, event)
        return True

    def remove_event(self, event_id: str) -> bool:
        remaining = tuple(e for e in self._events if e.id != event_id)
        if len(remaining) == len(self._events):
            return False
        self._events = remaining
        return True

    # ── Public API ───────────────────────────────────────────────────────

    def detect_proximity(
        self,
        email: Email,
        reference_time: Optional[datetime] = None,
    ) -> CalendarProximityResult:
        """Correlate *email* with the events starting within the window."""
        opts = self._options
        now = ensure_utc(reference_time) if reference_time is not None else utc_now()
        window_end = now + timedelta(days=opts.upcoming_window_days)

        email_keywords = extract_keywords(email.content_text, CALENDAR_STOP_WORDS)
        sender = normalize_address(email.sender.email)

        relevant: list[RelevantEvent] = []
        reasons: list[ProximityReason] = []

        for event in self._events:
            if event.status == EventStatus.CANCELLED:
                continue
            if not now <= event.start_time <= window_end:
                continue

            event_reasons: list[ProximityReason] = []
            attendee_overlap: list[str] = []
            is_organizer_match = False

            hours_to_event = (event.start_time - now).total_seconds() / 3600
            time_score = time_proximity_score(hours_to_event)
            if time_score > 0:
                event_reasons.append(ProximityReason(
                    type=ProximityReasonType.TIME_PROXIMITY,
                    description=f'Event "{event.title}" in {round(hours_to_event)} hours',
                    weight=opts.time_proximity_weight * time_score,
                    event_id=event.id,
                ))

            event_keywords = extract_keywords(event.content_text, CALENDAR_STOP_WORDS)
            similarity = jaccard_similarity(email_keywords, event_keywords)
            if similarity >= opts.content_similarity_threshold:
                event_reasons.append(ProximityReason(
                    type=ProximityReasonType.CONTENT_MATCH,
                    description=f"Content similarity: {round(similarity * 100)}%",
                    weight=opts.content_match_weight * similarity,
                    event_id=event.id,
                ))

            if sender in {normalize_address(a.email) for a in event.attendees}:
                attendee_overlap.append(email.sender.email)
                event_reasons.append(ProximityReason(
                    type=ProximityReasonType.ATTENDEE_OVERLAP,
                    description=f'Sender is attendee of "{event.title}"',
                    weight=opts.attendee_overlap_weight,
                    event_id=event.id,
                ))

            if sender == normalize_address(event.organizer.email):
                is_organizer_match = True
                event_reasons.append(ProximityReason(
                    type=ProximityReasonType.ORGANIZER_MATCH,
                    description=f'Sender is organizer of "{event.title}"',
                    weight=opts.organizer_match_weight,
                    event_id=event.id,
                ))

            event_score = sum(r.weight for r in event_reasons)
            if event_score <= 0:
                continue

            relevant.append(RelevantEvent(
                event=event,
                proximity_score=min(event_score, 1.0),
                time_to_event_hours=round(hours_to_event, 1),
                content_similarity=round(similarity, 2),
                attendee_overlap=attendee_overlap,
                is_organizer_match=is_organizer_match,
            ))
            reasons.extend(event_reasons)

        relevant.sort(key=lambda r: r.proximity_score, reverse=True)
        score = relevant[0].proximity_score if relevant else 0.0

        logger.debug(
            "Email %s: %d relevant event(s), proximity score=%.2f",
            email.id, len(relevant), score,
        )
        return CalendarProximityResult(
            has_proximity=score >= opts.proximity_threshold,
            score=score,
            relevant_events=relevant,
            reasons=reasons,
        )

    def detect_proximity_batch(
        self,
        emails: Iterable[Email],
        reference_time: Optional[datetime] = None,
    ) -> dict[str, CalendarProximityResult]:
        """Batch variant keyed by email id, sharing one reference time."""
        now = ensure_utc(reference_time) if reference_time is not None else utc_now()
        results = {email.id: self.detect_proximity(email, now) for email in emails}
        logger.info(
            "Calendar proximity for %d email(s) against %d event(s); %d with proximity",
            len(results), len(self._events), sum(1 for r in results.values() if r.has_proximity),
        )
        return results
