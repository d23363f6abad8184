"""Tests for the CalendarProximityDetector.

Uses clock patching via inbox_triage.core.calendar_proximity.utc_now.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from inbox_triage.core.calendar_proximity import (
    CalendarOptions,
    CalendarProximityDetector,
    time_proximity_score,
)
from inbox_triage.core.errors import InvalidOptionsError
from inbox_triage.domain.enums import EventStatus, ProximityReasonType

from tests.test_models import _BASE, _email, _event


def _patched_now(dt: datetime):
    """Freeze utc_now() at the calendar module level."""
    return patch("inbox_triage.core.calendar_proximity.utc_now", return_value=dt)


def _reason_types(result) -> set[ProximityReasonType]:
    return {r.type for r in result.reasons}


# ── Step function ────────────────────────────────────────────────────────────


class TestTimeProximityScore:
    @pytest.mark.parametrize(
        ("hours", "expected"),
        [
            (0.5, 1.0),
            (1, 1.0),
            (1.01, 0.8),
            (24, 0.8),
            (72, 0.6),
            (168, 0.4),
            (169, 0.0),
            (-0.5, 1.0),
        ],
    )
    def test_steps(self, hours: float, expected: float) -> None:
        assert time_proximity_score(hours) == expected


# ── Scenario ─────────────────────────────────────────────────────────────────


class TestOrganizerScenario:
    def test_organizer_email_before_related_meeting(self) -> None:
        event = _event(title="Budget review meeting", start=_BASE + timedelta(minutes=30))
        email = _email(subject="Budget review meeting agenda", body="", sender="boss@example.com")
        result = CalendarProximityDetector([event]).detect_proximity(email, _BASE)
        assert result.score > 0.8
        assert result.has_proximity is True
        assert {
            ProximityReasonType.TIME_PROXIMITY,
            ProximityReasonType.CONTENT_MATCH,
            ProximityReasonType.ORGANIZER_MATCH,
        } <= _reason_types(result)
        relevant = result.relevant_events[0]
        assert relevant.is_organizer_match is True
        assert relevant.content_similarity == pytest.approx(0.75)
        assert relevant.time_to_event_hours == pytest.approx(0.5)


# ── Candidate filtering ──────────────────────────────────────────────────────


class TestCandidateEvents:
    def test_cancelled_events_ignored(self) -> None:
        event = _event(status=EventStatus.CANCELLED, organizer="alice@example.com")
        result = CalendarProximityDetector([event]).detect_proximity(_email(), _BASE)
        assert result.relevant_events == []
        assert result.score == 0.0

    def test_past_events_ignored(self) -> None:
        event = _event(start=_BASE - timedelta(minutes=5), organizer="alice@example.com")
        result = CalendarProximityDetector([event]).detect_proximity(_email(), _BASE)
        assert result.relevant_events == []

    def test_events_beyond_window_ignored(self) -> None:
        event = _event(start=_BASE + timedelta(days=8), organizer="alice@example.com")
        result = CalendarProximityDetector([event]).detect_proximity(_email(), _BASE)
        assert result.relevant_events == []

    def test_no_events_is_neutral(self) -> None:
        result = CalendarProximityDetector().detect_proximity(_email(), _BASE)
        assert result.has_proximity is False
        assert result.score == 0.0
        assert result.reasons == []


# ── Contributions ────────────────────────────────────────────────────────────


class TestContributions:
    def test_time_only(self) -> None:
        event = _event(title="Weekly sync", start=_BASE + timedelta(hours=3))
        email = _email(subject="Lunch", body="")
        result = CalendarProximityDetector([event]).detect_proximity(email, _BASE)
        assert result.score == pytest.approx(0.48)
        assert result.has_proximity is False
        assert [r.description for r in result.reasons] == ['Event "Weekly sync" in 3 hours']

    def test_attendee_overlap_case_insensitive(self) -> None:
        event = _event(attendees=["ALICE@Example.com"], start=_BASE + timedelta(days=5))
        email = _email(subject="Lunch", body="")
        result = CalendarProximityDetector([event]).detect_proximity(email, _BASE)
        relevant = result.relevant_events[0]
        assert relevant.attendee_overlap == ["alice@example.com"]
        assert ProximityReasonType.ATTENDEE_OVERLAP in _reason_types(result)
        assert result.score == pytest.approx(min(0.6 * 0.4 + 0.8, 1.0))

    def test_attendee_and_organizer_stack(self) -> None:
        event = _event(attendees=["alice@example.com"], organizer="alice@example.com",
                       start=_BASE + timedelta(days=6))
        result = CalendarProximityDetector([event]).detect_proximity(_email(subject="x", body=""), _BASE)
        assert {ProximityReasonType.ATTENDEE_OVERLAP, ProximityReasonType.ORGANIZER_MATCH} <= _reason_types(result)
        assert result.score == 1.0

    def test_content_below_threshold_not_counted(self) -> None:
        event = _event(title="Budget planning offsite logistics travel", start=_BASE + timedelta(hours=30))
        email = _email(subject="Budget", body="")
        result = CalendarProximityDetector([event]).detect_proximity(email, _BASE)
        assert ProximityReasonType.CONTENT_MATCH not in _reason_types(result)
        assert result.relevant_events[0].content_similarity == pytest.approx(0.2)

    def test_content_keeps_from(self) -> None:
        event = _event(title="Offsite review", start=_BASE + timedelta(hours=3))
        email = _email(subject="Photos from offsite", body="")
        result = CalendarProximityDetector([event]).detect_proximity(email, _BASE)
        # {photos, from, offsite} vs {offsite, review}
        assert result.relevant_events[0].content_similarity == pytest.approx(0.25)

    def test_score_is_max_not_sum(self) -> None:
        events = [
            _event("soon", start=_BASE + timedelta(hours=3)),
            _event("later", start=_BASE + timedelta(days=2)),
        ]
        email = _email(subject="Lunch", body="")
        result = CalendarProximityDetector(events).detect_proximity(email, _BASE)
        assert result.score == pytest.approx(0.48)
        assert [r.event.id for r in result.relevant_events] == ["soon", "later"]

    def test_relevant_events_sorted_descending(self) -> None:
        events = [
            _event("later", start=_BASE + timedelta(days=2)),
            _event("soon", start=_BASE + timedelta(minutes=20)),
        ]
        result = CalendarProximityDetector(events).detect_proximity(_email(subject="Lunch", body=""), _BASE)
        scores = [r.proximity_score for r in result.relevant_events]
        assert scores == sorted(scores, reverse=True)
        assert result.relevant_events[0].event.id == "soon"


# ── Reference time ───────────────────────────────────────────────────────────


class TestReferenceTime:
    def test_defaults_to_clock(self) -> None:
        event = _event(start=_BASE + timedelta(minutes=30), organizer="alice@example.com")
        detector = CalendarProximityDetector([event])
        with _patched_now(_BASE):
            result = detector.detect_proximity(_email())
        assert result.relevant_events[0].time_to_event_hours == pytest.approx(0.5)

    def test_naive_reference_time_treated_as_utc(self) -> None:
        event = _event(start=_BASE + timedelta(minutes=90))
        result = CalendarProximityDetector([event]).detect_proximity(
            _email(subject="Lunch", body=""), datetime(2026, 1, 1, 12, 0, 0),
        )
        assert result.relevant_events[0].time_to_event_hours == pytest.approx(1.5)


# ── Event set & configuration ────────────────────────────────────────────────


class TestEventSet:
    def test_add_event_ignores_duplicates(self) -> None:
        detector = CalendarProximityDetector([_event("a")])
        assert detector.add_event(_event("a", title="other")) is False
        assert detector.add_event(_event("b")) is True
        assert [e.id for e in detector.events] == ["a", "b"]

    def test_remove_event(self) -> None:
        detector = CalendarProximityDetector([_event("a"), _event("b")])
        assert detector.remove_event("a") is True
        assert detector.remove_event("missing") is False
        assert [e.id for e in detector.events] == ["b"]

    def test_replace_events(self) -> None:
        detector = CalendarProximityDetector([_event("a")])
        detector.replace_events([_event("z")])
        assert [e.id for e in detector.events] == ["z"]

    def test_batch_keyed_by_email(self) -> None:
        detector = CalendarProximityDetector([_event(organizer="alice@example.com")])
        emails = [_email("one"), _email("two", sender="bob@example.com")]
        results = detector.detect_proximity_batch(emails, _BASE)
        assert results["one"].has_proximity is True
        assert results["two"].has_proximity is False

    def test_reconfigure(self) -> None:
        detector = CalendarProximityDetector()
        detector.reconfigure(upcoming_window_days=1)
        assert detector.options.upcoming_window_days == 1

    def test_invalid_options(self) -> None:
        with pytest.raises(InvalidOptionsError):
            CalendarOptions(content_similarity_threshold=2.0)
