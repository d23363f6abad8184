"""LangGraph nodes — pure functions that transform TriageState.

Each node:
    - Receives the full TriageState
    - Returns a partial dict update
    - Reads engines only through the TriageEngines bundle it was built with

Signals attached to the composite score:
    keyword    every email
    vip        emails the caller supplied a VIP result for
    velocity   emails whose thread velocity scored above zero
    calendar   emails with at least one relevant upcoming event

A zero-evidence result is left out rather than attached, so it cannot
dilute the signals that did fire.
"""

from __future__ import annotations

import logging
from typing import Callable

from inbox_triage.core.calendar_proximity import CalendarProximityDetector
from inbox_triage.domain.briefing import (
    UNCLUSTERED_TOPIC_ID,
    UNCLUSTERED_TOPIC_LABEL,
    BriefingData,
    BriefingTopic,
    ScoredEmail,
)
from inbox_triage.domain.email import Email
from inbox_triage.domain.scoring import RedFlagSignals
from inbox_triage.domain.velocity import VelocityResult
from inbox_triage.graph.engines import TriageEngines
from inbox_triage.graph.state import TriageState

logger = logging.getLogger(__name__)

Node = Callable[[TriageState], dict]


# ── 1. match_keywords ───────────────────────────────────────────────────────

def make_match_keywords(engines: TriageEngines) -> Node:
    def match_keywords(state: TriageState) -> dict:
        return {"keyword_results": engines.matcher.match_emails(state.get("emails", []))}

    return match_keywords


# ── 2. analyze_velocity ─────────────────────────────────────────────────────

def make_analyze_velocity(engines: TriageEngines) -> Node:
    def analyze_velocity(state: TriageState) -> dict:
        emails = state.get("emails", [])
        results: dict[str, VelocityResult] = {}

        # Explicit threads first
        for thread in state.get("threads") or []:
            result = engines.velocity.analyze_thread(thread)
            for message in thread.messages:
                results.setdefault(message.id, result)

        # Remaining emails grouped by their thread id
        by_thread: dict[str, list[Email]] = {}
        for email in emails:
            if email.id not in results and email.thread_id:
                by_thread.setdefault(email.thread_id, []).append(email)
        for members in by_thread.values():
            result = engines.velocity.analyze_emails(members)
            for email in members:
                results[email.id] = result

        logger.debug("Velocity computed for %d email(s)", len(results))
        return {"velocity_results": results}

    return analyze_velocity


# ── 3. detect_calendar ──────────────────────────────────────────────────────

def make_detect_calendar(engines: TriageEngines) -> Node:
    def detect_calendar(state: TriageState) -> dict:
        events = state.get("events")
        detector = engines.calendar
        if events is not None:
            # Per-run events never touch the shared detector
            detector = CalendarProximityDetector(events, detector.options)
        if not detector.events:
            return {"calendar_results": {}}
        return {
            "calendar_results": detector.detect_proximity_batch(
                state.get("emails", []), state.get("reference_time"),
            ),
        }

    return detect_calendar


# ── 4. score_emails ─────────────────────────────────────────────────────────

def make_score_emails(engines: TriageEngines) -> Node:
    def score_emails(state: TriageState) -> dict:
        keyword = state.get("keyword_results", {})
        vip = state.get("vip_results", {})
        velocity = state.get("velocity_results", {})
        calendar = state.get("calendar_results", {})

        signals: dict[str, RedFlagSignals] = {}
        for email in state.get("emails", []):
            thread_velocity = velocity.get(email.id)
            if thread_velocity is not None and thread_velocity.score <= 0:
                thread_velocity = None
            proximity = calendar.get(email.id)
            if proximity is not None and not proximity.relevant_events:
                proximity = None
            signals[email.id] = RedFlagSignals(
                keyword_match=keyword.get(email.id),
                vip_detection=vip.get(email.id),
                thread_velocity=thread_velocity,
                calendar_proximity=proximity,
            )

        return {"scores": engines.scorer.score_emails(signals)}

    return score_emails


# ── 5. cluster_emails ───────────────────────────────────────────────────────

def make_cluster_emails(engines: TriageEngines) -> Node:
    def cluster_emails(state: TriageState) -> dict:
        return {"cluster_result": engines.clusterer.cluster_emails(state.get("emails", []))}

    return cluster_emails


# ── 6. assemble_briefing ────────────────────────────────────────────────────

def _scored(ids: list[str], emails: dict[str, Email], scores: dict) -> list[ScoredEmail]:
    items = [
        ScoredEmail(email=emails[i], score=scores[i])
        for i in ids
        if i in emails and i in scores
    ]
    items.sort(key=lambda item: item.score.score, reverse=True)
    return items


def _topic(topic_id: str, label: str, keywords: list[str], items: list[ScoredEmail]) -> BriefingTopic:
    return BriefingTopic(
        id=topic_id,
        label=label,
        keywords=keywords,
        emails=items,
        max_score=max((item.score.score for item in items), default=0.0),
        flagged_count=sum(1 for item in items if item.score.is_flagged),
    )


def assemble_briefing(state: TriageState) -> dict:
    """Arrange scored emails into topics in narration order.

    Order: most flagged emails first, then highest score, then largest topic.
    """
    emails = {email.id: email for email in state.get("emails", [])}
    scores = state.get("scores", {})
    clusters = state["cluster_result"]

    topics = [
        _topic(c.id, c.topic, c.keywords, _scored(c.email_ids, emails, scores))
        for c in clusters.clusters
    ]
    leftovers = _scored(clusters.unclustered_email_ids, emails, scores)
    if leftovers:
        topics.append(_topic(UNCLUSTERED_TOPIC_ID, UNCLUSTERED_TOPIC_LABEL, [], leftovers))

    topics.sort(key=lambda t: (t.flagged_count, t.max_score, len(t.emails)), reverse=True)
    max_topics = state.get("max_topics")
    if max_topics is not None:
        topics = topics[:max_topics]

    briefing = BriefingData(
        topics=topics,
        topic_items=[len(t.emails) for t in topics],
        topic_labels=[t.label for t in topics],
        total_emails=len(state.get("emails", [])),
        total_flagged=sum(1 for s in scores.values() if s.is_flagged),
        scores=scores,
        clusters=clusters,
    )
    logger.debug("Assembled %d topic(s)", len(topics))
    return {"briefing": briefing}
