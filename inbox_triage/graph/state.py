"""TriageState — the sole state object that LangGraph nodes read and write.

Every node receives the full state and returns a partial update.  Nodes touch
nothing outside this state and the engine bundle they were built with.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict

from inbox_triage.domain.briefing import BriefingData
from inbox_triage.domain.calendar import CalendarProximityResult
from inbox_triage.domain.cluster import ClusterResult
from inbox_triage.domain.email import CalendarEvent, Email, Thread, VipDetectionResult
from inbox_triage.domain.patterns import KeywordMatchResult
from inbox_triage.domain.scoring import RedFlagScore
from inbox_triage.domain.velocity import VelocityResult


class TriageState(TypedDict, total=False):
    """LangGraph state for one briefing run.

    Inputs:
        emails: The inbox to triage, in provider order.
        threads: Explicit threads; when absent emails are grouped by thread_id.
        events: Upcoming calendar events; None means "use the detector's own".
        vip_results: Externally produced VIP signal, keyed by email id.
        reference_time: "Now" for calendar proximity.
        max_topics: Cap on briefing topics.

    Per-signal results (keyed by email id):
        keyword_results, velocity_results, calendar_results.

    Outputs:
        scores: RedFlagScore per email id.
        cluster_result: Topic clustering of the inbox.
        briefing: Topics in narration order.
    """

    emails: list[Email]
    threads: Optional[list[Thread]]
    events: Optional[list[CalendarEvent]]
    vip_results: dict[str, VipDetectionResult]
    reference_time: datetime
    max_topics: int

    keyword_results: dict[str, KeywordMatchResult]
    velocity_results: dict[str, VelocityResult]
    calendar_results: dict[str, CalendarProximityResult]

    scores: dict[str, RedFlagScore]
    cluster_result: ClusterResult
    briefing: BriefingData
