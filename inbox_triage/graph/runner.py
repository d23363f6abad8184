"""Graph runner — clean interface for invoking the triage graph.

Usage:
    from inbox_triage.graph.runner import run_triage

    briefing = run_triage(emails, events=upcoming, vip_results=vip)

The runner builds the graph, seeds the initial state, invokes LangGraph and
returns the assembled BriefingData.  No side effects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Optional

from inbox_triage.config import settings
from inbox_triage.domain.briefing import BriefingData
from inbox_triage.domain.email import CalendarEvent, Email, Thread, VipDetectionResult
from inbox_triage.foundation.clock import ensure_utc, utc_now
from inbox_triage.graph.builder import build_triage_graph
from inbox_triage.graph.engines import TriageEngines
from inbox_triage.graph.state import TriageState

logger = logging.getLogger(__name__)


def run_triage(
    emails: Iterable[Email],
    *,
    threads: Optional[Iterable[Thread]] = None,
    events: Optional[Iterable[CalendarEvent]] = None,
    vip_results: Optional[Mapping[str, VipDetectionResult]] = None,
    reference_time: Optional[datetime] = None,
    engines: Optional[TriageEngines] = None,
    max_topics: Optional[int] = None,
) -> BriefingData:
    """Score, cluster and arrange an inbox into a briefing.

    Args:
        emails: The inbox to triage.
        threads: Explicit threads for velocity analysis.
        events: Upcoming calendar events; None uses the calendar engine's own.
        vip_results: VIP signal per email id, produced elsewhere.
        reference_time: "Now" for calendar proximity (defaults to utc_now()).
        engines: Engine bundle; defaults to engines built from settings.
        max_topics: Override the briefing topic cap.

    Returns:
        The assembled BriefingData.
    """
    bundle = engines or TriageEngines.from_settings(settings)
    email_list = list(emails)
    now = ensure_utc(reference_time) if reference_time is not None else utc_now()
    topic_cap = max_topics if max_topics is not None else settings.briefing_max_topics

    initial_state: TriageState = {
        "emails": email_list,
        "threads": list(threads) if threads is not None else None,
        "events": list(events) if events is not None else None,
        "vip_results": dict(vip_results or {}),
        "reference_time": now,
        "max_topics": topic_cap,
    }

    if not email_list:
        logger.info("Triage skipped: empty inbox")
        return BriefingData()

    compiled_graph = build_triage_graph(bundle)
    logger.info("Running triage graph over %d email(s) (max_topics=%d)", len(email_list), topic_cap)

    final_state = compiled_graph.invoke(initial_state)
    briefing: BriefingData = final_state["briefing"]

    logger.info(
        "Triage complete: emails=%d flagged=%d clusters=%d topics=%d",
        briefing.total_emails,
        briefing.total_flagged,
        briefing.clusters.cluster_count,
        len(briefing.topics),
    )
    return briefing
