"""REST endpoints exposing the triage engines.

Paths (all under /api):
    POST /keywords/match      email [+ ad-hoc patterns] → KeywordMatchResult
    POST /velocity/analyze    thread messages → VelocityResult
    POST /calendar/proximity  email + events → CalendarProximityResult
    POST /score               per-signal results → RedFlagScore
    POST /cluster             emails → ClusterResult
    POST /triage              full briefing run (LangGraph) + human-readable text
    GET  /patterns            the active pattern catalog

Request bodies are validated by pydantic (422 on malformed input).  A pattern
or option that the engines reject is reported as 400.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from inbox_triage.core.calendar_proximity import CalendarProximityDetector
from inbox_triage.core.errors import TriageError
from inbox_triage.domain.email import CalendarEvent, Email, Thread, VipDetectionResult
from inbox_triage.domain.scoring import RedFlagSignals
from inbox_triage.explain.formatter import BriefingFormatter
from inbox_triage.graph.engines import TriageEngines
from inbox_triage.graph.runner import run_triage

logger = logging.getLogger(__name__)


# ── Request bodies ──────────────────────────────────────────────────────────

class KeywordMatchRequest(BaseModel):
    email: Email
    patterns: Optional[list[dict[str, Any]]] = Field(
        default=None, description="Ad-hoc patterns used instead of the active catalog",
    )


class EmailsRequest(BaseModel):
    emails: list[Email] = Field(default_factory=list)


class ProximityRequest(BaseModel):
    email: Email
    events: list[CalendarEvent] = Field(default_factory=list)
    reference_time: Optional[datetime] = None


class TriageRequest(BaseModel):
    emails: list[Email] = Field(default_factory=list)
    threads: Optional[list[Thread]] = None
    events: Optional[list[CalendarEvent]] = None
    vip_results: dict[str, VipDetectionResult] = Field(default_factory=dict)
    reference_time: Optional[datetime] = None
    max_topics: Optional[int] = Field(default=None, ge=1)


# ── Router ──────────────────────────────────────────────────────────────────

def create_triage_router(engines: TriageEngines) -> APIRouter:
    """Factory that wires the triage endpoints to an engine bundle."""

    router = APIRouter(prefix="/api", tags=["triage"])

    @router.post("/keywords/match")
    async def match_keywords(request: KeywordMatchRequest) -> dict[str, Any]:
        try:
            if request.patterns is not None:
                result = engines.matcher.match_email_with_patterns(request.email, request.patterns)
            else:
                result = engines.matcher.match_email(request.email)
        except TriageError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return result.model_dump(mode="json")

    @router.post("/velocity/analyze")
    async def analyze_velocity(request: EmailsRequest) -> dict[str, Any]:
        return engines.velocity.analyze_emails(request.emails).model_dump(mode="json")

    @router.post("/calendar/proximity")
    async def calendar_proximity(request: ProximityRequest) -> dict[str, Any]:
        detector = CalendarProximityDetector(request.events, engines.calendar.options)
        result = detector.detect_proximity(request.email, request.reference_time)
        return result.model_dump(mode="json")

    @router.post("/score")
    async def score(signals: RedFlagSignals) -> dict[str, Any]:
        return engines.scorer.score_email(signals).model_dump(mode="json")

    @router.post("/cluster")
    async def cluster(request: EmailsRequest) -> dict[str, Any]:
        return engines.clusterer.cluster_emails(request.emails).model_dump(mode="json")

    @router.post("/triage")
    async def triage(request: TriageRequest) -> dict[str, Any]:
        logger.info("Triage requested for %d email(s)", len(request.emails))
        try:
            briefing = run_triage(
                request.emails,
                threads=request.threads,
                events=request.events,
                vip_results=request.vip_results,
                reference_time=request.reference_time,
                engines=engines,
                max_topics=request.max_topics,
            )
        except (TriageError, ValueError) as exc:
            logger.error("Triage failed: %s", exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        return {
            **briefing.model_dump(mode="json"),
            "human_readable": BriefingFormatter.format_briefing(briefing),
        }

    @router.get("/patterns")
    async def list_patterns() -> dict[str, Any]:
        catalog = engines.matcher.catalog
        return {
            "patterns": [p.model_dump(mode="json") for p in catalog],
            "count": len(catalog),
        }

    return router
