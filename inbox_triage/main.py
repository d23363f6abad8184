"""inbox-triage — red-flag scoring and topic clustering for inbox briefings.

This is the application entry point.  It builds the triage engines from
settings and wires the HTTP endpoints together.
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import FastAPI

from inbox_triage.api.triage import create_triage_router
from inbox_triage.config import settings
from inbox_triage.graph.engines import TriageEngines

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Engines ──────────────────────────────────────────────────────────────────

engines = TriageEngines.from_settings(settings)

# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Red-flag scoring and topic clustering for inbox briefings",
    version="0.1.0",
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_triage_router(engines))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "patterns": len(engines.matcher.catalog),
        "upcoming_events": len(engines.calendar.events),
        "options": {
            "matcher": asdict(engines.matcher.options),
            "velocity": asdict(engines.velocity.options),
            "calendar": asdict(engines.calendar.options),
            "scorer": asdict(engines.scorer.options),
            "clusterer": asdict(engines.clusterer.options),
        },
    }
