"""Briefing models — scored emails arranged into topics in narration order.

This is the hand-off to the narrative and session-navigation layers, which
walk ``topics`` in order and the email ids inside each topic.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from inbox_triage.domain.cluster import ClusterResult
from inbox_triage.domain.email import Email
from inbox_triage.domain.scoring import RedFlagScore

UNCLUSTERED_TOPIC_ID = "unclustered"
UNCLUSTERED_TOPIC_LABEL = "Other Messages"


class ScoredEmail(BaseModel):
    email: Email
    score: RedFlagScore

    model_config = {"frozen": True}


class BriefingTopic(BaseModel):
    id: str
    label: str
    keywords: list[str] = Field(default_factory=list)
    emails: list[ScoredEmail] = Field(default_factory=list, description="Descending by score")
    max_score: float = Field(default=0.0, ge=0.0, le=1.0)
    flagged_count: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @property
    def email_ids(self) -> list[str]:
        return [item.email.id for item in self.emails]


class BriefingData(BaseModel):
    """Everything a briefing run produced, ready for narration."""

    topics: list[BriefingTopic] = Field(default_factory=list)
    topic_items: list[int] = Field(default_factory=list)
    topic_labels: list[str] = Field(default_factory=list)
    total_emails: int = 0
    total_flagged: int = 0
    scores: dict[str, RedFlagScore] = Field(default_factory=dict)
    clusters: ClusterResult = Field(default_factory=ClusterResult)

    model_config = {"frozen": True}
