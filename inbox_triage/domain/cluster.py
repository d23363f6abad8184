"""Topic clustering models — an inbox partitioned into narratable topics."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class TopicCluster(BaseModel):
    """A set of emails judged to concern the same conversation or subject."""

    id: str
    topic: str = Field(..., description="Normalized subject of a representative member")
    email_ids: list[str] = Field(..., min_length=1)
    thread_ids: list[str] = Field(default_factory=list)
    size: int = Field(..., ge=1)
    keywords: list[str] = Field(default_factory=list, max_length=5)
    coherence: float = Field(..., ge=0.0, le=1.0, description="Mean pairwise keyword similarity")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def size_matches_members(self) -> TopicCluster:
        if self.size != len(self.email_ids):
            raise ValueError(f"size {self.size} != {len(self.email_ids)} member ids")
        return self


class ClusterResult(BaseModel):
    clusters: list[TopicCluster] = Field(default_factory=list, description="Descending by size")
    total_emails: int = 0
    cluster_count: int = 0
    unclustered_email_ids: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    def cluster_for_email(self, email_id: str) -> Optional[TopicCluster]:
        for cluster in self.clusters:
            if email_id in cluster.email_ids:
                return cluster
        return None
