"""TopicClusterer — partitions an inbox into narratable topics.

Two passes, the second over emails the first did not claim:
    1. Thread pass: emails sharing a thread id form a cluster when the group
       reaches ``min_cluster_size``.
    2. Subject pass: remaining emails are grouped by normalized subject, then
       groups whose subject keywords overlap (Jaccard >= threshold) are merged
       greedily into the earliest group.  A group merged away cannot absorb
       others.

Every email id ends up in at most one cluster or in ``unclustered_email_ids``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from itertools import combinations
from typing import Any

from inbox_triage.core.errors import InvalidOptionsError
from inbox_triage.core.text import extract_keywords, jaccard_similarity, normalize_subject, tokenize_keywords
from inbox_triage.domain.cluster import ClusterResult, TopicCluster
from inbox_triage.domain.email import Email, Thread

logger = logging.getLogger(__name__)

TOP_KEYWORDS = 5


@dataclass(frozen=True)
class ClusterOptions:
    similarity_threshold: float = 0.5
    use_thread_ids: bool = True
    normalize_subjects: bool = True
    min_cluster_size: int = 2

    def __post_init__(self) -> None:
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise InvalidOptionsError("similarity_threshold must be within [0, 1]")
        if self.min_cluster_size < 1:
            raise InvalidOptionsError("min_cluster_size must be at least 1")


def _ordered_keywords(email: Email) -> list[str]:
    """Distinct keywords of subject + body in first-seen order."""
    return list(dict.fromkeys(tokenize_keywords(email.content_text)))


class TopicClusterer:
    """Groups emails by thread identity and subject similarity."""

    def __init__(self, options: ClusterOptions | None = None) -> None:
        self._options = options or ClusterOptions()

    @property
    def options(self) -> ClusterOptions:
        return self._options

    def reconfigure(self, **changes: Any) -> ClusterOptions:
        self._options = replace(self._options, **changes)
        logger.info("TopicClusterer reconfigured: %s", changes)
        return self._options

    # ── Public API ───────────────────────────────────────────────────────

    def cluster_threads(self, threads: Iterable[Thread]) -> ClusterResult:
        return self.cluster_emails([m for thread in threads for m in thread.messages])

    def cluster_many(self, batches: Iterable[Sequence[Email]]) -> list[ClusterResult]:
        """Cluster independent inboxes.  Fails fast on the first error."""
        return [self.cluster_emails(batch) for batch in batches]

    def cluster_emails(self, emails: Sequence[Email]) -> ClusterResult:
        if not emails:
            return ClusterResult()

        opts = self._options
        by_id: dict[str, Email] = {}
        for email in emails:
            by_id.setdefault(email.id, email)

        # Ordered id sets, keyed by group origin
        groups: dict[str, dict[str, None]] = {}
        claimed: set[str] = set()

        # ── Thread pass ──────────────────────────────────────────────────
        if opts.use_thread_ids:
            by_thread: dict[str, dict[str, None]] = {}
            for email in emails:
                if email.thread_id:
                    by_thread.setdefault(email.thread_id, {})[email.id] = None
            for thread_id, member_ids in by_thread.items():
                if len(member_ids) >= opts.min_cluster_size:
                    groups[f"thread-{thread_id}"] = member_ids
                    claimed.update(member_ids)

        # ── Subject pass ─────────────────────────────────────────────────
        by_subject: dict[str, dict[str, None]] = {}
        for email in emails:
            if email.id in claimed:
                continue
            subject = self._subject(email)
            by_subject.setdefault(subject, {})[email.id] = None

        subjects = list(by_subject)
        subject_keywords = {s: extract_keywords(s) for s in subjects}
        merged: set[str] = set()
        for i, subject in enumerate(subjects):
            if subject in merged:
                continue
            group = by_subject[subject]
            for other in subjects[i + 1:]:
                if other in merged:
                    continue
                similarity = jaccard_similarity(
                    subject_keywords[subject], subject_keywords[other], empty=1.0,
                )
                if similarity >= opts.similarity_threshold:
                    group.update(by_subject[other])
                    merged.add(other)
            if len(group) >= opts.min_cluster_size:
                groups[f"subject-{subject}"] = group
                claimed.update(group)

        # ── Finalize ─────────────────────────────────────────────────────
        clusters = [
            self._build_cluster(f"cluster-{index}", [by_id[i] for i in member_ids])
            for index, member_ids in enumerate(groups.values(), start=1)
        ]
        clusters.sort(key=lambda c: c.size, reverse=True)

        unclustered = [email.id for email in emails if email.id not in claimed]
        logger.info(
            "Clustered %d email(s) into %d topic(s); %d unclustered",
            len(emails), len(clusters), len(unclustered),
        )
        return ClusterResult(
            clusters=clusters,
            total_emails=len(emails),
            cluster_count=len(clusters),
            unclustered_email_ids=unclustered,
        )

    # ── Internals ────────────────────────────────────────────────────────

    def _subject(self, email: Email) -> str:
        return normalize_subject(email.subject) if self._options.normalize_subjects else email.subject

    def _build_cluster(self, cluster_id: str, members: list[Email]) -> TopicCluster:
        keyword_sets = [_ordered_keywords(email) for email in members]

        frequency: dict[str, int] = {}
        for keywords in keyword_sets:
            for keyword in keywords:
                frequency[keyword] = frequency.get(keyword, 0) + 1
        # sorted() is stable, so ties keep first-seen order
        top = [kw for kw, _ in sorted(frequency.items(), key=lambda item: item[1], reverse=True)]

        pairs = list(combinations(keyword_sets, 2))
        if pairs:
            coherence = sum(jaccard_similarity(a, b, empty=1.0) for a, b in pairs) / len(pairs)
        else:
            coherence = 1.0

        return TopicCluster(
            id=cluster_id,
            topic=self._subject(members[0]),
            email_ids=[email.id for email in members],
            thread_ids=list(dict.fromkeys(e.thread_id for e in members if e.thread_id is not None)),
            size=len(members),
            keywords=top[:TOP_KEYWORDS],
            coherence=round(coherence, 2),
        )
