"""Tests for the TopicClusterer: thread pass, subject pass, merging and metrics."""

from __future__ import annotations

import pytest

from inbox_triage.core.errors import InvalidOptionsError
from inbox_triage.core.topic_clusterer import ClusterOptions, TopicClusterer
from inbox_triage.domain.email import Email, Thread

from tests.test_models import _email


def _clusterer(**options) -> TopicClusterer:
    return TopicClusterer(ClusterOptions(**options))


def _assert_partition(emails: list[Email], result) -> None:
    seen: list[str] = []
    for cluster in result.clusters:
        seen.extend(cluster.email_ids)
    assert len(seen) == len(set(seen))
    assert set(seen) | set(result.unclustered_email_ids) == {e.id for e in emails}
    assert not set(seen) & set(result.unclustered_email_ids)


def _pump_thread() -> list[Email]:
    return [
        _email("p-1", "Pump failure", "pump station offline", thread_id="t-1"),
        _email("p-2", "Re: Pump failure", "station crew dispatched", thread_id="t-1"),
        _email("p-3", "Re: Pump failure", "pump restarted", thread_id="t-1"),
    ]


# ── Scenario ─────────────────────────────────────────────────────────────────


class TestThreadScenario:
    def test_thread_plus_unrelated_subjects(self) -> None:
        emails = [
            *_pump_thread(),
            _email("x-1", "Lunch plans", "tacos?"),
            _email("x-2", "Quarterly numbers", "see attached"),
        ]
        result = _clusterer().cluster_emails(emails)
        assert result.cluster_count == 1
        assert result.clusters[0].size == 3
        assert result.unclustered_email_ids == ["x-1", "x-2"]
        assert result.total_emails == 5
        _assert_partition(emails, result)


# ── Thread pass ──────────────────────────────────────────────────────────────


class TestThreadPass:
    def test_cluster_metadata(self) -> None:
        cluster = _clusterer().cluster_emails(_pump_thread()).clusters[0]
        assert cluster.id == "cluster-1"
        assert cluster.topic == "Pump failure"
        assert cluster.thread_ids == ["t-1"]
        assert cluster.email_ids == ["p-1", "p-2", "p-3"]

    def test_keywords_by_frequency(self) -> None:
        cluster = _clusterer().cluster_emails(_pump_thread()).clusters[0]
        assert cluster.keywords == ["pump", "failure", "station", "offline", "crew"]

    def test_coherence_is_mean_pairwise_jaccard(self) -> None:
        cluster = _clusterer().cluster_emails(_pump_thread()).clusters[0]
        assert cluster.coherence == pytest.approx(0.41)

    def test_thread_below_min_size_falls_to_subject_pass(self) -> None:
        emails = [
            _email("a", "Budget review", thread_id="t-a"),
            _email("b", "Budget review", thread_id="t-b"),
        ]
        result = _clusterer().cluster_emails(emails)
        assert result.cluster_count == 1
        assert result.clusters[0].thread_ids == ["t-a", "t-b"]

    def test_thread_ids_disabled(self) -> None:
        emails = [
            _email("a", "Pump failure", thread_id="t-1"),
            _email("b", "Lunch plans", thread_id="t-1"),
        ]
        result = _clusterer(use_thread_ids=False).cluster_emails(emails)
        assert result.cluster_count == 0
        assert result.unclustered_email_ids == ["a", "b"]


# ── Subject pass ─────────────────────────────────────────────────────────────


class TestSubjectPass:
    def test_prefixes_normalized(self) -> None:
        emails = [
            _email("a", "Budget review"),
            _email("b", "Re: Budget review"),
            _email("c", "FW: [EXT] Budget  review"),
        ]
        result = _clusterer().cluster_emails(emails)
        assert result.cluster_count == 1
        assert result.clusters[0].topic == "Budget review"
        assert result.clusters[0].size == 3

    def test_similar_subjects_merge(self) -> None:
        emails = [_email("a", "Budget review"), _email("b", "Budget review draft")]
        result = _clusterer().cluster_emails(emails)
        assert result.cluster_count == 1
        assert result.clusters[0].email_ids == ["a", "b"]

    def test_merged_groups_cannot_absorb(self) -> None:
        emails = [
            _email("a", "alpha beta"),
            _email("b", "beta gamma"),
            _email("c", "gamma delta"),
        ]
        result = _clusterer(similarity_threshold=0.3).cluster_emails(emails)
        assert result.cluster_count == 1
        assert result.clusters[0].email_ids == ["a", "b"]
        assert result.unclustered_email_ids == ["c"]

    def test_keywordless_subjects_are_identical(self) -> None:
        emails = [_email("a", "Hi"), _email("b", "Re: ok")]
        result = _clusterer().cluster_emails(emails)
        assert result.cluster_count == 1
        assert result.clusters[0].topic == "Hi"

    def test_normalization_disabled_keeps_raw_topic(self) -> None:
        emails = [_email("a", "Re: Budget review"), _email("b", "Budget review")]
        result = _clusterer(normalize_subjects=False).cluster_emails(emails)
        assert result.clusters[0].topic == "Re: Budget review"

    def test_min_cluster_size(self) -> None:
        result = _clusterer(min_cluster_size=4).cluster_emails(_pump_thread())
        assert result.cluster_count == 0
        assert result.unclustered_email_ids == ["p-1", "p-2", "p-3"]


# ── Result shape ─────────────────────────────────────────────────────────────


class TestResult:
    def test_empty_input(self) -> None:
        result = _clusterer().cluster_emails([])
        assert result.clusters == []
        assert result.total_emails == 0
        assert result.unclustered_email_ids == []

    def test_sorted_by_size_ids_in_creation_order(self) -> None:
        emails = [
            _email("t-a", "Standup", thread_id="t-small"),
            _email("t-b", "Re: Standup", thread_id="t-small"),
            _email("s-1", "Launch plan"),
            _email("s-2", "Re: Launch plan"),
            _email("s-3", "Fwd: Launch plan"),
        ]
        result = _clusterer().cluster_emails(emails)
        assert [c.size for c in result.clusters] == [3, 2]
        assert [c.id for c in result.clusters] == ["cluster-2", "cluster-1"]

    def test_single_member_cluster_coherence(self) -> None:
        cluster = _clusterer(min_cluster_size=1).cluster_emails([_email("a", "Solo")]).clusters[0]
        assert cluster.coherence == 1.0

    def test_cluster_for_email(self) -> None:
        result = _clusterer().cluster_emails(_pump_thread())
        assert result.cluster_for_email("p-2") is result.clusters[0]
        assert result.cluster_for_email("missing") is None

    def test_partition_property(self) -> None:
        emails = [
            *_pump_thread(),
            _email("a", "Budget review"),
            _email("b", "Re: Budget review"),
            _email("c", "Offsite"),
            _email("d", "Hiring loop", thread_id="t-solo"),
        ]
        _assert_partition(emails, _clusterer().cluster_emails(emails))


# ── Entry points & configuration ─────────────────────────────────────────────


class TestEntryPoints:
    def test_cluster_threads_flattens(self) -> None:
        thread = Thread(id="t-1", subject="Pump failure", messages=_pump_thread())
        result = _clusterer().cluster_threads([thread])
        assert result.total_emails == 3
        assert result.cluster_count == 1

    def test_cluster_many(self) -> None:
        results = _clusterer().cluster_many([_pump_thread(), []])
        assert [r.cluster_count for r in results] == [1, 0]

    def test_reconfigure(self) -> None:
        clusterer = _clusterer()
        clusterer.reconfigure(min_cluster_size=5)
        assert clusterer.options.min_cluster_size == 5

    def test_invalid_options(self) -> None:
        with pytest.raises(InvalidOptionsError):
            ClusterOptions(min_cluster_size=0)
