"""TriageEngines — the engine bundle the triage graph runs against."""

from __future__ import annotations

from dataclasses import dataclass, field

from inbox_triage.config import Settings
from inbox_triage.core.calendar_proximity import CalendarOptions, CalendarProximityDetector
from inbox_triage.core.keyword_matcher import KeywordMatcher, MatcherOptions
from inbox_triage.core.scorer import RedFlagScorer, ScorerOptions
from inbox_triage.core.thread_velocity import ThreadVelocityDetector, VelocityOptions
from inbox_triage.core.topic_clusterer import ClusterOptions, TopicClusterer


@dataclass(frozen=True)
class TriageEngines:
    """One instance of every engine.

    The calendar detector's own events are used when a run supplies none.
    """

    matcher: KeywordMatcher = field(default_factory=KeywordMatcher)
    velocity: ThreadVelocityDetector = field(default_factory=ThreadVelocityDetector)
    calendar: CalendarProximityDetector = field(default_factory=CalendarProximityDetector)
    scorer: RedFlagScorer = field(default_factory=RedFlagScorer)
    clusterer: TopicClusterer = field(default_factory=TopicClusterer)

    @classmethod
    def from_settings(cls, settings: Settings) -> TriageEngines:
        return cls(
            matcher=KeywordMatcher(options=MatcherOptions(
                enable_fuzzy_matching=settings.fuzzy_matching_enabled,
                fuzzy_match_threshold=settings.fuzzy_match_threshold,
                max_fuzzy_distance=settings.fuzzy_max_distance,
            )),
            velocity=ThreadVelocityDetector(VelocityOptions(
                high_velocity_window_hours=settings.velocity_high_window_hours,
                high_velocity_threshold=settings.velocity_high_threshold,
                high_velocity_weight=settings.velocity_high_weight,
                medium_velocity_window_hours=settings.velocity_medium_window_hours,
                medium_velocity_threshold=settings.velocity_medium_threshold,
                medium_velocity_weight=settings.velocity_medium_weight,
                rapid_reply_minutes=settings.velocity_rapid_reply_minutes,
                rapid_reply_min_messages=settings.velocity_rapid_reply_min_messages,
                rapid_reply_weight=settings.velocity_rapid_reply_weight,
                escalation_language_weight=settings.velocity_escalation_weight,
                high_velocity_score=settings.velocity_high_score,
            )),
            calendar=CalendarProximityDetector(options=CalendarOptions(
                upcoming_window_days=settings.calendar_window_days,
                time_proximity_weight=settings.calendar_time_weight,
                content_match_weight=settings.calendar_content_weight,
                attendee_overlap_weight=settings.calendar_attendee_weight,
                organizer_match_weight=settings.calendar_organizer_weight,
                content_similarity_threshold=settings.calendar_content_threshold,
                proximity_threshold=settings.calendar_proximity_threshold,
            )),
            scorer=RedFlagScorer(ScorerOptions(
                keyword_weight=settings.score_weight_keyword,
                vip_weight=settings.score_weight_vip,
                velocity_weight=settings.score_weight_velocity,
                calendar_weight=settings.score_weight_calendar,
                flag_threshold=settings.score_flag_threshold,
                critical_threshold=settings.severity_critical_threshold,
                high_threshold=settings.severity_high_threshold,
                medium_threshold=settings.severity_medium_threshold,
                low_threshold=settings.severity_low_threshold,
            )),
            clusterer=TopicClusterer(ClusterOptions(
                similarity_threshold=settings.cluster_similarity_threshold,
                use_thread_ids=settings.cluster_use_thread_ids,
                normalize_subjects=settings.cluster_normalize_subjects,
                min_cluster_size=settings.cluster_min_size,
            )),
        )
