"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "inbox-triage"
    log_level: str = "INFO"

    # Keyword matching
    fuzzy_matching_enabled: bool = True
    fuzzy_match_threshold: float = 0.8
    fuzzy_max_distance: int = 2

    # Thread velocity
    velocity_high_window_hours: float = 2
    velocity_high_threshold: int = 4
    velocity_high_weight: float = 0.7
    velocity_medium_window_hours: float = 6
    velocity_medium_threshold: int = 3
    velocity_medium_weight: float = 0.5
    velocity_rapid_reply_minutes: float = 15
    velocity_rapid_reply_min_messages: int = 3
    velocity_rapid_reply_weight: float = 0.6
    velocity_escalation_weight: float = 0.8
    velocity_high_score: float = 0.6

    # Calendar proximity
    calendar_window_days: float = 7
    calendar_time_weight: float = 0.6
    calendar_content_weight: float = 0.7
    calendar_attendee_weight: float = 0.8
    calendar_organizer_weight: float = 0.9
    calendar_content_threshold: float = 0.3
    calendar_proximity_threshold: float = 0.5

    # Composite scoring
    score_weight_keyword: float = 0.8
    score_weight_vip: float = 0.7
    score_weight_velocity: float = 0.9
    score_weight_calendar: float = 0.6
    score_flag_threshold: float = 0.3
    severity_critical_threshold: float = 0.9
    severity_high_threshold: float = 0.7
    severity_medium_threshold: float = 0.5
    severity_low_threshold: float = 0.3

    # Topic clustering
    cluster_similarity_threshold: float = 0.5
    cluster_min_size: int = 2
    cluster_use_thread_ids: bool = True
    cluster_normalize_subjects: bool = True

    # Briefing
    briefing_max_topics: int = 10

    model_config = {"env_prefix": "TRIAGE_"}


settings = Settings()
