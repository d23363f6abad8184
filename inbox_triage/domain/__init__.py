from inbox_triage.domain.briefing import BriefingData, BriefingTopic, ScoredEmail
from inbox_triage.domain.calendar import CalendarProximityResult, ProximityReason, RelevantEvent
from inbox_triage.domain.cluster import ClusterResult, TopicCluster
from inbox_triage.domain.email import (
    Attendee,
    CalendarEvent,
    Email,
    Sender,
    Thread,
    VipDetectionResult,
    VipReason,
)
from inbox_triage.domain.patterns import (
    KeywordMatchResult,
    KeywordPattern,
    Pattern,
    PatternMatch,
    RegexPattern,
)
from inbox_triage.domain.scoring import (
    RedFlagScore,
    RedFlagSignals,
    ScoringReason,
    SignalContribution,
)
from inbox_triage.domain.velocity import VelocityReason, VelocityResult

__all__ = [
    "Attendee",
    "BriefingData",
    "BriefingTopic",
    "CalendarEvent",
    "CalendarProximityResult",
    "ClusterResult",
    "Email",
    "KeywordMatchResult",
    "KeywordPattern",
    "Pattern",
    "PatternMatch",
    "ProximityReason",
    "RedFlagScore",
    "RedFlagSignals",
    "RegexPattern",
    "RelevantEvent",
    "ScoredEmail",
    "ScoringReason",
    "Sender",
    "SignalContribution",
    "Thread",
    "TopicCluster",
    "VelocityReason",
    "VelocityResult",
    "VipDetectionResult",
    "VipReason",
]
