"""ThreadVelocityDetector — reply cadence and escalation language in a thread.

Contributions (additive, capped at 1.0):
    high_velocity           messages in the last 2h >= 4        +0.7
    medium_velocity         (only if not high) last 6h >= 3     +0.5
    rapid_back_and_forth    avg gap < 15 min and >= 3 messages  +0.6
    escalation_language     any escalation phrase in any message +0.8

"Now" for the windows is the last message's received time, so the result
depends only on the thread itself, never on the wall clock.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from inbox_triage.core.errors import InvalidOptionsError
from inbox_triage.domain.email import Email, Thread
from inbox_triage.domain.enums import VelocityReasonType
from inbox_triage.domain.velocity import VelocityReason, VelocityResult

logger = logging.getLogger(__name__)

ESCALATION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(expression, re.IGNORECASE)
    for expression in (
        r"\bescalat(e|ed|ing)\b",
        r"\bneeds?\s+(immediate|urgent)\s+(attention|response)\b",
        r"\bloop(ing)?\s+in\s+(management|leadership|exec)\b",
        r"\bcc['\"]?ing\s+(boss|manager|director|vp|ceo|cto)\b",
        r"\bradioactive\b",
        r"\bfire\s+drill\b",
        r"\ball\s+hands\s+on\s+deck\b",
        r"\bcode\s+red\b",
        r"\bdefcon\s+\d\b",
        r"\bwar\s+room\b",
        r"\bemergency\s+(meeting|call)\b",
        r"\btaking\s+this\s+offline\b",
        r"\bneed\s+to\s+discuss\s+(urgently|immediately)\b",
        r"\bget\s+on\s+a\s+call\s+(now|asap)\b",
        r"\bthis\s+is\s+(critical|urgent|important)\b",
        r"\bnot\s+(acceptable|happy|satisfied)\b",
        r"\b(disappointed|frustrated|concerned)\s+(with|about|by)\b",
        r"\bstop\s+everything\b",
        r"\bdrop\s+everything\b",
        r"\bpriority\s+(zero|one|1|0)\b",
    )
)

# Phrases quoted in the escalation reason description
_QUOTED_PHRASES = 3


@dataclass(frozen=True)
class VelocityOptions:
    """Windows, thresholds and weights for velocity analysis."""

    high_velocity_window_hours: float = 2
    high_velocity_threshold: int = 4
    high_velocity_weight: float = 0.7

    medium_velocity_window_hours: float = 6
    medium_velocity_threshold: int = 3
    medium_velocity_weight: float = 0.5

    rapid_reply_minutes: float = 15
    rapid_reply_min_messages: int = 3
    rapid_reply_weight: float = 0.6

    escalation_language_weight: float = 0.8

    # Score at or above which a thread counts as high velocity
    high_velocity_score: float = 0.6

    def __post_init__(self) -> None:
        for name in (
            "high_velocity_weight", "medium_velocity_weight",
            "rapid_reply_weight", "escalation_language_weight", "high_velocity_score",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidOptionsError(f"{name} must be within [0, 1], got {value}")
        if self.high_velocity_window_hours <= 0 or self.medium_velocity_window_hours <= 0:
            raise InvalidOptionsError("velocity windows must be positive")


def detect_escalation_language(email: Email) -> list[str]:
    """First match of each escalation pattern in subject + body/snippet."""
    text = f"{email.subject} {email.text_body}"
    phrases = []
    for pattern in ESCALATION_PATTERNS:
        match = pattern.search(text)
        if match:
            phrases.append(match.group(0))
    return phrases


def _count_within(messages: Sequence[Email], window_hours: float) -> int:
    now = messages[-1].received_at
    cutoff = now.timestamp() - window_hours * 3600
    return sum(1 for m in messages if m.received_at.timestamp() >= cutoff)


class ThreadVelocityDetector:
    """Stateless apart from its immutable options."""

    def __init__(self, options: VelocityOptions | None = None) -> None:
        self._options = options or VelocityOptions()

    @property
    def options(self) -> VelocityOptions:
        return self._options

    def reconfigure(self, **changes: Any) -> VelocityOptions:
        """Swap in a new options value with *changes* applied."""
        self._options = replace(self._options, **changes)
        logger.info("ThreadVelocityDetector reconfigured: %s", changes)
        return self._options

    # ── Public API ───────────────────────────────────────────────────────

    def detect_escalation_language(self, email: Email) -> list[str]:
        return detect_escalation_language(email)

    def analyze_thread(self, thread: Thread) -> VelocityResult:
        return self.analyze_emails(thread.messages)

    def analyze_threads(self, threads: Iterable[Thread]) -> dict[str, VelocityResult]:
        """Batch variant keyed by thread id.  Fails fast on the first error."""
        results = {thread.id: self.analyze_thread(thread) for thread in threads}
        logger.info(
            "Analyzed %d thread(s); %d high velocity",
            len(results), sum(1 for r in results.values() if r.is_high_velocity),
        )
        return results

    def analyze_emails(self, emails: Iterable[Email]) -> VelocityResult:
        opts = self._options
        messages = sorted(emails, key=lambda m: m.received_at)
        if len(messages) < 2:
            return VelocityResult.neutral(message_count=len(messages))

        timespan_hours = (messages[-1].received_at - messages[0].received_at).total_seconds() / 3600
        gaps = [
            (curr.received_at - prev.received_at).total_seconds() / 60
            for prev, curr in zip(messages, messages[1:])
        ]
        avg_gap = sum(gaps) / len(gaps)
        reply_frequency = len(messages) / timespan_hours if timespan_hours > 0 else 0.0

        reasons: list[VelocityReason] = []

        high_count = _count_within(messages, opts.high_velocity_window_hours)
        if high_count >= opts.high_velocity_threshold:
            reasons.append(VelocityReason(
                type=VelocityReasonType.HIGH_VELOCITY,
                description=f"{high_count} replies in {opts.high_velocity_window_hours:g} hours",
                weight=opts.high_velocity_weight,
            ))
        else:
            medium_count = _count_within(messages, opts.medium_velocity_window_hours)
            if medium_count >= opts.medium_velocity_threshold:
                reasons.append(VelocityReason(
                    type=VelocityReasonType.MEDIUM_VELOCITY,
                    description=f"{medium_count} replies in {opts.medium_velocity_window_hours:g} hours",
                    weight=opts.medium_velocity_weight,
                ))

        if avg_gap < opts.rapid_reply_minutes and len(messages) >= opts.rapid_reply_min_messages:
            reasons.append(VelocityReason(
                type=VelocityReasonType.RAPID_BACK_AND_FORTH,
                description=f"Rapid back-and-forth: avg {round(avg_gap)} min between replies",
                weight=opts.rapid_reply_weight,
            ))

        phrases = list(dict.fromkeys(
            phrase for message in messages for phrase in detect_escalation_language(message)
        ))
        if phrases:
            quoted = '", "'.join(phrases[:_QUOTED_PHRASES])
            reasons.append(VelocityReason(
                type=VelocityReasonType.ESCALATION_LANGUAGE,
                description=f'Escalation language detected: "{quoted}"',
                weight=opts.escalation_language_weight,
            ))

        score = min(sum(r.weight for r in reasons), 1.0)
        result = VelocityResult(
            is_high_velocity=score >= opts.high_velocity_score,
            score=score,
            reply_frequency=reply_frequency,
            avg_time_between_replies=round(avg_gap, 1),
            has_escalation_language=bool(phrases),
            escalation_phrases=phrases,
            reasons=reasons,
            message_count=len(messages),
            thread_timespan_hours=round(timespan_hours, 1),
        )
        logger.debug(
            "Velocity over %d message(s): score=%.2f reasons=%s",
            len(messages), score, [r.type.value for r in reasons],
        )
        return result
