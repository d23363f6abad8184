"""RedFlagScorer — fuses the per-signal results into one explainable score.

Composite formula (present signals only):

    composite = Σ(raw_i × w_i) / Σ(w_i)      for each present signal i
    final     = min(composite, 1.0) rounded half-up to 2 decimals

    keyword raw  = min(aggregate_weight, 1.0)
    vip / velocity / calendar raw = the signal's own score

An absent signal is reported in the breakdown with ``is_present=False`` and a
zero contribution, but its weight never enters the denominator: a single
present signal scores exactly its own raw value.

Severity buckets (thresholds must be monotonically decreasing):
    final <  low                → none
    final >= critical           → critical
    final >= high               → high
    final >= medium             → medium
    otherwise                   → low
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Optional

from inbox_triage.core.errors import InvalidOptionsError
from inbox_triage.domain.enums import RedFlagSeverity, SignalKind
from inbox_triage.domain.scoring import RedFlagScore, RedFlagSignals, ScoringReason, SignalContribution

logger = logging.getLogger(__name__)

KEYWORD_REASON_TYPE = "keyword_match"


def round_half_up(value: float, places: int = 2) -> float:
    """Round to *places* decimals with ties going up (0.625 -> 0.63)."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


@dataclass(frozen=True)
class ScorerOptions:
    """Composite weights and severity thresholds."""

    keyword_weight: float = 0.8
    vip_weight: float = 0.7
    velocity_weight: float = 0.9
    calendar_weight: float = 0.6

    flag_threshold: float = 0.3

    critical_threshold: float = 0.9
    high_threshold: float = 0.7
    medium_threshold: float = 0.5
    low_threshold: float = 0.3

    def __post_init__(self) -> None:
        for name in ("keyword_weight", "vip_weight", "velocity_weight", "calendar_weight"):
            if getattr(self, name) < 0:
                raise InvalidOptionsError(f"{name} must be non-negative")
        if not (
            self.critical_threshold >= self.high_threshold
            >= self.medium_threshold >= self.low_threshold
        ):
            raise InvalidOptionsError(
                "severity thresholds must satisfy critical >= high >= medium >= low "
                f"(got {self.critical_threshold}, {self.high_threshold}, "
                f"{self.medium_threshold}, {self.low_threshold})"
            )

    def weight_for(self, signal: SignalKind) -> float:
        return {
            SignalKind.KEYWORD: self.keyword_weight,
            SignalKind.VIP: self.vip_weight,
            SignalKind.VELOCITY: self.velocity_weight,
            SignalKind.CALENDAR: self.calendar_weight,
        }[signal]


class RedFlagScorer:
    """Deterministic composite scoring.

    Scoring reads only the immutable options, so one scorer can serve many
    concurrent callers.  ``reconfigure`` swaps a whole new options value.
    """

    def __init__(self, options: ScorerOptions | None = None) -> None:
        self._options = options or ScorerOptions()

    @property
    def options(self) -> ScorerOptions:
        return self._options

    def reconfigure(self, **changes: Any) -> ScorerOptions:
        """Apply *changes* atomically; invalid thresholds leave the scorer untouched."""
        self._options = replace(self._options, **changes)
        logger.info("RedFlagScorer reconfigured: %s", changes)
        return self._options

    # ── Public API ───────────────────────────────────────────────────────

    def score_email(self, signals: RedFlagSignals) -> RedFlagScore:
        opts = self._options
        raw = self._raw_scores(signals)

        breakdown: list[SignalContribution] = []
        weighted_sum = 0.0
        weight_sum = 0.0
        for signal in SignalKind:
            weight = opts.weight_for(signal)
            present = signal in raw
            raw_score = raw.get(signal, 0.0)
            contribution = raw_score * weight if present else 0.0
            if present:
                weighted_sum += contribution
                weight_sum += weight
            breakdown.append(SignalContribution(
                signal=signal,
                raw_score=raw_score,
                weight=weight,
                contribution=contribution,
                is_present=present,
            ))

        composite = weighted_sum / weight_sum if weight_sum > 0 else 0.0
        final = round_half_up(min(composite, 1.0))

        return RedFlagScore(
            is_flagged=self.should_flag(final),
            score=final,
            severity=self.severity_for(final),
            signal_breakdown=breakdown,
            reasons=self._reasons(signals),
        )

    def score_emails(self, email_signals: Mapping[str, RedFlagSignals]) -> dict[str, RedFlagScore]:
        """Score every entry of *email_signals*.  Fails fast on the first error."""
        results = {email_id: self.score_email(signals) for email_id, signals in email_signals.items()}
        logger.info(
            "Scored %d email(s); %d flagged",
            len(results), sum(1 for s in results.values() if s.is_flagged),
        )
        return results

    def severity_for(self, score: float) -> RedFlagSeverity:
        opts = self._options
        if score < opts.low_threshold:
            return RedFlagSeverity.NONE
        if score >= opts.critical_threshold:
            return RedFlagSeverity.CRITICAL
        if score >= opts.high_threshold:
            return RedFlagSeverity.HIGH
        if score >= opts.medium_threshold:
            return RedFlagSeverity.MEDIUM
        return RedFlagSeverity.LOW

    def should_flag(self, score: float) -> bool:
        return score >= self._options.flag_threshold

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _raw_scores(signals: RedFlagSignals) -> dict[SignalKind, float]:
        raw: dict[SignalKind, Optional[float]] = {
            SignalKind.KEYWORD: (
                min(signals.keyword_match.aggregate_weight, 1.0)
                if signals.keyword_match is not None else None
            ),
            SignalKind.VIP: signals.vip_detection.score if signals.vip_detection is not None else None,
            SignalKind.VELOCITY: signals.thread_velocity.score if signals.thread_velocity is not None else None,
            SignalKind.CALENDAR: (
                signals.calendar_proximity.score if signals.calendar_proximity is not None else None
            ),
        }
        return {signal: value for signal, value in raw.items() if value is not None}

    @staticmethod
    def _reasons(signals: RedFlagSignals) -> list[ScoringReason]:
        reasons: list[ScoringReason] = []
        if signals.keyword_match is not None:
            for match in signals.keyword_match.matches:
                reasons.append(ScoringReason(
                    signal=SignalKind.KEYWORD,
                    type=KEYWORD_REASON_TYPE,
                    description=f'Matched pattern: "{match.pattern.id}" in {match.field.value}',
                    weight=match.pattern.weight,
                ))
        if signals.vip_detection is not None:
            reasons.extend(
                ScoringReason(signal=SignalKind.VIP, type=r.type, description=r.description, weight=r.weight)
                for r in signals.vip_detection.reasons
            )
        if signals.thread_velocity is not None:
            reasons.extend(
                ScoringReason(
                    signal=SignalKind.VELOCITY, type=r.type.value, description=r.description, weight=r.weight,
                )
                for r in signals.thread_velocity.reasons
            )
        if signals.calendar_proximity is not None:
            reasons.extend(
                ScoringReason(
                    signal=SignalKind.CALENDAR, type=r.type.value, description=r.description, weight=r.weight,
                )
                for r in signals.calendar_proximity.reasons
            )
        return reasons
