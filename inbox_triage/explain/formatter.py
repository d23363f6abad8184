"""BriefingFormatter — deterministic plain-text rendering of triage results.

Produces consistent, structured text for logs, API responses and the
narrative layer.  No LLM is involved: every line is derived from fields
already present in the RedFlagScore or BriefingData.

Usage:
    text = BriefingFormatter.format_briefing(briefing)
"""

from __future__ import annotations

from inbox_triage.domain.briefing import BriefingData, BriefingTopic
from inbox_triage.domain.scoring import RedFlagScore


class BriefingFormatter:
    """Renders scores and briefings as plain text."""

    @staticmethod
    def format_score(email_id: str, score: RedFlagScore) -> str:
        lines = [f"Red-flag score for email {email_id}"]
        lines.append("=" * 50)
        lines.append(f"STATUS: {'FLAGGED' if score.is_flagged else 'NOT FLAGGED'}")
        lines.append(f"Score: {score.score:.2f}")
        lines.append(f"Severity: {score.severity.value}")
        lines.append("")

        lines.append("--- Signal breakdown ---")
        for entry in score.signal_breakdown:
            if entry.is_present:
                lines.append(
                    f"  • {entry.signal.value}: raw={entry.raw_score:.2f} "
                    f"weight={entry.weight:.2f} contribution={entry.contribution:.2f}"
                )
            else:
                lines.append(f"  • {entry.signal.value}: absent")
        lines.append("")

        if score.reasons:
            lines.append("--- Reasons ---")
            for reason in score.reasons:
                lines.append(f"  • [{reason.signal.value}] {reason.description} ({reason.weight:.2f})")
            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def _topic_lines(position: int, topic: BriefingTopic) -> list[str]:
        header = f"{position}. {topic.label} ({len(topic.emails)} email(s), {topic.flagged_count} flagged"
        header += f", max score {topic.max_score:.2f})"
        lines = [header]
        if topic.keywords:
            lines.append(f"   keywords: {', '.join(topic.keywords)}")
        for item in topic.emails:
            marker = "!" if item.score.is_flagged else "-"
            lines.append(
                f"   {marker} [{item.score.severity.value}] {item.score.score:.2f} "
                f"{item.email.subject or '(no subject)'} — {item.email.sender_text}"
            )
        return lines

    @classmethod
    def format_briefing(cls, briefing: BriefingData) -> str:
        lines = ["Inbox briefing"]
        lines.append("=" * 50)
        lines.append(f"Emails: {briefing.total_emails}")
        lines.append(f"Flagged: {briefing.total_flagged}")
        lines.append(f"Topics: {len(briefing.topics)}")
        lines.append("")

        for position, topic in enumerate(briefing.topics, start=1):
            lines.extend(cls._topic_lines(position, topic))
            lines.append("")

        return "\n".join(lines)
