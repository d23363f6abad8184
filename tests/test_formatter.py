"""Tests for BriefingFormatter plain-text output.

Every line must be traceable to fields of the rendered score or briefing.
"""

from __future__ import annotations

from inbox_triage.core.scorer import RedFlagScorer
from inbox_triage.domain.briefing import BriefingData
from inbox_triage.domain.scoring import RedFlagSignals
from inbox_triage.explain.formatter import BriefingFormatter
from inbox_triage.graph.engines import TriageEngines
from inbox_triage.graph.runner import run_triage

from tests.test_graph import _inbox
from tests.test_models import _BASE, _email
from tests.test_scorer import _vip


def _briefing(emails=None) -> BriefingData:
    return run_triage(_inbox() if emails is None else emails, engines=TriageEngines(), reference_time=_BASE)


class TestFormatScore:
    def test_header(self) -> None:
        score = RedFlagScorer().score_email(RedFlagSignals(vip_detection=_vip(0.8)))
        lines = BriefingFormatter.format_score("e-1", score).splitlines()
        assert lines[0] == "Red-flag score for email e-1"
        assert lines[2] == "STATUS: FLAGGED"
        assert lines[3] == "Score: 0.80"
        assert lines[4] == "Severity: high"

    def test_breakdown_lists_every_signal(self) -> None:
        score = RedFlagScorer().score_email(RedFlagSignals(vip_detection=_vip(0.8)))
        text = BriefingFormatter.format_score("e-1", score)
        assert "  • keyword: absent" in text
        assert "  • vip: raw=0.80 weight=0.70 contribution=0.56" in text
        assert "  • velocity: absent" in text
        assert "  • calendar: absent" in text

    def test_reasons_section(self) -> None:
        score = RedFlagScorer().score_email(RedFlagSignals(vip_detection=_vip(0.8)))
        text = BriefingFormatter.format_score("e-1", score)
        assert "--- Reasons ---" in text
        assert "  • [vip] Sender is on the VIP list (0.80)" in text

    def test_no_reasons_section_without_reasons(self) -> None:
        score = RedFlagScorer().score_email(RedFlagSignals())
        text = BriefingFormatter.format_score("e-1", score)
        assert "STATUS: NOT FLAGGED" in text
        assert "--- Reasons ---" not in text


class TestFormatBriefing:
    def test_summary_header(self) -> None:
        lines = BriefingFormatter.format_briefing(_briefing()).splitlines()
        assert lines[0] == "Inbox briefing"
        assert lines[2:5] == ["Emails: 5", "Flagged: 3", "Topics: 2"]

    def test_topics_numbered_in_order(self) -> None:
        text = BriefingFormatter.format_briefing(_briefing())
        assert "1. URGENT: Pump failure (3 email(s), 3 flagged, max score 1.00)" in text
        assert "2. Other Messages (2 email(s), 0 flagged, max score 0.00)" in text
        assert text.index("1. URGENT") < text.index("2. Other Messages")

    def test_email_lines(self) -> None:
        text = BriefingFormatter.format_briefing(_briefing())
        assert "   ! [critical] 1.00 URGENT: Pump failure — Alice alice@example.com" in text
        assert "   - [none] 0.00 Lunch plans — Alice alice@example.com" in text

    def test_keywords_line_only_for_clusters(self) -> None:
        lines = BriefingFormatter.format_briefing(_briefing()).splitlines()
        keyword_lines = [line for line in lines if line.startswith("   keywords: ")]
        assert len(keyword_lines) == 1
        assert "pump" in keyword_lines[0]

    def test_missing_subject(self) -> None:
        text = BriefingFormatter.format_briefing(_briefing([_email("x", subject="")]))
        assert "   - [none] 0.00 (no subject) — Alice alice@example.com" in text

    def test_empty_briefing(self) -> None:
        text = BriefingFormatter.format_briefing(BriefingData())
        assert "Emails: 0" in text
        assert "Topics: 0" in text

    def test_deterministic(self) -> None:
        briefing = _briefing()
        assert BriefingFormatter.format_briefing(briefing) == BriefingFormatter.format_briefing(briefing)
