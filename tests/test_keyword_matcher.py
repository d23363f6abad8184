"""Tests for the KeywordMatcher: exact, fuzzy and regex matching plus aggregation."""

from __future__ import annotations

import pytest

from inbox_triage.core.errors import DuplicatePatternError, InvalidOptionsError, InvalidPatternError
from inbox_triage.core.keyword_matcher import KeywordMatcher, MatcherOptions, fuzzy_search
from inbox_triage.core.pattern_catalog import PatternCatalog
from inbox_triage.domain.enums import ContextField

from tests.test_models import _email, _keyword_pattern


def _matcher(**options) -> KeywordMatcher:
    return KeywordMatcher(options=MatcherOptions(**options))


# ── Default catalog ──────────────────────────────────────────────────────────


class TestDefaultCatalogMatching:
    def test_urgent_subject_asap_body(self) -> None:
        email = _email(subject="URGENT: Pump failure", body="Please handle this ASAP.")
        result = _matcher().match_email(email)
        assert result.has_matches is True
        assert set(result.matched_pattern_ids) == {"urgency-urgent-keyword", "urgency-asap-keyword"}
        assert result.aggregate_weight == pytest.approx(1.75)

    def test_matched_text_keeps_original_case(self) -> None:
        email = _email(subject="URGENT: Pump failure", body="nothing here")
        result = _matcher().match_email(email)
        match = next(m for m in result.matches if m.pattern.id == "urgency-urgent-keyword")
        assert match.matched_text == "URGENT"
        assert match.position == 0
        assert match.field == ContextField.SUBJECT

    def test_quiet_email_has_no_matches(self) -> None:
        result = _matcher().match_email(_email(subject="Lunch plans", body="Tacos on Friday?"))
        assert result.has_matches is False
        assert result.total_matches == 0
        assert result.aggregate_weight == 0.0

    def test_regex_first_occurrence_only(self) -> None:
        email = _email(subject="Status", body="critical bug found, another critical issue too")
        result = _matcher().match_email(email)
        regex_matches = [m for m in result.matches if m.pattern.id == "incident-critical-bug-regex"]
        assert len(regex_matches) == 1
        assert regex_matches[0].matched_text == "critical bug"
        assert regex_matches[0].position == 0

    def test_sender_field_uses_display_name(self) -> None:
        email = _email(subject="Hi", body="Thanks", sender="ceo@example.com", sender_name="CEO Jane")
        result = _matcher().match_email(email)
        fields = {m.field for m in result.matches if m.pattern.id == "vip-exec-titles-regex"}
        assert ContextField.SENDER in fields

    def test_snippet_used_when_body_missing(self) -> None:
        email = _email(subject="Hi", body=None, snippet="we have an outage")
        result = _matcher().match_email(email)
        assert "incident-outage-keyword" in result.matched_pattern_ids


# ── Aggregation ──────────────────────────────────────────────────────────────


class TestAggregation:
    def test_pattern_in_two_fields_counted_once(self) -> None:
        email = _email(subject="Urgent request", body="This is urgent")
        result = _matcher().match_email(email)
        urgent = [m for m in result.matches if m.pattern.id == "urgency-urgent-keyword"]
        assert len(urgent) == 2
        assert result.aggregate_weight == pytest.approx(0.9)

    def test_total_matches_counts_occurrences(self) -> None:
        email = _email(subject="Urgent request", body="This is urgent")
        result = _matcher().match_email(email)
        assert result.total_matches == len(result.matches)


# ── Fuzzy matching ───────────────────────────────────────────────────────────


class TestFuzzyMatching:
    def test_typo_within_limits_matches(self) -> None:
        email = _email(subject="Hi", body="this is urgant please")
        result = _matcher().match_email(email)
        match = next(m for m in result.matches if m.pattern.id == "urgency-urgent-keyword")
        assert match.matched_text == "urgant"
        assert match.position == 8

    def test_typo_below_ratio_rejected(self) -> None:
        # distance 2 on a 6-letter word: ratio 0.67 < 0.8
        email = _email(subject="Hi", body="this is urgnet please")
        result = _matcher().match_email(email)
        assert "urgency-urgent-keyword" not in result.matched_pattern_ids

    def test_fuzzy_disabled_skips_typos(self) -> None:
        email = _email(subject="Hi", body="this is urgant please")
        result = _matcher(enable_fuzzy_matching=False).match_email(email)
        assert "urgency-urgent-keyword" not in result.matched_pattern_ids

    def test_fuzzy_disabled_keeps_exact_match(self) -> None:
        email = _email(subject="URGENT", body="")
        for enabled in (True, False):
            result = _matcher(enable_fuzzy_matching=enabled).match_email(email)
            assert "urgency-urgent-keyword" in result.matched_pattern_ids

    def test_multi_word_window(self) -> None:
        hit = fuzzy_search("the pump failur happened", "pump failure", threshold=0.8, max_distance=2)
        assert hit is not None
        assert hit.matched_text == "pump failur"
        assert hit.position == 4

    def test_window_not_found_has_no_position(self) -> None:
        hit = fuzzy_search("pump   failure", "pump failur", threshold=0.8, max_distance=2)
        assert hit is not None
        assert hit.position is None
        assert hit.matched_text == "pump failure"

    def test_exact_hit_returned_first(self) -> None:
        hit = fuzzy_search("Pump failure", "pump", threshold=0.8, max_distance=2)
        assert hit is not None
        assert (hit.matched_text, hit.position) == ("Pump", 0)

    def test_no_hit(self) -> None:
        assert fuzzy_search("lunch on friday", "outage", threshold=0.8, max_distance=2) is None


# ── Custom patterns & configuration ──────────────────────────────────────────


class TestCustomPatterns:
    def test_ad_hoc_patterns(self) -> None:
        email = _email(subject="Pump failure", body="")
        result = _matcher().match_email_with_patterns(email, [_keyword_pattern()])
        assert result.matched_pattern_ids == ["custom-keyword"]
        assert result.aggregate_weight == pytest.approx(0.5)

    def test_ad_hoc_invalid_regex(self) -> None:
        with pytest.raises(InvalidPatternError):
            _matcher().match_email_with_patterns(_email(), [_keyword_pattern(kind="regex", pattern="[")])

    def test_case_sensitive_keyword(self) -> None:
        pattern = _keyword_pattern(pattern="SEV", case_sensitive=True)
        matcher = KeywordMatcher(catalog=PatternCatalog([pattern]))
        assert matcher.match_email(_email(subject="SEV incident")).has_matches is True
        assert matcher.match_email(_email(subject="sev incident")).has_matches is False

    def test_empty_catalog_matches_nothing(self) -> None:
        matcher = KeywordMatcher(catalog=PatternCatalog([]))
        assert matcher.match_email(_email(subject="URGENT")).has_matches is False

    def test_add_patterns_swaps_catalog(self) -> None:
        matcher = _matcher()
        before = matcher.catalog
        matcher.add_patterns([_keyword_pattern()])
        assert matcher.catalog is not before
        assert len(matcher.catalog) == len(before) + 1
        assert "custom-keyword" in matcher.match_email(_email(subject="pump")).matched_pattern_ids

    def test_add_duplicate_leaves_catalog_untouched(self) -> None:
        matcher = _matcher()
        before = matcher.catalog
        with pytest.raises(DuplicatePatternError):
            matcher.add_patterns([_keyword_pattern(id="urgency-asap-keyword")])
        assert matcher.catalog is before

    def test_reconfigure_options(self) -> None:
        matcher = _matcher()
        matcher.reconfigure(options=MatcherOptions(enable_fuzzy_matching=False))
        assert matcher.options.enable_fuzzy_matching is False

    def test_invalid_options_rejected(self) -> None:
        with pytest.raises(InvalidOptionsError):
            MatcherOptions(fuzzy_match_threshold=1.5)
        with pytest.raises(InvalidOptionsError):
            MatcherOptions(max_fuzzy_distance=-1)


class TestBatch:
    def test_match_emails_keyed_by_id(self) -> None:
        emails = [_email("a", subject="urgent"), _email("b", subject="lunch")]
        results = _matcher().match_emails(emails)
        assert set(results) == {"a", "b"}
        assert results["a"].has_matches is True
        assert results["b"].has_matches is False
