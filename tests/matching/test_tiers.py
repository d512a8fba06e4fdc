"""Tests for confidence tier classification."""

import pytest

from matching.models import CandidateRecord, MatchResult
from matching.tiers import (
    AutoResolved,
    NeedsClarification,
    NeedsConfirmation,
    NotFound,
    TierThresholds,
    classify,
)


def _results(*scores):
    return [
        MatchResult(candidate=CandidateRecord(id=str(i), text=f"Task {i}"), score=s)
        for i, s in enumerate(scores)
    ]


class TestClassify:
    def test_no_matches_is_not_found(self):
        outcome = classify([], query="xyz")
        assert isinstance(outcome, NotFound)
        assert outcome.query == "xyz"

    def test_single_strong_match_auto_resolves(self):
        outcome = classify(_results(95))
        assert isinstance(outcome, AutoResolved)
        assert outcome.score == 95

    def test_strong_match_with_weak_tail_auto_resolves(self):
        assert isinstance(classify(_results(95, 60, 30)), AutoResolved)

    def test_two_contenders_need_clarification(self):
        outcome = classify(_results(95, 72))
        assert isinstance(outcome, NeedsClarification)
        assert [m.score for m in outcome.matches] == [95, 72]

    def test_mid_score_needs_confirmation(self):
        outcome = classify(_results(80))
        assert isinstance(outcome, NeedsConfirmation)
        assert outcome.candidate.id == "0"

    def test_below_floor_is_not_found(self):
        assert isinstance(classify(_results(69)), NotFound)

    def test_clarification_capped_at_max_options(self):
        outcome = classify(_results(95, 95, 95, 95, 95, 95, 95))
        assert isinstance(outcome, NeedsClarification)
        assert len(outcome.matches) == 5

    def test_custom_thresholds(self):
        thresholds = TierThresholds(auto=80, floor=50, max_options=3)
        assert isinstance(classify(_results(85), thresholds), AutoResolved)
        assert isinstance(classify(_results(60), thresholds), NeedsConfirmation)
        assert len(classify(_results(85, 60, 55, 51), thresholds).matches) == 3


class TestThresholds:
    def test_floor_above_auto_rejected(self):
        with pytest.raises(ValueError):
            TierThresholds(auto=60, floor=70)

    def test_max_options_below_two_rejected(self):
        with pytest.raises(ValueError):
            TierThresholds(max_options=1)

    def test_clarification_needs_two_matches(self):
        with pytest.raises(ValueError):
            NeedsClarification(tuple(_results(90)))
