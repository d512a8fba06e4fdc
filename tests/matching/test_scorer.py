"""Tests for fuzzy reference scoring."""

import pytest

from matching.models import CandidateRecord
from matching.scorer import keywords, rank, score, strip_punctuation


def _records(*texts):
    return [CandidateRecord(id=str(i), text=t) for i, t in enumerate(texts)]


class TestExactTiers:
    @pytest.mark.parametrize(
        "text",
        ["Buy milk", "Review client portfolios", "Don't forget: eggs!", "a", "Call mom @ 5pm"],
    )
    def test_identical_text_scores_100(self, text):
        value, reasons = score(text, text)
        assert value == 100
        assert reasons == {"exact_match"}

    def test_case_and_outer_whitespace_ignored(self):
        assert score("  Buy MILK ", "buy milk")[0] == 100

    def test_substring_scores_95(self):
        value, reasons = score("milk", "Buy milk today")
        assert value == 95
        assert "exact_substring" in reasons

    def test_substring_ignoring_punctuation_scores_90(self):
        value, reasons = score("dont forget eggs", "Don't forget eggs!")
        assert value == 90
        assert reasons == {"substring_with_variations"}

    def test_empty_query_scores_zero(self):
        assert score("", "Buy milk")[0] == 0


class TestKeywordScoring:
    def test_command_words_are_not_keywords(self):
        assert keywords("Mark the CFA study as done") == ["cfa", "study"]

    def test_keywords_dedupe_and_keep_order(self):
        assert keywords("review review the client review") == ["review", "client"]

    def test_strip_punctuation_collapses_whitespace(self):
        assert strip_punctuation("a -- b,   c!") == "a b c"

    def test_command_verb_in_reference_still_resolves(self):
        value, _ = score("completed review of client portfolios", "Review client portfolios")
        assert value >= 90

    def test_unrelated_task_scores_low(self):
        value, _ = score("completed review of client portfolios", "Complete CFA study session")
        assert value < 90

    def test_only_filler_words_scores_zero(self):
        assert score("mark done", "Water plants")[0] == 0

    def test_topic_boost_needs_lexical_overlap(self):
        # Both hit the meeting pattern but share no keyword
        assert score("team meeting", "client call")[0] == 0

    def test_reordered_words_lose_order_bonus(self):
        value, reasons = score("portfolios client", "client portfolios review")
        assert "all_keywords" in reasons
        assert "order_preserved" not in reasons
        assert value == 85

    def test_short_query_against_long_candidate_is_penalized(self):
        value, reasons = score(
            "quarterly taxes",
            "File the quarterly report and pay estimated business taxes before the deadline",
        )
        assert "length_penalty" in reasons
        assert value == 76

    def test_score_drops_as_overlap_drops(self):
        query = "review client portfolios"
        ladder = [
            "Review client portfolios",
            "Review client portfolio list",
            "Review client notes",
            "Review budget",
            "Buy groceries",
        ]
        values = [score(query, text)[0] for text in ladder]
        assert values == sorted(values, reverse=True)
        assert values[0] == 100
        assert values[-1] == 0


class TestRank:
    def test_sorted_descending_without_zero_scores(self):
        results = rank("review client portfolios", _records(
            "Buy groceries", "Review budget", "Review client portfolios",
        ))
        assert [r.text for r in results] == ["Review client portfolios", "Review budget"]
        assert results[0].score == 100

    def test_ties_keep_input_order(self):
        results = rank("meeting", _records(
            "Team meeting at 3pm", "Client meeting prep", "Meeting notes review",
        ))
        assert [r.score for r in results] == [95, 95, 95]
        assert [r.text for r in results] == [
            "Team meeting at 3pm", "Client meeting prep", "Meeting notes review",
        ]

    def test_empty_candidates(self):
        assert rank("anything", []) == []
