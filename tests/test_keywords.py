"""
Unit tests for keyword extraction and keyword matching.
"""
import pytest

from smart_forward.analyzer.keywords import KeywordExtractor, levenshtein_distance, string_similarity


@pytest.fixture
def extractor():
    return KeywordExtractor()


class TestExtractKeywords:
    """Tests for keyword ranking."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t  \n"])
    def test_blank_text_yields_nothing(self, extractor, text):
        """Test that blank input gives an empty list, not an error."""
        assert extractor.extract_keywords(text) == []

    def test_only_recurring_candidates_are_kept(self, extractor):
        """Test that candidates seen once are dropped."""
        keywords = extractor.extract_keywords("Budget review budget review meeting")

        assert "meeting" not in keywords
        assert "review meeting" not in keywords

    def test_ties_break_alphabetically(self, extractor):
        """Test deterministic ordering of equal scores."""
        keywords = extractor.extract_keywords("Budget review budget review meeting", max_keywords=3)

        assert keywords == ["budget", "budget review", "review"]

    def test_stop_words_and_short_tokens_dropped(self, extractor):
        """Test that stop words and tokens of two chars or less never rank."""
        assert extractor.extract_keywords("the the the is is at at ok ok") == []

    def test_long_words_rank_above_short_words(self, extractor):
        """Test the length bonus for words longer than five characters."""
        keywords = extractor.extract_keywords("invoice cat invoice cat")

        assert keywords[0] == "invoice"
        assert keywords[-1] == "cat"

    def test_early_words_get_position_bonus(self, extractor):
        """Test that words in the first 100 characters score 1.3x."""
        filler = " ".join(f"word{i}" for i in range(30))
        text = f"alpha alpha {filler} omega omega"

        scores = dict(extractor.score_keywords(text))

        assert scores["alpha"] == pytest.approx(scores["omega"] * 1.3)

    def test_max_keywords_limits_result(self, extractor, long_report):
        """Test that no more than max_keywords come back."""
        text = f"{long_report} {long_report}"

        assert len(extractor.extract_keywords(text, max_keywords=4)) == 4

    def test_punctuation_is_ignored(self, extractor):
        """Test that punctuation does not split candidates apart."""
        keywords = extractor.extract_keywords("Invoice! invoice? INVOICE.")

        assert keywords == ["invoice", "invoice invoice"]


class TestFindKeywordMatches:
    """Tests for exact and fuzzy keyword matching."""

    @pytest.mark.parametrize("keyword", ["budget", "Friday", "urgent", "review the"])
    def test_literal_occurrence_always_matches(self, extractor, meeting_email, keyword):
        """Test that a keyword present in the text is found in exact mode."""
        assert extractor.find_keyword_matches(meeting_email, [keyword], fuzzy_match=False) == [keyword]

    def test_exact_match_is_case_insensitive(self, extractor):
        """Test case-insensitive containment."""
        assert extractor.find_keyword_matches("Please check the BUDGET", ["budget"], fuzzy_match=False) == ["budget"]

    def test_result_keeps_target_order(self, extractor):
        """Test that only found targets are returned, in the given order."""
        matches = extractor.find_keyword_matches(
            "urgent: budget overrun", ["invoice", "urgent", "budget"], fuzzy_match=False
        )

        assert matches == ["urgent", "budget"]

    def test_single_edit_typo_matches_fuzzily(self, extractor):
        """Test that a one-character typo is found in fuzzy mode only."""
        text = "the budgt is due on friday"

        assert extractor.find_keyword_matches(text, ["budget"], fuzzy_match=True) == ["budget"]
        assert extractor.find_keyword_matches(text, ["budget"], fuzzy_match=False) == []

    def test_fuzzy_ignores_trailing_punctuation(self, extractor):
        """Test that punctuation glued to a token still allows a fuzzy match."""
        assert extractor.find_keyword_matches("before the deadlin.", ["deadline"]) == ["deadline"]

    def test_fuzzy_rejects_unrelated_words(self, extractor):
        """Test that dissimilar words do not match."""
        assert extractor.find_keyword_matches("the cat sat on the mat", ["budget"]) == []

    def test_fuzzy_scan_respects_length_guard(self):
        """Test that tokens past the guard are not scanned."""
        extractor = KeywordExtractor(max_fuzzy_text_length=10)

        assert extractor.find_keyword_matches("aaaaaaaaaa budgt", ["budget"]) == []


class TestEditDistance:
    """Tests for Levenshtein distance and similarity."""

    @pytest.mark.parametrize("a,b,expected", [
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("same", "same", 0),
        ("budget", "budgt", 1),
    ])
    def test_levenshtein(self, a, b, expected):
        """Test known edit distances."""
        assert levenshtein_distance(a, b) == expected

    def test_similarity_of_empty_strings(self):
        """Test that two empty strings are identical."""
        assert string_similarity("", "") == 1.0

    def test_similarity_is_normalized_by_longer_string(self):
        """Test (maxLen - distance) / maxLen."""
        assert string_similarity("budget", "budgt") == pytest.approx(5 / 6)


class TestEmailActions:
    """Tests for email action detection."""

    def test_detects_each_action_once(self, extractor):
        """Test that action types come back once, in table order."""
        actions = extractor.extract_email_actions(
            "Urgent: please reply", "There is a bug in the login, please reply asap"
        )

        assert actions == ["reply", "urgent", "support"]

    def test_no_actions(self, extractor):
        """Test a message with no trigger phrases."""
        assert extractor.extract_email_actions("Lunch", "See you at noon") == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
