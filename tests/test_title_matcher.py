"""
Unit tests for title similarity policy.
"""

import pytest

from core.title_matcher import TitleMatchPolicy, escape_like


class TestSignificantTokens:
    """Tests for title tokenization."""

    def test_drops_stopwords_and_short_tokens(self):
        policy = TitleMatchPolicy()
        tokens = policy.significant_tokens("The Luxury Flat for Sale with Pool in Lekki")
        assert tokens == ["luxury", "flat", "sale", "pool", "lekki"]

    def test_splits_on_punctuation_and_lowercases(self):
        policy = TitleMatchPolicy()
        assert policy.significant_tokens("DUPLEX,Ikoyi-Lagos!") == ["duplex", "ikoyi", "lagos"]

    def test_deduplicates_preserving_order(self):
        policy = TitleMatchPolicy()
        assert policy.significant_tokens("Lekki lekki Terrace") == ["lekki", "terrace"]

    def test_empty_title(self):
        assert TitleMatchPolicy().significant_tokens("") == []
        assert TitleMatchPolicy().significant_tokens(None) == []

    def test_only_short_words(self):
        assert TitleMatchPolicy().significant_tokens("A 3 bed in Ojo") == []


class TestSearchTokens:
    """Tests for the configurable matching strategy."""

    def test_first_token_strategy(self):
        policy = TitleMatchPolicy(strategy="first_token")
        assert policy.search_tokens("Spacious 3 Bedroom Flat") == ["spacious"]

    def test_any_token_strategy(self):
        policy = TitleMatchPolicy(strategy="any_token")
        assert policy.search_tokens("Spacious 3 Bedroom Flat") == [
            "spacious",
            "bedroom",
            "flat",
        ]

    def test_min_token_length_is_configurable(self):
        policy = TitleMatchPolicy(min_token_length=3)
        assert policy.significant_tokens("Bed in Yaba") == ["bed", "yaba"]

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValueError):
            TitleMatchPolicy(strategy="levenshtein")


def test_escape_like_escapes_wildcards():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
