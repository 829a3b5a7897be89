"""Tests for query normalization and weighted term selection."""

from tripsearch.config import ResolverConfig
from tripsearch.domain import StrategyHint
from tripsearch.search.terms import (
    derive_strategy_hint,
    normalize_search_term,
    optimize_terms,
    search_variations,
    select_weighted_terms,
    spelling_variants,
)

STOP_WORDS = ResolverConfig().stop_words


class TestNormalizeSearchTerm:
    def test_unifies_ampersand_and_slash(self) -> None:
        assert (
            normalize_search_term("Sara & Darren, Bristol/Bath")
            == "sara and darren bristol or bath"
        )

    def test_dashes_become_spaces(self) -> None:
        assert normalize_search_term("Acme-Retreat - 2025") == "acme retreat 2025"

    def test_keeps_email_punctuation(self) -> None:
        assert normalize_search_term("Sara@Example.com!") == "sara@example.com"

    def test_collapses_whitespace(self) -> None:
        assert normalize_search_term("  sara \t darren  ") == "sara darren"


class TestSelectWeightedTerms:
    def test_capitalised_words_are_names(self) -> None:
        terms = select_weighted_terms("Sara Darren Bristol", STOP_WORDS)

        assert [t.term for t in terms] == ["sara", "darren", "bristol"]
        assert all(t.reason == "name" for t in terms)
        assert all(t.weight == 2.0 for t in terms)

    def test_stop_words_only_yields_nothing(self) -> None:
        assert select_weighted_terms("show me all the details", STOP_WORDS) == ()

    def test_email_outweighs_location(self) -> None:
        terms = select_weighted_terms("sara@example.com bristol trip", STOP_WORDS)

        assert [(t.term, t.reason) for t in terms] == [
            ("sara@example.com", "identifier"),
            ("bristol", "location"),
        ]
        assert terms[0].weight > terms[1].weight

    def test_short_uppercase_token_is_a_code(self) -> None:
        terms = select_weighted_terms("BA flight to Rome", STOP_WORDS)

        assert [t.term for t in terms] == ["ba", "rome", "flight"]
        assert terms[0].reason == "identifier"

    def test_all_caps_query_has_no_codes(self) -> None:
        terms = select_weighted_terms("SARA DARREN", STOP_WORDS)

        assert terms
        assert all(t.reason != "identifier" for t in terms)

    def test_caps_number_of_terms(self) -> None:
        terms = select_weighted_terms(
            "Alpha Bravo Charlie Delta", STOP_WORDS, max_terms=3
        )
        assert [t.term for t in terms] == ["alpha", "bravo", "charlie"]

    def test_drops_short_and_duplicate_tokens(self) -> None:
        terms = select_weighted_terms("x bristol Bristol", STOP_WORDS)
        assert [t.term for t in terms] == ["bristol"]

    def test_ties_keep_query_order(self) -> None:
        terms = select_weighted_terms("Darren Sara", STOP_WORDS)
        assert [t.position for t in terms] == [0, 1]

    def test_optimize_terms_uses_config(self) -> None:
        config = ResolverConfig(max_search_terms=1)
        terms = optimize_terms("Sara Darren Bristol", config)
        assert [t.term for t in terms] == ["sara"]


class TestVariations:
    def test_spelling_variants(self) -> None:
        assert spelling_variants("Sara & Darren") == [
            "Sara & Darren",
            "sara and darren",
            "sara & darren",
        ]

    def test_name_pair_is_split(self) -> None:
        variations = search_variations("Sara and Darren")

        assert "sara darren" in variations
        assert variations[-2:] == ["sara", "darren"]

    def test_brand_with_and_inside_word_is_not_split(self) -> None:
        assert "gr" not in search_variations("Grand Hotel")

    def test_no_duplicates(self) -> None:
        variations = search_variations("bristol")
        assert len(variations) == len(set(variations))


class TestDeriveStrategyHint:
    def test_bare_number_is_exact(self) -> None:
        assert derive_strategy_hint("482") is StrategyHint.EXACT

    def test_email_is_exact(self) -> None:
        assert derive_strategy_hint("sara@example.com") is StrategyHint.EXACT

    def test_long_query_is_broad(self) -> None:
        assert derive_strategy_hint("one two three four five") is StrategyHint.BROAD

    def test_short_query_is_fuzzy(self) -> None:
        assert derive_strategy_hint("Sara Darren") is StrategyHint.FUZZY
