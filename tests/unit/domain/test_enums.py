"""Tests for the closed enumerations."""

import pytest

from tripsearch.domain import ComplexityTier, ContextType


class TestComplexityTier:
    def test_ordering(self) -> None:
        assert ComplexityTier.COMPLEX.at_least(ComplexityTier.MODERATE)
        assert ComplexityTier.MODERATE.at_least(ComplexityTier.MODERATE)
        assert not ComplexityTier.SIMPLE.at_least(ComplexityTier.MODERATE)

    def test_highest(self) -> None:
        assert (
            ComplexityTier.highest(ComplexityTier.SIMPLE, ComplexityTier.COMPLEX)
            is ComplexityTier.COMPLEX
        )


class TestContextType:
    @pytest.mark.parametrize(
        ("context_type", "expected"),
        [
            (ContextType.TRIP_FULL, True),
            (ContextType.CLIENT_PROFILE, True),
            (ContextType.QUICK_ANSWER, True),
            (ContextType.TRIP_SLUG_MATCH, False),
            (ContextType.SEMANTIC_SEARCH_RESULT, False),
        ],
    )
    def test_is_precomputed(self, context_type: ContextType, expected: bool) -> None:
        assert context_type.is_precomputed is expected
