"""Tests for the bounded weighted clause builder."""

import pytest

from tripsearch.storage.sqlalchemy import build_weighted_clause, escape_like
from tripsearch.storage.sqlalchemy.tables import TripTable

COLUMNS = [TripTable.trip_name, TripTable.destinations]


class TestEscapeLike:
    def test_escapes_metacharacters(self) -> None:
        assert escape_like("100%_off\\") == "100\\%\\_off\\\\"

    def test_plain_text_unchanged(self) -> None:
        assert escape_like("bristol") == "bristol"


class TestBuildWeightedClause:
    def test_one_pattern_per_term(self) -> None:
        clause = build_weighted_clause(["Sara", "Darren"], COLUMNS)

        assert clause.terms == ("sara", "darren")
        assert clause.patterns == ("%sara%", "%darren%")

    def test_caps_terms(self) -> None:
        clause = build_weighted_clause(["a1", "b2", "c3", "d4"], COLUMNS, max_terms=3)
        assert clause.terms == ("a1", "b2", "c3")

    def test_single_term_mode(self) -> None:
        clause = build_weighted_clause(["sara", "darren"], COLUMNS, max_terms=1)
        assert clause.patterns == ("%sara%",)

    def test_deduplicates_case_insensitively(self) -> None:
        clause = build_weighted_clause(["Sara", "sara", " SARA "], COLUMNS)
        assert clause.terms == ("sara",)

    def test_bounds_pattern_length(self) -> None:
        clause = build_weighted_clause(["x" * 100], COLUMNS, max_pattern_length=48)
        assert clause.patterns == ("%" + "x" * 48 + "%",)

    def test_escapes_terms(self) -> None:
        clause = build_weighted_clause(["50%"], COLUMNS)
        assert clause.patterns == ("%50\\%%",)

    def test_requires_a_term(self) -> None:
        with pytest.raises(ValueError):
            build_weighted_clause(["", "  "], COLUMNS)

    def test_requires_a_column(self) -> None:
        with pytest.raises(ValueError):
            build_weighted_clause(["sara"], [])
