"""Tests for slug and identifier shape detection."""

import pytest

from tripsearch.search import IdentifierShape, detect_identifier, detect_slug


class TestDetectSlug:
    @pytest.mark.parametrize(
        "query",
        [
            "acme-retreat-2025",
            "Acme Retreat 2025",
            "acme_retreat_2025",
            " acme-retreat-2025 ",
        ],
    )
    def test_slug_spellings(self, query: str) -> None:
        assert detect_slug(query) == "acme-retreat-2025"

    @pytest.mark.parametrize(
        "query",
        ["bristol", "2025", "retreat-2025", "acme-retreat-25", "sara darren bristol"],
    )
    def test_not_a_slug(self, query: str) -> None:
        assert detect_slug(query) is None


class TestDetectIdentifier:
    def test_qualified_trip_id(self) -> None:
        assert detect_identifier("trip id 482") == IdentifierShape("trip", 482)

    def test_bare_number_targets_trips(self) -> None:
        assert detect_identifier("482") == IdentifierShape("trip", 482)

    def test_client_qualifier(self) -> None:
        assert detect_identifier("client #7") == IdentifierShape("client", 7)

    def test_free_text_with_number_is_not_an_id(self) -> None:
        assert detect_identifier("bristol 2025 getaway") is None

    def test_two_numbers_are_ambiguous(self) -> None:
        assert detect_identifier("trip 4 and 5") is None

    def test_noise_characters_disqualify(self) -> None:
        assert detect_identifier("trip 482!") is None

    def test_out_of_range_id(self) -> None:
        assert detect_identifier("99999999999999999999") is None
