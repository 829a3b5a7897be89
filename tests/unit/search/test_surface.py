"""Tests for trip search surface scoring."""

import pytest

from tripsearch.data_models import TripSurfaceRow
from tripsearch.search.surface import (
    CONFIRMED_BONUS,
    PRIMARY_EMAIL_EXACT,
    SLUG_EXACT,
    TOKEN_SEARCH,
    TRIP_ID_EXACT,
    SurfaceQuery,
    rank_surface_rows,
    score_surface_row,
)


@pytest.fixture
def henderson() -> TripSurfaceRow:
    return TripSurfaceRow(
        trip_id=502,
        trip_name="Henderson Family Reunion",
        trip_slug="henderson-family-reunion-2024",
        status="completed",
        primary_client_name="Pat Henderson",
        primary_client_email="pat.henderson@example.com",
        traveler_names=["Pat Henderson", "Lou Henderson"],
        traveler_emails=["pat.henderson@example.com", "lou@example.com"],
        traveler_count=4,
        search_tokens="henderson hendersen family reunion dublin galway pat",
        normalized_trip_name="henderson family reunion",
        normalized_destinations="dublin galway",
    )


@pytest.fixture
def acme() -> TripSurfaceRow:
    return TripSurfaceRow(
        trip_id=501,
        trip_name="Acme Corporate Retreat",
        status="confirmed",
        search_tokens="acme corporate retreat lisbon",
        normalized_trip_name="acme corporate retreat",
    )


class TestSurfaceQuery:
    def test_parse_tokens_and_slug(self) -> None:
        query = SurfaceQuery.parse("Hendersen reunion")

        assert query.tokens == ("hendersen", "reunion")
        assert query.slug == "hendersen-reunion"
        assert query.emails == ()
        assert query.trip_ids == ()

    def test_parse_ids_and_emails(self) -> None:
        query = SurfaceQuery.parse("trip 502 pat.henderson@example.com")

        assert query.trip_ids == (502,)
        assert query.emails == ("pat.henderson@example.com",)

    def test_tokens_are_capped(self) -> None:
        query = SurfaceQuery.parse(" ".join(f"w{i}" for i in range(20)))
        assert len(query.tokens) == 8

    def test_null_surface_fields_are_tolerated(self) -> None:
        row = TripSurfaceRow.model_validate(
            {
                "trip_id": 1,
                "trip_name": "Untitled",
                "traveler_names": None,
                "search_tokens": None,
                "traveler_count": None,
            }
        )
        assert row.traveler_names == []
        assert row.search_tokens == ""
        assert row.traveler_count == 0


class TestScoreSurfaceRow:
    def test_token_match_plus_traveler_bonus(self, henderson: TripSurfaceRow) -> None:
        match = score_surface_row(henderson, SurfaceQuery.parse("Hendersen"))

        assert match.score == TOKEN_SEARCH + 4
        assert match.matched_tokens == ["hendersen"]
        assert match.reasons == ["token_match"]

    def test_slug_exact(self, henderson: TripSurfaceRow) -> None:
        match = score_surface_row(
            henderson, SurfaceQuery.parse("henderson-family-reunion-2024")
        )

        assert "slug_exact" in match.reasons
        assert match.score >= SLUG_EXACT

    def test_id_and_primary_email(self, henderson: TripSurfaceRow) -> None:
        match = score_surface_row(
            henderson, SurfaceQuery.parse("502 pat.henderson@example.com")
        )

        assert "trip_id_exact" in match.reasons
        assert "primary_email_exact" in match.reasons
        assert match.score >= TRIP_ID_EXACT + PRIMARY_EMAIL_EXACT

    def test_traveler_email(self, henderson: TripSurfaceRow) -> None:
        match = score_surface_row(henderson, SurfaceQuery.parse("lou@example.com"))
        assert "traveler_email_match" in match.reasons

    def test_confirmed_bonus(self, acme: TripSurfaceRow) -> None:
        match = score_surface_row(acme, SurfaceQuery.parse("acme"))
        assert match.score == TOKEN_SEARCH + CONFIRMED_BONUS


class TestRankSurfaceRows:
    def test_drops_rows_without_matches(
        self, henderson: TripSurfaceRow, acme: TripSurfaceRow
    ) -> None:
        ranked = rank_surface_rows([acme, henderson], SurfaceQuery.parse("reunion"))
        assert [m.row.trip_id for m in ranked] == [502]

    def test_best_score_first(
        self, henderson: TripSurfaceRow, acme: TripSurfaceRow
    ) -> None:
        ranked = rank_surface_rows(
            [acme, henderson], SurfaceQuery.parse("henderson acme")
        )
        assert [m.row.trip_id for m in ranked] == [502, 501]
