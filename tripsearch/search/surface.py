"""Scoring over the externally maintained trip search surface."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from tripsearch.config.patterns import EMAIL_SEARCH_PATTERN
from tripsearch.data_models import TripSurfaceRow

from .shapes import MAX_RECORD_ID

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")

MIN_TOKEN_LENGTH = 2
MAX_TOKENS = 8

SLUG_EXACT = 160
TRIP_ID_EXACT = 140
PRIMARY_EMAIL_EXACT = 120
TRAVELER_EMAIL = 80
CONFIRMED_BONUS = 3
MAX_TRAVELER_BONUS = 5

# First matching rule wins per token
TOKEN_SEARCH = 22
TOKEN_PHONETIC = 14
TOKEN_TRIP_NAME = 12
TOKEN_DESTINATION = 10
TOKEN_TRAVELER = 9
TOKEN_EMAIL = 7
TOKEN_PRIMARY_NAME = 6
TOKEN_TRIP_NAME_PARTIAL = 6


@dataclass
class SurfaceMatch:
    row: TripSurfaceRow
    score: int
    matched_tokens: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SurfaceQuery:
    """Signals extracted from a raw query for surface lookup."""

    tokens: tuple[str, ...]
    emails: tuple[str, ...]
    slug: str
    trip_ids: tuple[int, ...]

    @classmethod
    def parse(cls, raw: str) -> SurfaceQuery:
        lowered = raw.strip().lower()
        tokens = tuple(
            t for t in _TOKEN_SPLIT.split(lowered) if len(t) >= MIN_TOKEN_LENGTH
        )[:MAX_TOKENS]
        emails = tuple(dict.fromkeys(EMAIL_SEARCH_PATTERN.findall(lowered)))
        trip_ids = tuple(
            int(t) for t in tokens if t.isdigit() and 0 < int(t) <= MAX_RECORD_ID
        )
        return cls(
            tokens=tokens,
            emails=emails,
            slug=re.sub(r"\s+", "-", lowered),
            trip_ids=trip_ids,
        )


def score_surface_row(row: TripSurfaceRow, query: SurfaceQuery) -> SurfaceMatch:
    """Score one candidate row against the parsed query."""
    match = SurfaceMatch(row=row, score=0)

    def hit(points: int, token: str, reason: str) -> None:
        match.score += points
        if token not in match.matched_tokens:
            match.matched_tokens.append(token)
        match.reasons.append(reason)

    if row.trip_slug and query.slug == row.trip_slug.lower():
        hit(SLUG_EXACT, query.slug, "slug_exact")

    for trip_id in query.trip_ids:
        if row.trip_id == trip_id:
            hit(TRIP_ID_EXACT, str(trip_id), "trip_id_exact")

    traveler_emails = " ".join(row.traveler_emails).lower()
    for email in query.emails:
        if row.primary_client_email and row.primary_client_email.lower() == email:
            hit(PRIMARY_EMAIL_EXACT, email, "primary_email_exact")
        elif email in traveler_emails:
            hit(TRAVELER_EMAIL, email, "traveler_email_match")

    search_tokens = set(row.search_tokens.split())
    phonetic_tokens = set(row.phonetic_tokens.split())
    destinations = (row.destinations or "").lower()
    traveler_names = " ".join(row.traveler_names).lower()
    primary_name = (row.primary_client_name or "").lower()
    trip_name = row.trip_name.lower()

    for token in query.tokens:
        if token in search_tokens:
            hit(TOKEN_SEARCH, token, "token_match")
        elif token in phonetic_tokens:
            hit(TOKEN_PHONETIC, token, "phonetic_match")
        elif token in row.normalized_trip_name:
            hit(TOKEN_TRIP_NAME, token, "normalized_trip_name")
        elif token in destinations or token in row.normalized_destinations:
            hit(TOKEN_DESTINATION, token, "destination_match")
        elif token in row.normalized_travelers or token in traveler_names:
            hit(TOKEN_TRAVELER, token, "traveler_match")
        elif token in row.normalized_emails:
            hit(TOKEN_EMAIL, token, "email_token")
        elif token in primary_name:
            hit(TOKEN_PRIMARY_NAME, token, "primary_client_name")
        elif token in trip_name:
            hit(TOKEN_TRIP_NAME_PARTIAL, token, "trip_name_partial")

    if row.status and row.status.lower() == "confirmed":
        match.score += CONFIRMED_BONUS
    if row.traveler_count > 0:
        match.score += min(row.traveler_count, MAX_TRAVELER_BONUS)

    return match


def rank_surface_rows(
    rows: Sequence[TripSurfaceRow], query: SurfaceQuery
) -> list[SurfaceMatch]:
    """Score rows, drop those that matched nothing, best first."""
    scored = [score_surface_row(row, query) for row in rows]
    kept = [m for m in scored if m.matched_tokens]
    kept.sort(key=lambda m: (-m.score, m.row.trip_id))
    return kept
