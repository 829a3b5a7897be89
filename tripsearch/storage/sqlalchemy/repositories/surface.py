"""Repository for the trip search surface."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import ColumnElement, String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripsearch.data_models import TripSurfaceRow
from tripsearch.storage.sqlalchemy.clauses import LIKE_ESCAPE, contains_pattern
from tripsearch.storage.sqlalchemy.tables import TripSearchSurfaceTable as Surface

_TOKEN_COLUMNS = (
    Surface.trip_name,
    Surface.destinations,
    Surface.search_tokens,
    Surface.phonetic_tokens,
    Surface.normalized_trip_name,
    Surface.normalized_destinations,
    Surface.normalized_travelers,
    Surface.normalized_emails,
)


class TripSurfaceRepository:
    """Candidate lookup over the externally refreshed surface index."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_candidates(
        self,
        *,
        tokens: Sequence[str],
        slug: str | None = None,
        trip_ids: Sequence[int] = (),
        emails: Sequence[str] = (),
        limit: int = 25,
    ) -> list[TripSurfaceRow]:
        """Rows matching any signal, newest sync first. Scoring happens later."""
        conditions: list[ColumnElement[bool]] = []

        if slug:
            conditions.append(func.lower(Surface.trip_slug) == slug.lower())
        if trip_ids:
            conditions.append(Surface.trip_id.in_(list(trip_ids)))
        for email in emails:
            conditions.append(
                or_(
                    func.lower(Surface.primary_client_email) == email.lower(),
                    cast(Surface.traveler_emails, String).ilike(
                        contains_pattern(email.lower()), escape=LIKE_ESCAPE
                    ),
                )
            )
        for token in tokens:
            pattern = contains_pattern(token)
            conditions.append(
                or_(
                    *(
                        column.ilike(pattern, escape=LIKE_ESCAPE)
                        for column in _TOKEN_COLUMNS
                    )
                )
            )

        if not conditions:
            return []

        stmt = (
            select(Surface)
            .where(or_(*conditions))
            .order_by(
                Surface.last_synced.is_(None),
                Surface.last_synced.desc(),
                Surface.trip_id.asc(),
            )
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [TripSurfaceRow.model_validate(row) for row in result.scalars().all()]
