"""Read-only repositories for trip and client records."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripsearch.data_models import ClientRecord, TripRecord
from tripsearch.storage.sqlalchemy.clauses import build_weighted_clause
from tripsearch.storage.sqlalchemy.tables import ClientTable, TripTable

_TRIP_COLUMNS: dict[str, ColumnElement[str]] = {
    "trip_name": TripTable.trip_name,
    "destinations": TripTable.destinations,
    "notes": TripTable.notes,
    "trip_slug": TripTable.trip_slug,
    "search_text": TripTable.search_text,
}

_CLIENT_COLUMNS: dict[str, ColumnElement[str]] = {
    "full_name": ClientTable.full_name,
    "email": ClientTable.email,
    "home_city": ClientTable.home_city,
    "notes": ClientTable.notes,
    "search_text": ClientTable.search_text,
}


class TripRepository:
    """Repository for trip records."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, trip_id: int) -> TripRecord | None:
        row = await self._session.get(TripTable, trip_id)
        return TripRecord.model_validate(row) if row else None

    async def get_many(self, trip_ids: Sequence[int]) -> dict[int, TripRecord]:
        if not trip_ids:
            return {}
        stmt = select(TripTable).where(TripTable.trip_id.in_(list(trip_ids)))
        result = await self._session.execute(stmt)
        return {
            row.trip_id: TripRecord.model_validate(row)
            for row in result.scalars().all()
        }

    async def get_by_slug(self, slug: str) -> TripRecord | None:
        stmt = (
            select(TripTable)
            .where(func.lower(TripTable.trip_slug) == slug.strip().lower())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return TripRecord.model_validate(row) if row else None

    async def search_weighted(
        self,
        terms: Sequence[str],
        columns: Sequence[str],
        *,
        limit: int = 3,
        max_terms: int = 3,
        max_pattern_length: int = 48,
    ) -> list[tuple[TripRecord, int, int]]:
        """Rank trips by terms matched, column priority, then recency."""
        clause = build_weighted_clause(
            terms,
            [_TRIP_COLUMNS[name] for name in columns],
            max_terms=max_terms,
            max_pattern_length=max_pattern_length,
        )
        match_count = clause.match_count.label("match_count")
        column_rank = clause.column_rank.label("column_rank")
        stmt = (
            select(TripTable, match_count, column_rank)
            .where(clause.predicate)
            .order_by(
                match_count.desc(),
                column_rank.asc(),
                TripTable.updated_at.desc(),
                TripTable.trip_id.asc(),
            )
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [
            (TripRecord.model_validate(row), int(matched), int(rank))
            for row, matched, rank in result.all()
        ]

    async def list_all(self) -> list[TripRecord]:
        result = await self._session.execute(
            select(TripTable).order_by(TripTable.trip_id)
        )
        return [TripRecord.model_validate(row) for row in result.scalars().all()]

    async def recent(self, limit: int = 5) -> list[TripRecord]:
        stmt = (
            select(TripTable)
            .order_by(TripTable.updated_at.desc(), TripTable.trip_id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [TripRecord.model_validate(row) for row in result.scalars().all()]


class ClientRepository:
    """Repository for client records."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, client_id: int) -> ClientRecord | None:
        row = await self._session.get(ClientTable, client_id)
        return ClientRecord.model_validate(row) if row else None

    async def get_by_email(self, email: str) -> ClientRecord | None:
        stmt = (
            select(ClientTable)
            .where(func.lower(ClientTable.email) == email.strip().lower())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return ClientRecord.model_validate(row) if row else None

    async def search_weighted(
        self,
        terms: Sequence[str],
        columns: Sequence[str],
        *,
        limit: int = 3,
        max_terms: int = 3,
        max_pattern_length: int = 48,
    ) -> list[tuple[ClientRecord, int, int]]:
        """Rank clients by terms matched, column priority, then recency."""
        clause = build_weighted_clause(
            terms,
            [_CLIENT_COLUMNS[name] for name in columns],
            max_terms=max_terms,
            max_pattern_length=max_pattern_length,
        )
        match_count = clause.match_count.label("match_count")
        column_rank = clause.column_rank.label("column_rank")
        stmt = (
            select(ClientTable, match_count, column_rank)
            .where(clause.predicate)
            .order_by(
                match_count.desc(),
                column_rank.asc(),
                ClientTable.updated_at.desc(),
                ClientTable.client_id.asc(),
            )
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [
            (ClientRecord.model_validate(row), int(matched), int(rank))
            for row, matched, rank in result.all()
        ]

    async def recent(self, limit: int = 3) -> list[ClientRecord]:
        stmt = (
            select(ClientTable)
            .order_by(ClientTable.updated_at.desc(), ClientTable.client_id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [ClientRecord.model_validate(row) for row in result.scalars().all()]
