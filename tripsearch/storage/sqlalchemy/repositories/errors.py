"""Repository for recorded unexpected failures."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tripsearch.storage.sqlalchemy.tables import DatabaseErrorTable


class ErrorRepository:
    """Append-only log of failures, looked up by session id."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def record(
        self,
        *,
        session_id: str,
        operation: str,
        error_message: str,
        safe_message: str,
        table_names: str | None = None,
        context: dict[str, Any] | None = None,
        suggested_remedy: str | None = None,
    ) -> None:
        self._session.add(
            DatabaseErrorTable(
                session_id=session_id,
                attempted_operation=operation,
                error_message=error_message,
                safe_message=safe_message,
                table_names=table_names,
                context=context or {},
                suggested_remedy=suggested_remedy,
            )
        )
        await self._session.commit()

    async def find_by_session(self, session_id: str) -> list[dict[str, Any]]:
        stmt = (
            select(DatabaseErrorTable)
            .where(DatabaseErrorTable.session_id == session_id)
            .order_by(DatabaseErrorTable.error_id)
        )
        result = await self._session.execute(stmt)
        return [
            {
                "operation": row.attempted_operation,
                "error_message": row.error_message,
                "safe_message": row.safe_message,
                "table_names": row.table_names,
                "context": row.context,
                "suggested_remedy": row.suggested_remedy,
                "created_at": row.created_at,
            }
            for row in result.scalars().all()
        ]
