"""Repository factory."""

from sqlalchemy.ext.asyncio import AsyncSession

from .sqlalchemy.repositories import (
    AnswerRepository,
    ClientRepository,
    ErrorRepository,
    TripComponentRepository,
    TripRepository,
    TripSurfaceRepository,
)


class RepositoryFactory:
    """Factory for creating repositories bound to one database session."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @property
    def answers(self) -> AnswerRepository:
        """Get precomputed answer repository."""
        return AnswerRepository(self._session)

    @property
    def trips(self) -> TripRepository:
        """Get trip record repository."""
        return TripRepository(self._session)

    @property
    def clients(self) -> ClientRepository:
        """Get client record repository."""
        return ClientRepository(self._session)

    @property
    def surface(self) -> TripSurfaceRepository:
        """Get trip search surface repository."""
        return TripSurfaceRepository(self._session)

    @property
    def components(self) -> TripComponentRepository:
        """Get semantic component repository."""
        return TripComponentRepository(self._session)

    @property
    def errors(self) -> ErrorRepository:
        """Get recorded error repository."""
        return ErrorRepository(self._session)
