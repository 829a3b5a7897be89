"""SQLAlchemy persistence layer."""

from .base import Base
from .clauses import WeightedClause, build_weighted_clause, escape_like
from .engine import (
    create_engine,
    init_database,
    make_session_maker,
)
from .repositories import (
    AnswerRepository,
    ClientRepository,
    ErrorRepository,
    TripComponentRepository,
    TripRepository,
    TripSurfaceRepository,
)
from .tables import (
    ClientTable,
    DatabaseErrorTable,
    PrecomputedAnswerTable,
    TripComponentTable,
    TripSearchSurfaceTable,
    TripTable,
)

__all__ = [
    # Engine
    "create_engine",
    "init_database",
    "make_session_maker",
    # Clauses
    "WeightedClause",
    "build_weighted_clause",
    "escape_like",
    # Tables
    "Base",
    "ClientTable",
    "DatabaseErrorTable",
    "PrecomputedAnswerTable",
    "TripComponentTable",
    "TripSearchSurfaceTable",
    "TripTable",
    # Repositories
    "AnswerRepository",
    "ClientRepository",
    "ErrorRepository",
    "TripComponentRepository",
    "TripRepository",
    "TripSurfaceRepository",
]
