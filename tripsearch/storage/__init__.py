"""Storage layer: SQLAlchemy tables, repositories and session helpers."""

from .factory import RepositoryFactory
from .sqlalchemy import (
    Base,
    create_engine,
    init_database,
    make_session_maker,
)

__all__ = [
    "Base",
    "RepositoryFactory",
    "create_engine",
    "init_database",
    "make_session_maker",
]
