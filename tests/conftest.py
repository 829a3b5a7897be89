"""Shared fixtures: an in-memory database seeded with trips, clients and answers."""

import asyncio
from collections.abc import AsyncGenerator, Generator
from datetime import UTC, date, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tripsearch.config import ResolverConfig
from tripsearch.config.settings import clear_settings_cache
from tripsearch.data_models import TripRecord
from tripsearch.domain import ContextType
from tripsearch.search import SearchResolver, extract_trip_components
from tripsearch.storage import Base, RepositoryFactory, make_session_maker
from tripsearch.storage.sqlalchemy.tables import (
    ClientTable,
    PrecomputedAnswerTable,
    TripSearchSurfaceTable,
    TripTable,
)

SARA_TRIP_ID = 482
ACME_TRIP_ID = 501
HENDERSON_TRIP_ID = 502


def _trips() -> list[TripTable]:
    return [
        TripTable(
            trip_id=SARA_TRIP_ID,
            trip_name="Sara and Darren Anniversary",
            trip_slug="sara-darren-anniversary-2025",
            status="confirmed",
            start_date=date(2025, 6, 14),
            end_date=date(2025, 6, 21),
            destinations="Bristol, Bath",
            total_cost=4200.0,
            primary_client_email="sara@example.com",
            notes="Anniversary celebration",
            updated_at=datetime(2025, 3, 1, tzinfo=UTC),
        ),
        TripTable(
            trip_id=ACME_TRIP_ID,
            trip_name="Acme Corporate Retreat",
            trip_slug="acme-retreat-2025",
            status="planning",
            start_date=date(2025, 9, 8),
            end_date=date(2025, 9, 12),
            destinations="Lisbon",
            total_cost=18000.0,
            primary_client_email="events@acme.test",
            updated_at=datetime(2025, 2, 1, tzinfo=UTC),
        ),
        TripTable(
            trip_id=HENDERSON_TRIP_ID,
            trip_name="Henderson Family Reunion",
            trip_slug="henderson-family-reunion-2024",
            status="completed",
            start_date=date(2024, 8, 3),
            end_date=date(2024, 8, 10),
            destinations="Dublin, Galway",
            total_cost=9500.0,
            primary_client_email="pat.henderson@example.com",
            updated_at=datetime(2024, 9, 1, tzinfo=UTC),
        ),
    ]


def _clients() -> list[ClientTable]:
    return [
        ClientTable(
            client_id=7,
            full_name="Sara Whitfield",
            email="sara@example.com",
            home_city="Bristol",
            updated_at=datetime(2025, 3, 1, tzinfo=UTC),
        ),
        ClientTable(
            client_id=8,
            full_name="Darren Cole",
            email="darren@example.com",
            phone="+44 117 555 0101",
            updated_at=datetime(2025, 2, 1, tzinfo=UTC),
        ),
        ClientTable(
            client_id=9,
            full_name="Pat Henderson",
            email="pat.henderson@example.com",
            home_city="Dublin",
            updated_at=datetime(2024, 9, 1, tzinfo=UTC),
        ),
    ]


def _answers() -> list[PrecomputedAnswerTable]:
    return [
        PrecomputedAnswerTable(
            natural_key="Sara and Darren Anniversary",
            context_type=ContextType.TRIP_FULL.value,
            formatted_response=(
                "Sara and Darren Anniversary\n"
                "Destinations: Bristol, Bath\n"
                "Status: confirmed"
            ),
            search_keywords="sara darren bristol bath anniversary",
            raw_data={
                "trip_name": "Sara and Darren Anniversary",
                "status": "confirmed",
                "start_date": "2025-06-14",
                "total_cost": 4200,
                "client_emails": ["sara@example.com", "darren@example.com"],
            },
        ),
        PrecomputedAnswerTable(
            natural_key="Sara and Darren Paris Weekend",
            context_type=ContextType.TRIP_FULL.value,
            formatted_response="Sara and Darren Paris Weekend\nDestinations: Paris",
            search_keywords="sara darren paris weekend",
        ),
        PrecomputedAnswerTable(
            natural_key="sara@example.com",
            context_type=ContextType.CLIENT_PROFILE.value,
            formatted_response="Client: Sara Whitfield\nEmail: sara@example.com",
            search_keywords="sara whitfield",
        ),
        PrecomputedAnswerTable(
            natural_key="darren@example.com",
            context_type=ContextType.CLIENT_PROFILE.value,
            formatted_response="Client: Darren Cole\nEmail: darren@example.com",
            search_keywords="darren cole",
        ),
        PrecomputedAnswerTable(
            natural_key="Old Lisbon Offsite",
            context_type=ContextType.QUICK_ANSWER.value,
            formatted_response="Old Lisbon Offsite (archived)",
            search_keywords="lisbon offsite",
            expires_at=datetime(2020, 1, 1, tzinfo=UTC),
        ),
    ]


def _surface() -> list[TripSearchSurfaceTable]:
    return [
        TripSearchSurfaceTable(
            trip_id=HENDERSON_TRIP_ID,
            trip_name="Henderson Family Reunion",
            trip_slug="henderson-family-reunion-2024",
            status="completed",
            start_date=date(2024, 8, 3),
            end_date=date(2024, 8, 10),
            destinations="Dublin, Galway",
            primary_client_name="Pat Henderson",
            primary_client_email="pat.henderson@example.com",
            traveler_names=["Pat Henderson", "Lou Henderson"],
            traveler_emails=["pat.henderson@example.com", "lou@example.com"],
            traveler_count=4,
            search_tokens="henderson hendersen family reunion dublin galway pat",
            phonetic_tokens="HNTRSN FML RNN",
            normalized_trip_name="henderson family reunion",
            normalized_destinations="dublin galway",
            normalized_travelers="pat henderson lou henderson",
            normalized_emails="pat henderson example com lou example com",
            last_synced=datetime(2024, 9, 2, tzinfo=UTC),
        ),
        TripSearchSurfaceTable(
            trip_id=ACME_TRIP_ID,
            trip_name="Acme Corporate Retreat",
            trip_slug="acme-retreat-2025",
            status="planning",
            destinations="Lisbon",
            primary_client_name="Acme Events",
            primary_client_email="events@acme.test",
            traveler_names=[],
            traveler_emails=[],
            traveler_count=0,
            search_tokens="acme corporate retreat lisbon",
            normalized_trip_name="acme corporate retreat",
            normalized_destinations="lisbon",
            last_synced=datetime(2025, 2, 2, tzinfo=UTC),
        ),
    ]


async def seed_database(session_maker: async_sessionmaker[AsyncSession]) -> None:
    """Insert the standard fixture data and index trip components."""
    async with session_maker() as session:
        session.add_all(_trips())
        session.add_all(_clients())
        await session.flush()
        session.add_all(_answers())
        session.add_all(_surface())
        await session.commit()

    async with session_maker() as session:
        repos = RepositoryFactory(session)
        for trip in await repos.trips.list_all():
            await repos.components.replace_for_trip(
                trip.trip_id, extract_trip_components(trip)
            )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_maker(engine)


@pytest_asyncio.fixture
async def seeded(
    session_maker: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    """Session maker over a database holding the standard fixture data."""
    await seed_database(session_maker)
    return session_maker


@pytest_asyncio.fixture
async def session(
    seeded: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with seeded() as session:
        yield session


@pytest.fixture
def config() -> ResolverConfig:
    """Short deadline so timeout tests stay fast."""
    return ResolverConfig(query_timeout_ms=200)


@pytest.fixture
def resolver(
    seeded: async_sessionmaker[AsyncSession], config: ResolverConfig
) -> SearchResolver:
    return SearchResolver(seeded, config)


@pytest.fixture
def sara_trip() -> TripRecord:
    return TripRecord.model_validate(_trips()[0])


@pytest.fixture
def database_url(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[str, None, None]:
    """A seeded SQLite file, exported as the configured database.

    Used by tests whose code under test owns its own event loop and engine
    (HTTP app lifespan, CLI commands).
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'tripsearch.db'}"

    async def prepare() -> None:
        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await seed_database(make_session_maker(engine))
        await engine.dispose()

    asyncio.run(prepare())

    monkeypatch.setenv("TRIPSEARCH_DATABASE_URL", url)
    clear_settings_cache()
    yield url
    clear_settings_cache()
