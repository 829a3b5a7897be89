"""FastAPI application with lifespan management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tripsearch import __version__
from tripsearch.api.exception_handlers import setup_exception_handlers
from tripsearch.config import ResolverConfig, Settings, get_settings
from tripsearch.search import SearchResolver
from tripsearch.storage import create_engine, init_database, make_session_maker


def configure_logging(settings: Settings | None = None) -> None:
    """Configure logging for the resolver service."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Set level for our package specifically
    logging.getLogger("tripsearch").setLevel(log_level)

    # Quiet noisy third-party libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


configure_logging()
logger = logging.getLogger(__name__)


def _log_settings(settings: Settings) -> None:
    """Log current settings for debugging."""
    logger.info("=" * 60)
    logger.info("Trip Search Resolver Configuration")
    logger.info("=" * 60)
    logger.info("  Log level: %s", settings.log_level)
    logger.info("  Database: %s", settings.database_url.split("@")[-1])  # Hide password
    logger.info("  Latency budget:")
    logger.info("    Guard deadline: %dms", settings.query_timeout_ms)
    logger.info("    Datastore ceiling: %dms", settings.datastore_ceiling_ms)
    logger.info("  Terms:")
    logger.info("    Max terms: %d", settings.max_search_terms)
    logger.info("    Min length: %d", settings.min_term_length)
    logger.info("    Max pattern length: %d", settings.max_pattern_length)
    logger.info("    Stop words: %d", len(settings.stop_word_set))
    logger.info("  Tiers:")
    logger.info(
        "    Moderate: >= %d tokens or >= %d chars",
        settings.moderate_min_tokens,
        settings.moderate_min_length,
    )
    logger.info(
        "    Complex: >= %d tokens or >= %d chars",
        settings.complex_min_tokens,
        settings.complex_min_length,
    )
    logger.info("  Results:")
    logger.info("    Candidates: %d", settings.candidate_limit)
    logger.info("    Alternatives: %d", settings.max_alternatives)
    logger.info("    Semantic min score: %.2f", settings.semantic_min_score)
    logger.info("  Record errors: %s", settings.record_errors)
    logger.info("=" * 60)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables and the resolver at startup, dispose the engine at shutdown."""
    settings: Settings = app.state.settings

    _log_settings(settings)

    engine = create_engine(settings)
    logger.info("Initializing database tables...")
    await init_database(engine)
    logger.info("Database tables ready")
    app.state.db_engine = engine

    app.state.resolver = SearchResolver(
        make_session_maker(engine),
        ResolverConfig.from_settings(settings),
    )
    logger.info("Resolver ready")
    yield

    logger.info("Shutting down")
    del app.state.resolver
    await app.state.db_engine.dispose()
    del app.state.db_engine


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application."""
    from tripsearch.api.routes import health, resolve

    app = FastAPI(
        title="Trip Search Resolver",
        description="Progressive-fallback lookup of trips and clients",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()

    setup_exception_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(resolve.router, tags=["search"])

    return app


# For uvicorn
app = create_app()
