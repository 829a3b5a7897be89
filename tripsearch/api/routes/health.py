"""Health check endpoint."""

from fastapi import APIRouter

from tripsearch import __version__
from tripsearch.api.dependencies import ResolverDep
from tripsearch.api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(resolver: ResolverDep) -> HealthResponse:
    """Report service status and the configured strategy chain."""
    strategies = [strategy.name for strategy in resolver.strategies]
    return HealthResponse(
        status="ok" if strategies else "degraded",
        version=__version__,
        strategies=strategies,
    )
