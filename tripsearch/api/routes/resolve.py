"""Resolve endpoint."""

import logging
import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from tripsearch.api.dependencies import ResolverDep
from tripsearch.api.schemas import (
    ErrorResponse,
    NotFoundResponse,
    ResolvedResponse,
    ResolveRequest,
)
from tripsearch.domain import NotFoundResult, ResolveOptions

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/resolve",
    response_model=ResolvedResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": NotFoundResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def resolve(
    request: ResolveRequest, resolver: ResolverDep
) -> ResolvedResponse | JSONResponse:
    """Resolve a free-text trip or client lookup."""
    start_time = time.perf_counter()

    result = await resolver.resolve(
        request.query,
        ResolveOptions(
            include_everything=request.include_everything,
            strategy_hint=request.strategy_hint,
        ),
    )

    elapsed_ms = int((time.perf_counter() - start_time) * 1000)
    logger.debug("Resolve %r took %dms", request.query, elapsed_ms)

    if isinstance(result, NotFoundResult):
        body = NotFoundResponse.from_result(result)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=body.model_dump(mode="json"),
        )
    return ResolvedResponse.from_result(result)
