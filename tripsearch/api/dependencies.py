"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from tripsearch.search import SearchResolver


def get_resolver(request: Request) -> SearchResolver:
    return request.app.state.resolver


ResolverDep = Annotated[SearchResolver, Depends(get_resolver)]
