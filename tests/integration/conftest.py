"""Fixtures for the HTTP and CLI surfaces."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from tripsearch.api.app import create_app
from tripsearch.config import Settings


@pytest.fixture
def settings(database_url: str) -> Settings:
    return Settings(_env_file=None, query_timeout_ms=500)


@pytest.fixture
def test_client(settings: Settings) -> Generator[TestClient, None, None]:
    """Client over the full app, lifespan included."""
    with TestClient(create_app(settings)) as client:
        yield client
