"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from canvas_search.api.app import app
from canvas_search.api.dependencies import get_services
from canvas_search.search.models import SearchResponse


@pytest.fixture
def fake_services() -> MagicMock:
    """Service container with every collaborator mocked."""
    services = MagicMock()
    services.vector_index.count = AsyncMock(return_value=0)
    services.vector_index.ensure_index = AsyncMock(return_value=True)
    services.orchestrator.search = AsyncMock(
        return_value=SearchResponse(query="", results=[], reranked=False)
    )
    services.pipeline.on_project_created = AsyncMock()
    services.pipeline.on_project_saved = AsyncMock()
    services.pipeline.refresh_description = AsyncMock()
    services.pipeline.on_project_deleted = AsyncMock()
    return services


@pytest.fixture
async def client(fake_services: MagicMock) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient whose requests see ``fake_services``.
    """
    app.dependency_overrides[get_services] = lambda: fake_services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
