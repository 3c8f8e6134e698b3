"""Shared fixtures for integration tests.

Each test gets a freshly built application, so process-wide state owned by
the app (rate limit counters, datastore manager) never leaks between tests.
The ASGI transport does not run the lifespan; the datastore therefore stays
unconnected unless a test connects it explicitly.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from loguru import logger

from src.api.main import create_app
from src.core.config import Settings, get_settings
from src.core.context import RequestContext
from src.core.error_context import _get_sensitive_fields
from src.core.logging import _state

type SettingsClientFactoryType = Callable[[Settings], Awaitable[AsyncClient]]


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Clear cached settings before and after each test."""
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    yield
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Clear RequestContext before and after each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None]:
    """Keep log output out of test runs.

    Logging stays marked as configured so app creation never installs the
    stdout sink; tests that inspect records add their own sink.
    """
    logger.remove()
    _state.configured = True
    yield
    _state.configured = True
    logger.remove()


@pytest.fixture
def app() -> FastAPI:
    """Create a fresh application from the test environment."""
    return create_app()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create test client for a fresh FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def client_with_settings() -> AsyncGenerator[SettingsClientFactoryType]:
    """Factory fixture for creating test clients with custom settings.

    Usage:
        async def test_something(client_with_settings):
            settings = Settings(rate_limit_config=RateLimitConfig(max_requests=2))
            client = await client_with_settings(settings)
    """
    clients: list[AsyncClient] = []

    async def _create_client(settings: Settings) -> AsyncClient:
        test_app = create_app(settings)
        test_app.dependency_overrides[get_settings] = lambda: settings

        transport = ASGITransport(app=test_app)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _create_client

    for client in clients:
        await client.aclose()
