"""Fixtures for API middleware tests."""

from collections.abc import AsyncGenerator, Callable
from typing import Any, cast

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pytest_mock import MockerFixture, MockType
from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from src.api.dependencies import ParsedBody

type ClientFactory = Callable[[FastAPI], AsyncClient]


@pytest.fixture
def mock_starlette_request(mocker: MockerFixture) -> MockType:
    """Create mock Starlette Request with configurable headers.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        MockType: Mock request object.
    """
    request = mocker.Mock(spec=StarletteRequest)
    request.headers = {}
    request.client = mocker.Mock()
    request.client.host = "203.0.113.7"
    return cast("MockType", request)


@pytest.fixture
def mock_starlette_response(mocker: MockerFixture) -> MockType:
    """Create mock Starlette Response.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        MockType: Mock response object.
    """
    response = mocker.Mock(spec=StarletteResponse)
    response.headers = {}
    return cast("MockType", response)


@pytest.fixture
def mock_starlette_call_next(
    mocker: MockerFixture, mock_starlette_response: MockType
) -> MockType:
    """Create mock RequestResponseEndpoint callable.

    Args:
        mocker: Pytest mocker fixture.
        mock_starlette_response: Mock response fixture.

    Returns:
        MockType: Mock call_next function.
    """
    call_next = mocker.AsyncMock(spec=RequestResponseEndpoint)
    call_next.return_value = mock_starlette_response
    return cast("MockType", call_next)


@pytest.fixture
def echo_app() -> FastAPI:
    """Create a bare app whose route echoes the parsed body.

    Returns:
        FastAPI: App without any middleware; tests add what they need.
    """
    app = FastAPI()

    @app.api_route("/echo", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def echo(body: ParsedBody) -> dict[str, Any]:
        return {"body": body}

    @app.get("/boom")
    async def boom() -> dict[str, str]:
        raise RuntimeError("database password is hunter2")

    return app


@pytest.fixture
async def client_for() -> AsyncGenerator[ClientFactory]:
    """Factory fixture building httpx clients around an ASGI app."""
    clients: list[AsyncClient] = []

    def _create(app: FastAPI) -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _create

    for client in clients:
        await client.aclose()
