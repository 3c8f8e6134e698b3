"""Shared fixtures for unit tests."""

import os
from collections.abc import Generator
from typing import cast

import pytest
from pytest_mock import MockerFixture, MockType

from src.core.config import DatastoreConfig, LogConfig, Settings, get_settings
from src.core.context import RequestContext
from src.core.error_context import _get_sensitive_fields


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Provide a real Settings object built from test environment values.

    Returns:
        Settings: Settings object with test defaults.
    """
    monkeypatch.setenv("APP_NAME", "TestApp")
    monkeypatch.setenv("APP_VERSION", "1.0.0")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("API_HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "3000")

    return Settings()


@pytest.fixture
def mock_app(mocker: MockerFixture) -> MockType:
    """Provide a mock ASGI app for middleware construction.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        MockType: Mock app.
    """
    app = mocker.Mock()
    app.__name__ = "mock_app"
    app.__module__ = "tests.unit.conftest"
    return cast("MockType", app)


@pytest.fixture
def mock_uvicorn(mocker: MockerFixture) -> MockType:
    """Mock uvicorn.run to prevent server startup.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        MockType: The mock for assertion purposes.
    """
    return mocker.patch("uvicorn.run")


@pytest.fixture
def datastore_config() -> DatastoreConfig:
    """Provide datastore settings with short timeouts.

    Returns:
        DatastoreConfig: Config used by datastore unit tests.
    """
    return DatastoreConfig(
        server_selection_timeout_ms=100,
        connect_timeout_ms=100,
        operation_timeout_ms=200,
    )


@pytest.fixture
def mock_mongo_client(mocker: MockerFixture) -> MockType:
    """Provide a mock AsyncMongoClient whose ping succeeds.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        MockType: Mock client with ``admin.command`` and ``close`` as AsyncMocks.
    """
    client = mocker.MagicMock()
    client.admin.command = mocker.AsyncMock(return_value={"ok": 1.0})
    client.close = mocker.AsyncMock()
    database = mocker.Mock()
    database.name = "insighttrack_test"
    client.get_default_database.return_value = database
    return cast("MockType", client)


@pytest.fixture
def mock_client_factory(mocker: MockerFixture, mock_mongo_client: MockType) -> MockType:
    """Provide a client factory returning ``mock_mongo_client``.

    Args:
        mocker: Pytest mocker fixture.
        mock_mongo_client: Mock client fixture.

    Returns:
        MockType: Factory mock for ``DatastoreManager(client_factory=...)``.
    """
    return mocker.Mock(return_value=mock_mongo_client)


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Clear the LRU caches before and after each test to ensure isolation."""
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    yield
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[pytest.MonkeyPatch]:
    """Backup and restore environment variables to prevent test interference.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        pytest.MonkeyPatch: The monkeypatch instance for env manipulation.
    """
    original_env = os.environ.copy()

    env_prefixes = [
        "APP_",
        "API_",
        "PORT",
        "DEBUG",
        "LOG_CONFIG__",
        "SECURITY_HEADERS_CONFIG__",
        "CORS_CONFIG__",
        "BODY_PARSER_CONFIG__",
        "RATE_LIMIT_CONFIG__",
        "DATASTORE_CONFIG__",
    ]
    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in env_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield monkeypatch

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_get_settings(mocker: MockerFixture) -> MockType:
    """Mock get_settings in error_context with custom sensitive fields.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        MockType: Mock get_settings function.
    """
    mock_settings = mocker.Mock(spec=Settings)
    mock_log_config = mocker.Mock(spec=LogConfig)
    mock_log_config.sensitive_fields = ["custom_secret", "my_password", "customer_ssn"]
    mock_settings.log_config = mock_log_config

    mock_get_settings_fn = mocker.patch("src.core.error_context.get_settings")
    mock_get_settings_fn.return_value = mock_settings

    _get_sensitive_fields.cache_clear()

    return mock_get_settings_fn


@pytest.fixture(autouse=True)
def clean_context() -> Generator[None]:
    """Clear request context before and after each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()
