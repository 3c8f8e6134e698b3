"""FastAPI application initialization and configuration module.

This module serves as the main entry point for the InsightTrack API.
It handles:
- Application lifecycle (datastore connection at startup, close at shutdown)
- Middleware registration in the correct order
- Exception handler registration
- Route group mounting
- Health check and info endpoints
- OpenTelemetry instrumentation

Starlette runs middleware in reverse order of registration, so the stages
below are added innermost first.
"""

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from src.api.dependencies import DatastoreManagerDep
from src.api.middleware.body_parser import BodyParsingMiddleware
from src.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from src.api.middleware.rate_limit import RateLimitMiddleware
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.api.middleware.security_headers import SecurityHeadersMiddleware
from src.api.routers import ROUTE_GROUPS, RouteGroup
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.logging import setup_logging
from src.core.observability import instrument_app, setup_tracing
from src.core.rate_limit import FixedWindowRateLimiter
from src.infrastructure.datastore import (
    DatastoreManager,
    shutdown_datastore,
    startup_datastore,
)


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.

    Raises:
        ConfigurationError: If the datastore connection string is missing.
        RuntimeError: If the datastore is required and cannot be reached.
    """
    settings: Settings = app_instance.state.settings
    datastore: DatastoreManager = app_instance.state.datastore

    await startup_datastore(datastore, settings.datastore_config)

    logger.info(
        "Server is running on port {} - {} v{}",
        settings.api_port,
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown initiated")
    await shutdown_datastore(datastore)
    logger.info("Application shutdown complete")


def _register_middleware(
    application: FastAPI,
    settings: Settings,
    limiter: FixedWindowRateLimiter,
) -> None:
    """Add the middleware chain, innermost stage first."""
    trust_proxy_headers = settings.environment == "production"

    # 7. Rate limiter (closest to the routes)
    if settings.rate_limit_config.enabled:
        application.add_middleware(
            RateLimitMiddleware,
            limiter=limiter,
            config=settings.rate_limit_config,
            trust_proxy_headers=trust_proxy_headers,
        )

    # 6. Body parser
    application.add_middleware(
        BodyParsingMiddleware, config=settings.body_parser_config
    )

    # 5. Access logging
    application.add_middleware(
        RequestLoggingMiddleware,
        log_config=settings.log_config,
        trust_proxy_headers=trust_proxy_headers,
    )

    # 4. Terminal error handler
    application.add_middleware(ErrorHandlerMiddleware)

    # 3. Correlation ID, client address, arrival time
    application.add_middleware(
        RequestContextMiddleware, trust_proxy_headers=trust_proxy_headers
    )

    # 2. Cross-origin policy
    cors = settings.cors_config
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors.allow_origins,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
        allow_credentials=cors.allow_credentials,
        max_age=cors.max_age,
    )

    # 1. Security headers (outermost, applied to every response)
    application.add_middleware(
        SecurityHeadersMiddleware, config=settings.security_headers_config
    )


def create_app(
    settings: Settings | None = None,
    *,
    route_groups: Sequence[RouteGroup] | None = None,
    datastore: DatastoreManager | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().
        route_groups: Route groups to mount, in dispatch order. Defaults to
            ``ROUTE_GROUPS``.
        datastore: Optional datastore manager. Built from settings if omitted.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)
    setup_tracing(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Process-wide state, owned here and borrowed by middleware and routes
    limiter = FixedWindowRateLimiter(
        max_requests=settings.rate_limit_config.max_requests,
        window_seconds=settings.rate_limit_config.window_seconds,
    )
    application.state.settings = settings
    application.state.rate_limiter = limiter
    if datastore is None:
        datastore = DatastoreManager(
            settings.mongo_uri,
            settings.datastore_config,
            app_name=settings.app_name,
        )
    application.state.datastore = datastore

    register_exception_handlers(application)
    _register_middleware(application, settings, limiter)

    for group in ROUTE_GROUPS if route_groups is None else route_groups:
        application.include_router(group.router, prefix=group.prefix)

    @application.get("/health")
    async def health(datastore_manager: DatastoreManagerDep) -> dict[str, object]:
        """Health check endpoint for monitoring and container orchestration.

        Returns:
            dict[str, object]: Status and datastore reachability.
        """
        is_healthy, error_msg = await datastore_manager.ping()

        if not is_healthy:
            logger.warning("Datastore health check failed: {}", error_msg)

        return {
            "status": "healthy" if is_healthy else "degraded",
            "datastore": is_healthy,
        }

    @application.get("/info")
    async def info(
        app_settings: Annotated[Settings, Depends(get_settings)],
    ) -> dict[str, Any]:
        """Get application information.

        Args:
            app_settings: Application settings injected via dependency.

        Returns:
            dict[str, Any]: Application name, version, environment and debug flag.
        """
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
        }

    instrument_app(application, settings)

    return application


app = create_app()
