"""Main entry point for running the InsightTrack API server."""

import uvicorn
from loguru import logger

from src.api.main import app
from src.core.config import get_settings
from src.core.logging import setup_logging

# Route uvicorn's own loggers through Loguru
UVICORN_LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "default": {
            "class": "src.core.logging.InterceptHandler",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "uvicorn.access": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
    },
}


def main() -> None:
    """Start the HTTP server on the configured host and port."""
    settings = get_settings()
    setup_logging(settings)

    # Reload needs the app as an import string
    if settings.debug:
        logger.info(
            "Starting Uvicorn on http://{}:{} (development mode with auto-reload)",
            settings.api_host,
            settings.api_port,
        )
        uvicorn.run(
            "src.api.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=True,
            log_config=UVICORN_LOG_CONFIG,
        )
    else:
        logger.info(
            "Starting Uvicorn on http://{}:{} (production mode)",
            settings.api_host,
            settings.api_port,
        )
        uvicorn.run(
            app,
            host=settings.api_host,
            port=settings.api_port,
            reload=False,
            log_config=UVICORN_LOG_CONFIG,
        )


if __name__ == "__main__":
    main()
