"""Run the revenue registry API with uvicorn."""

import os

import uvicorn
from loguru import logger

from revenue.core.config import get_settings
from revenue.core.logging import setup_logging

# Route uvicorn's own loggers through loguru
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "default": {"class": "revenue.core.logging.InterceptHandler"},
    },
    "loggers": {
        name: {"handlers": ["default"], "level": "INFO", "propagate": False}
        for name in _UVICORN_LOGGERS
    },
}


def main() -> None:
    """Start the server; ``PORT`` from the environment wins over settings."""
    settings = get_settings()
    setup_logging(settings)

    port = int(os.environ.get("PORT", settings.api_port))
    mode = "development mode with auto-reload" if settings.debug else "production mode"
    logger.info(
        "Starting Uvicorn on http://{}:{} ({})", settings.api_host, port, mode
    )

    # Reload needs the import string rather than the app object
    uvicorn.run(
        "revenue.api.main:app",
        host=settings.api_host,
        port=port,
        reload=settings.debug,
        log_config=LOG_CONFIG,
    )


if __name__ == "__main__":
    main()
