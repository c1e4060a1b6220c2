"""Main entry point - runs the HTTP API."""

import logging

import uvicorn

from jetswap.api.app import create_app
from jetswap.config import get_settings

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs full request URLs, which may carry API keys
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    """Start the API server."""
    settings = get_settings()
    configure_logging(settings.debug)

    logger.info("Starting Jet Swap...")
    logger.info(f"Environment: {settings.environment}")

    app = create_app()
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
