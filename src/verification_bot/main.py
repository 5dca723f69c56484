"""Run the verification bot with uvicorn."""

import logging

import uvicorn
from pydantic import ValidationError

from verification_bot.api.app import create_app
from verification_bot.app_logging import configure_logging
from verification_bot.config import ConfigurationError, Settings
from verification_bot.containers import build_container

logger = logging.getLogger(__name__)


def main() -> None:
    """Build the app from the environment and serve it."""
    configure_logging()
    try:
        settings = Settings()
        container = build_container(settings)
    except (ConfigurationError, ValidationError):
        logger.exception("Invalid configuration; refusing to start")
        raise SystemExit(1) from None
    app = create_app(container)
    logger.info("Verification bot listening", extra={"port": settings.port})
    uvicorn.run(app, host="0.0.0.0", port=settings.port)  # noqa: S104


if __name__ == "__main__":
    main()
