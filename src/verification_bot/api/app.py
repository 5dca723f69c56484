"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from verification_bot.api.line_models import LineWebhookBody
from verification_bot.api.signature import is_valid_signature
from verification_bot.app_logging import configure_logging
from verification_bot.config import ConfigurationError, Settings
from verification_bot.containers import AppContainer, build_container

PING_BODY = "Bot is awake!"

logger = logging.getLogger(__name__)


def build_app(settings: Settings | None = None) -> FastAPI:
    """Load settings, build the container and create the app.

    Configuration errors are logged before they abort startup.
    """
    configure_logging()
    try:
        container = build_container(settings or Settings())
    except (ConfigurationError, ValidationError):
        logger.exception("Invalid configuration; refusing to start")
        raise
    return create_app(container)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/ping", response_class=PlainTextResponse)
    async def ping() -> str:
        """Keep-alive probe for external pollers."""
        return PING_BODY

    @app.post("/webhook")
    async def line_webhook(
        request: Request,
        x_line_signature: str | None = Header(default=None),
    ) -> Response:
        """Verify and dispatch a LINE webhook delivery."""
        state_container: AppContainer = request.app.state.container
        body = await request.body()
        logger.info("Received webhook delivery", extra={"body_length": len(body)})
        if not is_valid_signature(
            state_container.settings.line_channel_secret, body, x_line_signature
        ):
            logger.warning("Rejected webhook with invalid signature")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        try:
            payload = LineWebhookBody.model_validate_json(body)
        except ValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST) from exc

        events = payload.inbound_events()
        try:
            outcomes = await state_container.conversation_engine.handle_batch(events)
        except Exception:
            logger.exception("Webhook processing failed")
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return JSONResponse(
            [outcome.as_dict() if outcome else None for outcome in outcomes]
        )

    return app
