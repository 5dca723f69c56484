"""ASGI entrypoint for ``uvicorn verification_bot.api.asgi:app``."""

from verification_bot.api.app import build_app

app = build_app()
