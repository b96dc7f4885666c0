"""Application factory for a standalone listener service."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from routemaster.config import ListenerSettings
from routemaster.logmsg import FileSink, LoggerSink, LogSink
from routemaster.webhooks import Listener, register_listener_routes
from routemaster.webhooks.listener import ErrorHook, HandlerFunc

logger = logging.getLogger(__name__)


def default_sink(settings: ListenerSettings) -> LogSink:
    """FileSink when a log file is configured, otherwise the package logger."""
    if settings.log_file:
        return FileSink(settings.log_file)
    return LoggerSink("routemaster.diagnostics", level=logging.ERROR)


def create_app(
    settings: ListenerSettings,
    handler: HandlerFunc,
    *,
    on_error: ErrorHook | None = None,
    sink: LogSink | None = None,
) -> FastAPI:
    """Build a FastAPI app serving one listener at ``settings.path``."""
    listener = Listener(
        handler,
        settings.uuid,
        on_error=on_error,
        sink=sink if sink is not None else default_sink(settings),
    )
    app = FastAPI(title="Routemaster listener", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.listener = listener
    register_listener_routes(app, listener, settings.path)

    @app.get("/health")
    async def health():
        """Liveness check."""
        return {"status": "ok"}

    return app
