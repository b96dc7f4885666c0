"""FastAPI wiring for the event listener."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from routemaster.webhooks.errors import BodyReadFailure
from routemaster.webhooks.listener import Listener, ListenerResponse

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/events"


def to_http_response(result: ListenerResponse) -> Response:
    if not result.body:
        return Response(status_code=result.status_code)
    return PlainTextResponse(result.body, status_code=result.status_code)


def register_listener_routes(app: FastAPI, listener: Listener, path: str = DEFAULT_PATH) -> None:
    """Register ``POST {path}`` on the app, served by ``listener``.

    The listener runs in Starlette's threadpool: handlers are synchronous
    and may block.
    """

    @app.post(path, include_in_schema=False)
    async def receive_events(request: Request) -> Response:
        """Receive a batch of events from the bus."""
        try:
            body = await request.body()
        except ClientDisconnect:
            ctx = listener.request_context()
            result = await run_in_threadpool(listener.report_error, ctx, BodyReadFailure())
            return to_http_response(result)

        result = await run_in_threadpool(listener.serve, request.headers.get("authorization"), body)
        return to_http_response(result)

    logger.info("Event listener route registered: POST %s", path)
