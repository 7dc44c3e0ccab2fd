"""FastAPI application exposing the SMS gateway webhook."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from sms_assistant.ai.handler import UNEXPECTED_ERROR_REPLY
from sms_assistant.app import SmsAssistantApp
from sms_assistant.log import get_logger
from sms_assistant.messenger.models import XML_MEDIA_TYPE, IncomingMessage

logger = get_logger(__name__)

REJECTED_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(assistant: SmsAssistantApp) -> FastAPI:
    """Build the web app around an assistant; its lifecycle follows the app's lifespan."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await assistant.start()
        try:
            yield
        finally:
            await assistant.stop()

    app = FastAPI(title="SMS Assistant", version="0.1.0", lifespan=lifespan)
    path = assistant.config.server.webhook_path

    @app.post(path)
    async def inbound_sms(request: Request) -> Response:
        try:
            form = await request.form()
        except Exception as e:
            logger.error("form_parse_failed", error=str(e))
            return Response(
                content=assistant.formatter.render(UNEXPECTED_ERROR_REPLY),
                media_type=XML_MEDIA_TYPE,
            )

        message = IncomingMessage(
            sender=str(form.get("From") or ""),
            text=str(form.get("Body") or ""),
        )
        reply = await assistant.handler.handle(message)
        return Response(content=reply.body, status_code=reply.status_code, media_type=reply.media_type)

    @app.api_route(path, methods=REJECTED_METHODS, include_in_schema=False)
    async def method_not_allowed() -> PlainTextResponse:
        return PlainTextResponse("Method not allowed", status_code=405)

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "model": assistant.generation_client.model_name,
            "history_enabled": assistant.conversation_store is not None,
            "tools": [t.name for t in assistant.tool_registry.all_tools()],
        }

    return app
