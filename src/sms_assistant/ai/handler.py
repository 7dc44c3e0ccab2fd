"""Message handler: admits an inbound SMS, asks the model, and builds the reply."""

from __future__ import annotations

import structlog

from sms_assistant.ai.client import GenerationClient
from sms_assistant.ai.orchestrator import ToolOrchestrator
from sms_assistant.ai.prompt import DEFAULT_CONTEXT_LENGTH, build_context, build_prompt
from sms_assistant.core.allowlist import Allowlist
from sms_assistant.core.rate_limiter import RateLimiter
from sms_assistant.log import get_logger
from sms_assistant.messenger.models import TEXT_MEDIA_TYPE, IncomingMessage, OutgoingReply
from sms_assistant.messenger.twiml import ResponseFormatter
from sms_assistant.storage.conversation_store import DEFAULT_TTL_DAYS, ConversationStore

logger = get_logger(__name__)

RATE_LIMITED_REPLY = "You're sending too many messages. Please try again later."
EMPTY_MESSAGE_REPLY = "Please send a message to receive a reply."
MISSING_AUTH_REPLY = "Server is missing authentication."
UNEXPECTED_ERROR_REPLY = "Unexpected error. Please try again later."


class MessageHandler:
    """Handles the full flow: allowlist -> rate limit -> history -> model -> history -> reply.

    Only a disallowed sender gets a non-200 reply. Every other outcome,
    including internal failures, becomes a text answer so the gateway always
    receives an acknowledgement.
    """

    def __init__(
        self,
        allowlist: Allowlist,
        rate_limiter: RateLimiter,
        generation_client: GenerationClient,
        orchestrator: ToolOrchestrator,
        formatter: ResponseFormatter,
        conversation_store: ConversationStore | None = None,
        context_max_length: int = DEFAULT_CONTEXT_LENGTH,
        history_ttl_days: int = DEFAULT_TTL_DAYS,
    ):
        self._allowlist = allowlist
        self._rate_limiter = rate_limiter
        self._client = generation_client
        self._orchestrator = orchestrator
        self._formatter = formatter
        self._store = conversation_store
        self._context_max_length = context_max_length
        self._history_ttl_days = history_ttl_days

    async def handle(self, message: IncomingMessage) -> OutgoingReply:
        """Process an inbound message end-to-end."""
        with structlog.contextvars.bound_contextvars(sender=message.sender):
            try:
                return await self._process(message)
            except Exception:
                logger.exception("unhandled_error")
                return self._reply(UNEXPECTED_ERROR_REPLY)

    async def _process(self, message: IncomingMessage) -> OutgoingReply:
        sender = message.sender

        if not self._allowlist.check(sender):
            logger.warning("sender_blocked")
            return OutgoingReply(status_code=403, body="Forbidden", media_type=TEXT_MEDIA_TYPE)

        if not self._rate_limiter.consume(sender):
            return self._reply(RATE_LIMITED_REPLY)

        text = message.text.strip()
        if not text:
            return self._reply(EMPTY_MESSAGE_REPLY)

        if not self._client.has_credentials:
            logger.error("generation_credentials_missing")
            return self._reply(MISSING_AUTH_REPLY)

        # History is keyed by the raw sender, not the normalized number
        context = ""
        if self._store is not None:
            history = await self._store.get(sender)
            context = build_context(history, self._context_max_length)
            logger.info("history_loaded", entries=len(history))

        prompt = build_prompt(context, text)
        answer = await self._orchestrator.run(prompt, text)

        if self._store is not None:
            stored = await self._store.append(sender, text, answer, ttl_days=self._history_ttl_days)
            if stored:
                logger.info("history_stored")

        return self._reply(answer)

    def _reply(self, text: str) -> OutgoingReply:
        answer = self._formatter.clamp(text)
        return OutgoingReply(status_code=200, body=self._formatter.render(text), answer=answer)
