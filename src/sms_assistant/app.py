"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

import httpx

from sms_assistant.ai.client import GeminiClient, GenerationClient
from sms_assistant.ai.handler import MessageHandler
from sms_assistant.ai.orchestrator import ToolOrchestrator
from sms_assistant.ai.tools.base import Tool
from sms_assistant.ai.tools.registry import ToolRegistry
from sms_assistant.ai.tools.web_search import WebSearchTool
from sms_assistant.config import AppConfig
from sms_assistant.core.allowlist import Allowlist
from sms_assistant.core.rate_limiter import RateLimiter
from sms_assistant.log import get_logger
from sms_assistant.messenger.twiml import ResponseFormatter
from sms_assistant.storage.conversation_store import ConversationStore
from sms_assistant.storage.database import Database
from sms_assistant.storage.kv_store import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore

logger = get_logger(__name__)


class SmsAssistantApp:
    """Top-level application orchestrator.

    Collaborators can be injected for tests; anything not given is built from
    the configuration.
    """

    def __init__(
        self,
        config: AppConfig,
        generation_client: GenerationClient | None = None,
        kv_store: KeyValueStore | None = None,
        tools: list[Tool] | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self.config = config
        self.http = httpx.AsyncClient()
        self.db: Database | None = None

        # 1. Storage
        self.conversation_store: ConversationStore | None = None
        if config.history.enabled:
            if kv_store is None:
                kv_store = self._create_kv_store()
            self.conversation_store = ConversationStore(kv_store, max_entries=config.history.max_entries)
        self.kv_store = kv_store

        # 2. Admission control
        self.allowlist = Allowlist.from_config(config.allowlist.allowed_from_numbers)
        self.rate_limiter = rate_limiter or RateLimiter.from_config(config.rate_limit)

        # 3. Generation and tools
        self.generation_client = generation_client or GeminiClient(config.gemini, http=self.http)
        self.tool_registry = ToolRegistry()
        if tools is None:
            tools = [WebSearchTool(config.search, http=self.http)] if config.search.enabled else []
        for tool in tools:
            self.tool_registry.register(tool)
        self.orchestrator = ToolOrchestrator(
            client=self.generation_client,
            tool_registry=self.tool_registry,
            system_prompt=config.gemini.system_prompt,
        )

        # 4. Pipeline
        self.formatter = ResponseFormatter(config.response.max_length)
        self.handler = MessageHandler(
            allowlist=self.allowlist,
            rate_limiter=self.rate_limiter,
            generation_client=self.generation_client,
            orchestrator=self.orchestrator,
            formatter=self.formatter,
            conversation_store=self.conversation_store,
            context_max_length=config.history.context_max_length,
            history_ttl_days=config.history.ttl_days,
        )

    def _create_kv_store(self) -> KeyValueStore:
        match self.config.history.backend:
            case "sqlite":
                self.db = Database(self.config.history.db_path)
                return SqliteKeyValueStore(self.db)
            case "memory":
                return MemoryKeyValueStore()
            case _:
                raise ValueError(f"Unknown history backend: {self.config.history.backend}")

    async def start(self) -> None:
        """Open storage. Generation and search clients connect lazily."""
        if self.db is not None:
            await self.db.initialize()
            if isinstance(self.kv_store, SqliteKeyValueStore):
                await self.kv_store.purge_expired()

        logger.info(
            "sms_assistant_started",
            model=self.generation_client.model_name,
            history=self.conversation_store is not None,
            tools=[t.name for t in self.tool_registry.all_tools()],
            allowlist_size=len(self.allowlist),
        )

    async def stop(self) -> None:
        """Gracefully shut down all components."""
        await self.generation_client.close()
        await self.http.aclose()
        if self.db is not None:
            await self.db.close()
        logger.info("sms_assistant_stopped")
