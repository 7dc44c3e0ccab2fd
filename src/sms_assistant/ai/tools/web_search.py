"""Web search tool backed by the Google Programmable Search JSON API."""

from __future__ import annotations

from typing import Any

import httpx

from sms_assistant.ai.models import SearchResult
from sms_assistant.ai.tools.base import Tool
from sms_assistant.config import SearchConfig
from sms_assistant.log import get_logger

logger = get_logger(__name__)

WEB_SEARCH_TOOL_NAME = "web_search"


class WebSearchTool(Tool):
    """Looks up current information on the web."""

    def __init__(self, config: SearchConfig, http: httpx.AsyncClient | None = None):
        self._config = config
        self._http = http or httpx.AsyncClient()
        self._owns_http = http is None

    @property
    def name(self) -> str:
        return WEB_SEARCH_TOOL_NAME

    @property
    def description(self) -> str:
        return (
            "Search the web for current or factual information such as news, "
            "weather, opening hours, prices or recent events. Returns short result snippets."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query",
                },
            },
            "required": ["query"],
        }

    @property
    def has_credentials(self) -> bool:
        return bool(self._config.api_key and self._config.engine_id)

    async def execute(self, **kwargs: Any) -> list[SearchResult]:
        query = str(kwargs.get("query") or "").strip()
        if not query:
            logger.warning("web_search_empty_query")
            return []
        if not self.has_credentials:
            logger.warning("web_search_missing_credentials")
            return []

        params = {
            "key": self._config.api_key,
            "cx": self._config.engine_id,
            "q": query,
            "num": self._config.result_count,
        }
        try:
            response = await self._http.get(self._config.base_url, params=params, timeout=self._config.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error("web_search_failed", query=query, error=str(e))
            return []
        except ValueError as e:
            logger.error("web_search_invalid_json", query=query, error=str(e))
            return []

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.info("web_search_no_results", query=query)
            return []

        results = [
            SearchResult(
                title=str(item.get("title", "")),
                link=str(item.get("link", "")),
                snippet=str(item.get("snippet", "")),
            )
            for item in items[: self._config.result_count]
            if isinstance(item, dict)
        ]
        logger.info("web_search_done", query=query, results=len(results))
        return results

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()


def format_results(results: list[SearchResult]) -> str:
    """Numbered list of title and snippet pairs."""
    return "\n".join(
        f"{i}. {r.title}\n{r.snippet}" for i, r in enumerate(results, start=1)
    )
