"""Generation client abstraction with a Gemini REST backend."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from sms_assistant.ai.models import ToolCall
from sms_assistant.config import GeminiConfig
from sms_assistant.log import get_logger

logger = get_logger(__name__)


@dataclass
class GenerationResponse:
    """Parsed view over a generateContent payload.

    ``raw`` is None when the call failed; every accessor then reads as empty.
    """

    raw: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.raw is not None

    def _first_candidate(self) -> dict[str, Any]:
        candidates = (self.raw or {}).get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            return candidates[0]
        return {}

    @property
    def parts(self) -> list[dict[str, Any]]:
        content = self._first_candidate().get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return []
        return [p for p in parts if isinstance(p, dict)]

    @property
    def text(self) -> str:
        return "".join(p["text"] for p in self.parts if isinstance(p.get("text"), str)).strip()

    @property
    def tool_calls(self) -> list[ToolCall]:
        calls: list[ToolCall] = []
        for part in self.parts:
            fn = part.get("functionCall")
            if not isinstance(fn, dict) or not isinstance(fn.get("name"), str):
                continue
            args = fn.get("args", fn.get("arguments"))
            calls.append(ToolCall(name=fn["name"], arguments=args if isinstance(args, dict) else {}))
        return calls

    @property
    def block_reason(self) -> str:
        feedback = (self.raw or {}).get("promptFeedback")
        reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if isinstance(reason, str) and reason:
            return reason
        reason = self._first_candidate().get("finishReason")
        return reason if isinstance(reason, str) else ""


class GenerationClient(ABC):
    """Abstract base class for generation backends."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...

    @property
    @abstractmethod
    def has_credentials(self) -> bool:
        """Whether the backend is configured well enough to be called."""
        ...

    @abstractmethod
    async def generate(
        self,
        system: str,
        prompt: str,
        tools: list[dict[str, Any]] | None = None,
    ) -> GenerationResponse:
        """Send one user turn and return the response.

        Implementations must not raise for provider failures; they log and
        return an empty GenerationResponse instead.
        """
        ...

    async def close(self) -> None:
        return None


class GeminiClient(GenerationClient):
    """Gemini ``generateContent`` backend over httpx."""

    def __init__(self, config: GeminiConfig, http: httpx.AsyncClient | None = None):
        self._config = config
        self._http = http or httpx.AsyncClient()
        self._owns_http = http is None

    @property
    def model_name(self) -> str:
        return self._config.model

    @property
    def has_credentials(self) -> bool:
        return bool(self._config.api_key)

    def _build_request(
        self, system: str, prompt: str, tools: list[dict[str, Any]] | None
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system:
            body["systemInstruction"] = {"role": "system", "parts": [{"text": system}]}
        if tools:
            body["tools"] = [{"functionDeclarations": tools}]
        return body

    async def generate(
        self,
        system: str,
        prompt: str,
        tools: list[dict[str, Any]] | None = None,
    ) -> GenerationResponse:
        url = f"{self._config.base_url.rstrip('/')}/models/{self._config.model}:generateContent"
        body = self._build_request(system, prompt, tools)

        logger.debug("gemini_request", model=self._config.model, prompt_length=len(prompt), tools=bool(tools))
        try:
            response = await asyncio.wait_for(
                self._http.post(
                    url,
                    json=body,
                    headers={"x-goog-api-key": self._config.api_key},
                    timeout=self._config.timeout,
                ),
                timeout=self._config.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.error("gemini_timeout", timeout=self._config.timeout)
            return GenerationResponse()
        except httpx.HTTPError as e:
            logger.error("gemini_request_failed", error=str(e))
            return GenerationResponse()

        if response.is_error:
            logger.error(
                "gemini_bad_status",
                status=response.status_code,
                reason=response.reason_phrase,
                body=response.text[:500],
            )
            return GenerationResponse()

        try:
            data = response.json()
        except ValueError as e:
            logger.error("gemini_invalid_json", error=str(e))
            return GenerationResponse()

        if not isinstance(data, dict):
            logger.error("gemini_invalid_payload", kind=type(data).__name__)
            return GenerationResponse()

        result = GenerationResponse(raw=data)
        logger.debug(
            "gemini_response",
            model=self._config.model,
            text_length=len(result.text),
            tool_calls=len(result.tool_calls),
            finish_reason=result.block_reason,
        )
        return result

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()
