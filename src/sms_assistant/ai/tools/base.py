"""Abstract tool interface for model tool calling."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from sms_assistant.ai.models import SearchResult


class Tool(ABC):
    """Base class for all model-callable tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name sent to the generation API."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description for the model."""
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema dict describing accepted arguments."""
        ...

    @abstractmethod
    async def execute(self, **kwargs: Any) -> list[SearchResult]:
        """Run the tool. Failures yield an empty list rather than raising."""
        ...

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to a Gemini function declaration."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }
