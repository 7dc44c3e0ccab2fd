"""Tool registry for managing available tools."""

from __future__ import annotations

from sms_assistant.ai.tools.base import Tool
from sms_assistant.log import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """Registry of all available tools."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool
        logger.info("tool_registered", tool_name=tool.name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def all_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def to_api_list(self) -> list[dict]:
        return [t.to_api_dict() for t in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)
