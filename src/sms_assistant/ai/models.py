"""Value types shared by the generation client, tools and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A request from the model to run an external capability."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SearchResult:
    title: str
    link: str
    snippet: str


@dataclass(frozen=True, slots=True)
class PlainAnswer:
    """The model answered directly."""

    text: str


@dataclass(frozen=True, slots=True)
class ToolRequested:
    """The model asked for one or more tool calls before answering."""

    calls: tuple[ToolCall, ...]


ProposeOutcome = Union[PlainAnswer, ToolRequested]
