"""Two-phase generation: propose, optionally run tools, then synthesize."""

from __future__ import annotations

from sms_assistant.ai.client import GenerationClient, GenerationResponse
from sms_assistant.ai.models import PlainAnswer, ProposeOutcome, ToolCall, ToolRequested
from sms_assistant.ai.prompt import build_synthesis_prompt
from sms_assistant.ai.tools.registry import ToolRegistry
from sms_assistant.ai.tools.web_search import format_results
from sms_assistant.log import get_logger

logger = get_logger(__name__)

FALLBACK_ANSWER = "Sorry, I couldn't get a response."


def classify(response: GenerationResponse) -> ProposeOutcome:
    """Any function call in the response wins over text in the same response."""
    calls = response.tool_calls
    if calls:
        return ToolRequested(calls=tuple(calls))
    return PlainAnswer(text=response.text)


def with_fallback(text: str, response: GenerationResponse) -> str:
    if text:
        return text
    reason = response.block_reason
    if reason:
        return f"No text generated (reason: {reason})."
    return FALLBACK_ANSWER


class ToolOrchestrator:
    """Drives one user message through the generation provider.

    Phase 1 sends the prompt together with the registered tool declarations.
    If the model asks for tools they run once, sequentially, and a second call
    without tools turns their results into the final answer. Phase 1 is never
    repeated and nothing is retried.
    """

    def __init__(self, client: GenerationClient, tool_registry: ToolRegistry, system_prompt: str):
        self._client = client
        self._tools = tool_registry
        self._system_prompt = system_prompt

    async def run(self, prompt: str, user_message: str) -> str:
        """Return the answer text for *prompt*. Never raises for provider failures.

        *prompt* is the contextual prompt for phase 1; *user_message* is the raw
        message used in the synthesis prompt.
        """
        tool_defs = self._tools.to_api_list()
        response = await self._client.generate(
            system=self._system_prompt,
            prompt=prompt,
            tools=tool_defs or None,
        )

        match classify(response):
            case PlainAnswer(text=text):
                return with_fallback(text, response)
            case ToolRequested(calls=calls):
                logger.info("tool_calls_requested", tools=[c.name for c in calls])
                formatted = await self._execute_tools(calls)
                synthesis = await self._client.generate(
                    system=self._system_prompt,
                    prompt=build_synthesis_prompt(formatted, user_message),
                )
                return with_fallback(synthesis.text, synthesis)

    async def _execute_tools(self, calls: tuple[ToolCall, ...]) -> str:
        """Run calls in order and concatenate their formatted results."""
        sections: list[str] = []
        for call in calls:
            tool = self._tools.get(call.name)
            if tool is None:
                logger.warning("unknown_tool_skipped", tool=call.name)
                continue
            try:
                results = await tool.execute(**call.arguments)
            except Exception as e:
                logger.error("tool_execution_error", tool=call.name, error=str(e))
                results = []
            logger.info("tool_executed", tool=call.name, results=len(results))
            if results:
                sections.append(format_results(results))
        return "\n".join(sections)
