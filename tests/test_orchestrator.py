from fakes import FakeGenerationClient, FakeSearchTool, text_response, tool_call_response

from sms_assistant.ai.client import GenerationResponse
from sms_assistant.ai.models import PlainAnswer, SearchResult, ToolCall, ToolRequested
from sms_assistant.ai.orchestrator import FALLBACK_ANSWER, ToolOrchestrator, classify
from sms_assistant.ai.tools.registry import ToolRegistry

SYSTEM = "be brief"


def make_orchestrator(responses, search=None):
    client = FakeGenerationClient(responses)
    registry = ToolRegistry()
    if search is not None:
        registry.register(search)
    return ToolOrchestrator(client, registry, SYSTEM), client


def test_classify_tagged_variants():
    assert classify(text_response("hi")) == PlainAnswer(text="hi")
    assert classify(tool_call_response("q")) == ToolRequested(
        calls=(ToolCall(name="web_search", arguments={"query": "q"}),)
    )
    assert classify(GenerationResponse()) == PlainAnswer(text="")


async def test_plain_answer_single_call_with_tool_schema():
    search = FakeSearchTool()
    orchestrator, client = make_orchestrator([text_response("Hi there")], search)

    assert await orchestrator.run("Hello", "Hello") == "Hi there"
    assert len(client.calls) == 1
    assert client.calls[0]["system"] == SYSTEM
    assert [t["name"] for t in client.calls[0]["tools"]] == ["web_search"]
    assert search.queries == []


async def test_single_tool_call_searches_once_and_synthesizes_once():
    search = FakeSearchTool([SearchResult("Forecast", "https://w", "Sunny, 72F")])
    orchestrator, client = make_orchestrator(
        [tool_call_response("weather boston"), text_response("Sunny and 72F.")], search
    )

    answer = await orchestrator.run("Previous conversation:\n...\n\nCurrent message: weather?", "weather?")

    assert answer == "Sunny and 72F."
    assert search.queries == ["weather boston"]
    assert len(client.calls) == 2
    synthesis = client.calls[1]
    assert synthesis["tools"] is None
    assert "1. Forecast\nSunny, 72F" in synthesis["prompt"]
    assert synthesis["prompt"].endswith("weather?")


async def test_multiple_calls_run_in_order_and_concatenate():
    search = FakeSearchTool([SearchResult("T", "l", "s")])
    orchestrator, client = make_orchestrator(
        [tool_call_response("first", "second"), text_response("done")], search
    )

    assert await orchestrator.run("q", "q") == "done"
    assert search.queries == ["first", "second"]
    assert "1. T\ns\n1. T\ns" in client.calls[1]["prompt"]


async def test_unknown_tool_is_skipped_but_synthesis_still_runs():
    search = FakeSearchTool([SearchResult("T", "l", "s")])
    orchestrator, client = make_orchestrator(
        [tool_call_response("x", name="send_email"), text_response("answer")], search
    )

    assert await orchestrator.run("q", "q") == "answer"
    assert search.queries == []
    assert len(client.calls) == 2
    assert "No results found." in client.calls[1]["prompt"]


async def test_tool_failure_degrades_to_empty_results():
    search = FakeSearchTool(error=RuntimeError("quota exceeded"))
    orchestrator, client = make_orchestrator(
        [tool_call_response("x"), text_response("best effort")], search
    )

    assert await orchestrator.run("q", "q") == "best effort"
    assert len(client.calls) == 2


async def test_no_tools_registered_sends_no_schema():
    orchestrator, client = make_orchestrator([text_response("hi")])
    await orchestrator.run("q", "q")
    assert client.calls[0]["tools"] is None


async def test_failed_propose_call_uses_generic_apology():
    orchestrator, client = make_orchestrator([])
    assert await orchestrator.run("q", "q") == FALLBACK_ANSWER
    assert len(client.calls) == 1


async def test_empty_text_reports_block_reason():
    blocked = GenerationResponse(raw={"promptFeedback": {"blockReason": "SAFETY"}})
    orchestrator, _ = make_orchestrator([blocked])
    assert await orchestrator.run("q", "q") == "No text generated (reason: SAFETY)."


async def test_empty_synthesis_uses_its_own_finish_reason():
    search = FakeSearchTool()
    orchestrator, _ = make_orchestrator(
        [tool_call_response("x"), text_response("", finish_reason="MAX_TOKENS")], search
    )
    assert await orchestrator.run("q", "q") == "No text generated (reason: MAX_TOKENS)."


async def test_failed_synthesis_uses_generic_apology():
    search = FakeSearchTool()
    orchestrator, client = make_orchestrator([tool_call_response("x")], search)
    assert await orchestrator.run("q", "q") == FALLBACK_ANSWER
    assert len(client.calls) == 2
