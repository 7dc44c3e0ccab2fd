import json

import httpx

from sms_assistant.ai.client import GeminiClient, GenerationResponse
from sms_assistant.ai.models import ToolCall
from sms_assistant.config import GeminiConfig


def make_client(handler, **overrides) -> GeminiClient:
    config = GeminiConfig(api_key="test-key", model="gemini-test", **overrides)
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiClient(config, http=http)


async def test_request_shape_with_tools():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "ok"}]}}]})

    client = make_client(handler)
    tools = [{"name": "web_search", "description": "d", "parameters": {"type": "object"}}]
    response = await client.generate("be brief", "hello", tools=tools)

    assert response.text == "ok"
    assert seen["url"].endswith("/models/gemini-test:generateContent")
    assert seen["key"] == "test-key"
    assert seen["body"]["contents"] == [{"role": "user", "parts": [{"text": "hello"}]}]
    assert seen["body"]["systemInstruction"]["parts"] == [{"text": "be brief"}]
    assert seen["body"]["tools"] == [{"functionDeclarations": tools}]


async def test_request_without_tools_omits_tools_key():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={})

    await make_client(handler).generate("sys", "hi")
    assert "tools" not in bodies[0]


async def test_non_success_status_gives_empty_response():
    client = make_client(lambda request: httpx.Response(500, text="boom"))
    response = await client.generate("sys", "hi")
    assert not response.ok
    assert response.text == ""
    assert response.tool_calls == []


async def test_network_error_gives_empty_response():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    response = await make_client(handler).generate("sys", "hi")
    assert not response.ok


async def test_timeout_gives_empty_response():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    response = await make_client(handler).generate("sys", "hi")
    assert not response.ok


async def test_unparsable_payload_gives_empty_response():
    client = make_client(lambda request: httpx.Response(200, text="not json"))
    assert not (await client.generate("sys", "hi")).ok

    client = make_client(lambda request: httpx.Response(200, json=["a", "list"]))
    assert not (await client.generate("sys", "hi")).ok


def test_has_credentials():
    assert GeminiClient(GeminiConfig(api_key="k")).has_credentials
    assert not GeminiClient(GeminiConfig(api_key="")).has_credentials


def test_text_joins_text_parts():
    response = GenerationResponse(
        raw={"candidates": [{"content": {"parts": [{"text": " Hi "}, {"text": "there "}]}}]}
    )
    assert response.text == "Hi there"


def test_tool_calls_accept_args_or_arguments():
    response = GenerationResponse(
        raw={
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"functionCall": {"name": "web_search", "args": {"query": "a"}}},
                            {"text": "thinking"},
                            {"functionCall": {"name": "other", "arguments": {"x": 1}}},
                            {"functionCall": {"args": {"missing": "name"}}},
                        ]
                    }
                }
            ]
        }
    )
    assert response.tool_calls == [
        ToolCall(name="web_search", arguments={"query": "a"}),
        ToolCall(name="other", arguments={"x": 1}),
    ]


def test_block_reason_prefers_prompt_feedback():
    response = GenerationResponse(
        raw={"promptFeedback": {"blockReason": "SAFETY"}, "candidates": [{"finishReason": "STOP"}]}
    )
    assert response.block_reason == "SAFETY"
    assert GenerationResponse(raw={"candidates": [{"finishReason": "MAX_TOKENS"}]}).block_reason == "MAX_TOKENS"
    assert GenerationResponse().block_reason == ""


def test_non_string_block_reason_falls_back_to_finish_reason():
    response = GenerationResponse(
        raw={"promptFeedback": {"blockReason": 3}, "candidates": [{"finishReason": "SAFETY"}]}
    )
    assert response.block_reason == "SAFETY"


def test_odd_shapes_read_as_empty():
    for raw in ({"candidates": "x"}, {"candidates": [None]}, {"candidates": [{"content": {"parts": "x"}}]}):
        response = GenerationResponse(raw=raw)
        assert response.text == ""
        assert response.tool_calls == []
