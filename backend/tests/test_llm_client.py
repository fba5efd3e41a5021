"""
Tests for the Ollama chat client
"""
import json

import httpx
import pytest

from ubiquitous.core.llm_client import LLMClient, LLMError


def _client(handler) -> LLMClient:
    return LLMClient(base_url="http://ollama:11434/v1", model="llama3", transport=httpx.MockTransport(handler))


def test_base_url_drops_openai_suffix():
    client = _client(lambda request: httpx.Response(200))
    assert client.base_url == "http://ollama:11434"


def test_requires_server_url():
    with pytest.raises(LLMError):
        LLMClient()


@pytest.mark.asyncio
async def test_generate_sends_chat_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"message": {"content": "An Order is a request"}, "done": True})

    client = _client(handler)
    response = await client.generate("What is an Order?", system_prompt="Be brief")

    assert response.response == "An Order is a request"
    assert response.model == "llama3"
    assert response.cached is False

    payload = seen[0]
    assert payload["model"] == "llama3"
    assert payload["stream"] is False
    assert payload["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "What is an Order?"},
    ]


@pytest.mark.asyncio
async def test_identical_prompts_are_cached():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"message": {"content": "cached answer"}, "done": True})

    client = _client(handler)
    await client.generate("Same question")
    second = await client.generate("Same question")

    assert second.cached is True
    assert second.response == "cached answer"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_http_error_raises_llm_error():
    client = _client(lambda request: httpx.Response(500, text="model not loaded"))
    with pytest.raises(LLMError, match="500"):
        await client.generate("Anything")


@pytest.mark.asyncio
async def test_health_check():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/tags"
        return httpx.Response(200, json={"models": []})

    assert await _client(handler).health_check() is True


@pytest.mark.asyncio
async def test_health_check_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    assert await _client(handler).health_check() is False


@pytest.mark.real_llm
@pytest.mark.asyncio
async def test_real_server_answers():
    import os

    client = LLMClient(base_url=os.environ.get("OLLAMA_TEST_URL", "http://localhost:11434"))
    response = await client.generate("Reply with the single word: pong", use_cache=False)
    assert response.response
