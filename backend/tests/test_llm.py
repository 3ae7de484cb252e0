import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from app.core.config import get_settings
from app.core.exceptions import GenerationError
from app.services.llm import CompletionClient, _normalize_base_url


def _openai_stub(content: str | None = "An answer", choices: bool = True) -> MagicMock:
    completion = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))] if choices else []
    )
    stub = MagicMock()
    stub.chat.completions.create = AsyncMock(return_value=completion)
    stub.close = AsyncMock()
    return stub


def test_normalize_base_url():
    assert _normalize_base_url(None) == "https://api.openai.com/v1"
    assert _normalize_base_url("https://api.groq.com/openai/v1/") == "https://api.groq.com/openai/v1"
    assert _normalize_base_url("http://localhost:11434") == "http://localhost:11434/v1"


@pytest.mark.asyncio
async def test_complete_uses_configured_defaults():
    stub = _openai_stub()
    client = CompletionClient(client=stub)
    settings = get_settings()

    answer = await client.complete([{"role": "user", "content": "hi"}])

    assert answer == "An answer"
    kwargs = stub.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == settings.llm_model
    assert kwargs["temperature"] == settings.llm_temperature
    assert kwargs["max_tokens"] == settings.llm_max_tokens


@pytest.mark.asyncio
async def test_complete_overrides():
    stub = _openai_stub()
    client = CompletionClient(client=stub)

    await client.complete([], model="other-model", temperature=0.0, max_tokens=10)

    kwargs = stub.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "other-model"
    assert kwargs["temperature"] == 0.0
    assert kwargs["max_tokens"] == 10


@pytest.mark.asyncio
async def test_empty_completion():
    assert await CompletionClient(client=_openai_stub(choices=False)).complete([]) == ""
    assert await CompletionClient(client=_openai_stub(content=None)).complete([]) == ""


@pytest.mark.asyncio
async def test_failure_raises_generation_error():
    stub = _openai_stub()
    stub.chat.completions.create.side_effect = RuntimeError("401 invalid api key")
    client = CompletionClient(client=stub)

    with pytest.raises(GenerationError, match="LLM generation failed: 401 invalid api key"):
        await client.complete([{"role": "user", "content": "hi"}])
    assert stub.chat.completions.create.await_count == 1


@pytest.mark.asyncio
async def test_close():
    stub = _openai_stub()
    await CompletionClient(client=stub).close()
    stub.close.assert_awaited_once()
