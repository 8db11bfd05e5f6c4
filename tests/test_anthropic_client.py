"""
Claude text generator: response handling and error mapping.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import anthropic
import httpx
import pytest

from core.config import Settings
from utils.clients.anthropic import (
    AnthropicTextGenerator,
    GenerationTimeout,
    GenerationUnavailable,
    InvalidGenerationResponse,
    build_text_generator,
)

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def generator_with(create: AsyncMock) -> AnthropicTextGenerator:
    client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return AnthropicTextGenerator(api_key="test", max_retries=1, client=client)


def message(*blocks):
    return SimpleNamespace(content=list(blocks))


@pytest.mark.asyncio
async def test_text_blocks_are_joined():
    create = AsyncMock(return_value=message(
        SimpleNamespace(type="text", text='{"a": '),
        SimpleNamespace(type="tool_use", id="x"),
        SimpleNamespace(type="text", text="1}"),
    ))
    generator = generator_with(create)

    assert await generator.generate("prompt") == '{"a": 1}'
    kwargs = create.await_args.kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
    assert kwargs["max_tokens"] == 2000


@pytest.mark.asyncio
async def test_empty_answer_is_invalid():
    generator = generator_with(AsyncMock(return_value=message()))
    with pytest.raises(InvalidGenerationResponse):
        await generator.generate("prompt")


@pytest.mark.asyncio
async def test_timeout_is_mapped():
    generator = generator_with(AsyncMock(side_effect=anthropic.APITimeoutError(request=REQUEST)))
    with pytest.raises(GenerationTimeout):
        await generator.generate("prompt")


@pytest.mark.asyncio
async def test_connection_error_is_mapped():
    generator = generator_with(AsyncMock(side_effect=anthropic.APIConnectionError(request=REQUEST)))
    with pytest.raises(GenerationUnavailable):
        await generator.generate("prompt")


def test_no_generator_without_key():
    assert build_text_generator(Settings(ANTHROPIC_API_KEY="")) is None


def test_generator_uses_configured_model():
    generator = build_text_generator(Settings(ANTHROPIC_API_KEY="sk-test", ANTHROPIC_MODEL="claude-x", MAX_TOKENS=123))
    assert generator.model == "claude-x"
    assert generator.max_tokens == 123
