"""
Anthropic API client for the cMindX agent.

Wraps the Claude Messages API behind a small text-generation capability:
``await generator.generate(prompt) -> str``. Failures are raised as
TextGenerationError subclasses so callers can fall back without knowing
anything about the SDK.
"""

import logging
from typing import Optional, Protocol

import anthropic
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import Settings

logger = logging.getLogger(__name__)


class TextGenerationError(Exception):
    """Base class for generation failures"""


class GenerationUnavailable(TextGenerationError):
    """The service refused or could not be reached"""


class GenerationTimeout(TextGenerationError):
    """The service did not answer in time"""


class InvalidGenerationResponse(TextGenerationError):
    """The service answered without usable text"""


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


class AnthropicTextGenerator:
    """
    Text generator backed by Claude.

    Constructed once per process and shared by reference. Retries up to
    ``max_retries`` times for:
    - APIConnectionError (network issues)
    - RateLimitError (rate limit exceeded)

    Does NOT retry for authentication, bad-request or other permanent errors.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 2000,
        timeout: float = 60.0,
        max_retries: int = 3,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.max_retries = max(1, max_retries)
        # SDK-level retries are disabled; tenacity owns the retry policy
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        )

    async def _create(self, prompt: str):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(
                (anthropic.APIConnectionError, anthropic.RateLimitError)
            ),
            reraise=True,
        ):
            with attempt:
                return await self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                )

    async def generate(self, prompt: str) -> str:
        """
        Send a single prompt and return the concatenated text blocks.

        Raises:
            GenerationTimeout: the request timed out
            GenerationUnavailable: any other API failure
            InvalidGenerationResponse: no text in the response
        """
        try:
            message = await self._create(prompt)
        except anthropic.APITimeoutError as e:
            raise GenerationTimeout(f"Claude request timed out: {str(e)}") from e
        except anthropic.APIError as e:
            raise GenerationUnavailable(f"Claude request failed: {str(e)}") from e

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise InvalidGenerationResponse("Claude returned no text content")
        return text

    async def close(self):
        await self.client.close()


def build_text_generator(settings: Settings) -> Optional[AnthropicTextGenerator]:
    """Text generator for the configured key, or None when no key is set."""
    if not settings.ANTHROPIC_API_KEY:
        logger.warning("⚠️  ANTHROPIC_API_KEY not set - agent will use the heuristic generator")
        return None
    return AnthropicTextGenerator(
        api_key=settings.ANTHROPIC_API_KEY,
        model=settings.ANTHROPIC_MODEL,
        max_tokens=settings.MAX_TOKENS,
        timeout=settings.AI_TIMEOUT,
        max_retries=settings.AI_MAX_RETRIES,
    )
