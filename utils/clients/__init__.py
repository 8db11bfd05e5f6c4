# Clients subpackage - External API clients
from .anthropic import (
    AnthropicTextGenerator,
    GenerationTimeout,
    GenerationUnavailable,
    InvalidGenerationResponse,
    TextGenerationError,
    TextGenerator,
    build_text_generator,
)

__all__ = [
    "AnthropicTextGenerator",
    "GenerationTimeout",
    "GenerationUnavailable",
    "InvalidGenerationResponse",
    "TextGenerationError",
    "TextGenerator",
    "build_text_generator",
]
