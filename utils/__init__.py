# Utils package - Utility modules organized by domain
# Import from subpackages for convenience

from .clients.anthropic import AnthropicTextGenerator, build_text_generator
from .parsing.json import parse_model_json, strip_code_fences

__all__ = [
    "AnthropicTextGenerator",
    "build_text_generator",
    "parse_model_json",
    "strip_code_fences",
]
