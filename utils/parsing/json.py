import json
import logging
import re
from typing import Any, Dict

import demjson3
import json5

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```(?:json)?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"```$")


def strip_code_fences(response_text: str) -> str:
    """
    Remove a Markdown code fence wrapped around a model response.

    Handles an opening ```json or ``` (language tag case-insensitive) and a
    trailing ```. Text without fences is returned stripped.
    """
    clean = response_text.strip()
    clean = _OPENING_FENCE.sub("", clean, count=1)
    clean = _CLOSING_FENCE.sub("", clean, count=1)
    return clean.strip()


def parse_model_json(response_text: str) -> Dict[str, Any]:
    """
    Multi-layered JSON parsing for model output.

    Attempts to parse JSON through multiple strategies:
    1. Standard json.loads()
    2. Clean common issues (trailing commas, comments)
    3. json5 parser (tolerates comments and trailing commas)
    4. demjson3 parser (auto-repairs many errors)

    Args:
        response_text: Raw text response from the model, optionally fenced

    Returns:
        Parsed JSON object

    Raises:
        ValueError: If every layer fails or the JSON is not an object
    """
    text = strip_code_fences(response_text)
    errors = []

    # Layer 1: Standard JSON parser
    try:
        return _require_object(json.loads(text))
    except json.JSONDecodeError as e:
        errors.append(f"Standard JSON: {str(e)}")

    # Layer 2: Clean common model JSON mistakes
    try:
        cleaned = re.sub(r",(\s*[}\]])", r"\1", text)  # trailing commas
        cleaned = re.sub(r"^\s*//.*?$", "", cleaned, flags=re.MULTILINE)  # line comments
        cleaned = re.sub(r"/\*.*?\*/", "", cleaned, flags=re.DOTALL)  # block comments
        return _require_object(json.loads(cleaned))
    except json.JSONDecodeError as e:
        errors.append(f"Cleaned JSON: {str(e)}")

    # Layer 3: json5
    try:
        return _require_object(json5.loads(text))
    except ValueError as e:
        errors.append(f"JSON5: {str(e)}")

    # Layer 4: demjson3
    try:
        return _require_object(demjson3.decode(text))
    except (demjson3.JSONError, ValueError) as e:
        errors.append(f"DemJSON: {str(e)}")

    logger.warning(f"❌ Model response is not parsable JSON: {'; '.join(errors)}")
    logger.debug(f"Response preview: {text[:200]}...")
    raise ValueError(f"Failed to parse JSON after all attempts. Errors: {'; '.join(errors[:2])}")


def _require_object(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"Expected a JSON object, got {type(value).__name__}")
    return value
