# Parsing subpackage - model output parsing utilities
from .json import parse_model_json, strip_code_fences

__all__ = [
    "parse_model_json",
    "strip_code_fences",
]
