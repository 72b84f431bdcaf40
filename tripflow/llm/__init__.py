"""LLM access in strict JSON mode."""

from .client import JSONCompleter, LLMClient, parse_json_content, strip_code_fences
from .exceptions import LLMError, LLMResponseError, LLMUnavailableError

__all__ = [
    "JSONCompleter",
    "LLMClient",
    "parse_json_content",
    "strip_code_fences",
    "LLMError",
    "LLMResponseError",
    "LLMUnavailableError",
]
