"""LLM client exceptions."""


class LLMError(Exception):
    """Base exception for LLM client errors."""
    pass


class LLMUnavailableError(LLMError):
    """Raised when the LLM endpoint cannot be reached or is not configured."""
    pass


class LLMResponseError(LLMError):
    """Raised when the LLM returns empty or unparseable content."""
    pass
