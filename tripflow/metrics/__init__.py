"""Structured metric records emitted through logging."""

from .core import record_llm_call, record_provider_call, record_step

__all__ = ["record_llm_call", "record_provider_call", "record_step"]
