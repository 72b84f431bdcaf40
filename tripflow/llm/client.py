"""JSON-mode chat completion client for OpenAI-compatible endpoints."""

import json
import logging
import re
import time
from typing import Any, Protocol

from openai import AsyncOpenAI, OpenAIError

from tripflow.config import MissingLLMKeyError, Settings, get_llm_api_key, get_settings
from tripflow.metrics import record_llm_call

from .exceptions import LLMResponseError, LLMUnavailableError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(content: str) -> str:
    """Remove Markdown code fences the model may wrap around JSON."""
    return _FENCE_RE.sub("", content).strip()


def parse_json_content(content: str | None) -> Any:
    """Parse an LLM message body as JSON.

    Args:
        content: Raw message content, possibly fenced

    Returns:
        Decoded JSON value

    Raises:
        LLMResponseError: If content is empty or not valid JSON
    """
    if not content or not content.strip():
        raise LLMResponseError("LLM returned empty content")
    cleaned = strip_code_fences(content)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("Unparseable LLM content: %s", cleaned[:500])
        raise LLMResponseError(f"LLM returned invalid JSON: {e}") from e


class JSONCompleter(Protocol):
    """Anything that can turn a system/user prompt pair into decoded JSON."""

    async def complete_json(
        self,
        *,
        system: str,
        user: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        purpose: str = "chat",
    ) -> Any:
        ...


class LLMClient:
    """Thin async wrapper around chat completions in strict JSON mode."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize LLM client.

        Args:
            settings: Application settings (defaults to the singleton)
            client: Preconfigured AsyncOpenAI client, mainly for tests
        """
        self.settings = settings or get_settings()
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            try:
                api_key = get_llm_api_key(self.settings)
            except MissingLLMKeyError as e:
                raise LLMUnavailableError(str(e)) from e
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self.settings.llm_base_url,
                timeout=self.settings.llm_timeout_s,
            )
        return self._client

    async def complete_json(
        self,
        *,
        system: str,
        user: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        purpose: str = "chat",
    ) -> Any:
        """Run one chat completion and decode its content as JSON.

        Args:
            system: System prompt
            user: User message
            temperature: Sampling temperature
            max_tokens: Completion token cap
            purpose: Label used for metrics and logs

        Returns:
            Decoded JSON value (dict or list)

        Raises:
            LLMUnavailableError: Missing key or transport/API failure
            LLMResponseError: Empty or unparseable content
        """
        client = self._get_client()
        start = time.time()
        try:
            response = await client.chat.completions.create(
                model=self.settings.llm_model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            record_llm_call(purpose, int((time.time() - start) * 1000), ok=False)
            raise LLMUnavailableError(f"LLM request failed: {e}") from e

        usage = getattr(response, "usage", None)
        record_llm_call(
            purpose,
            int((time.time() - start) * 1000),
            ok=True,
            tokens_in=getattr(usage, "prompt_tokens", None),
            tokens_out=getattr(usage, "completion_tokens", None),
        )
        content = response.choices[0].message.content if response.choices else None
        return parse_json_content(content)
