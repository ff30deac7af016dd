"""Text-generation backend that calls Anthropic's Claude models."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict

from anthropic import APIConnectionError, APIError, AsyncAnthropic, RateLimitError

from ..summarization.models import GenerationResult
from .base import TextGeneratorAPI

_log = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# A single shared client is plenty; reuse it across all requests              #
# --------------------------------------------------------------------------- #
_CLIENT_CACHE: Dict[str, AsyncAnthropic] = {}


class AnthropicTextGenerator(TextGeneratorAPI):
    """Generate text using Anthropic's Claude models.

    The class relies on the ``anthropic`` package and an ``ANTHROPIC_API_KEY``
    environment variable being present. Reported usage is input plus output
    tokens, which is what Anthropic's per-minute limits count.
    """

    def __init__(self, model: str = "claude-haiku-4-5") -> None:
        self.model = model

    def _get_client(self) -> AsyncAnthropic:
        """Return (and cache) a shared ``AsyncAnthropic`` client instance."""
        if "default" not in _CLIENT_CACHE:
            _CLIENT_CACHE["default"] = AsyncAnthropic()  # picks up API key
        return _CLIENT_CACHE["default"]

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 1.0,
    ) -> GenerationResult:
        client = self._get_client()
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or int(os.getenv("ANTHROPIC_MAX_TOKENS", "1024")),
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        try:
            response = await client.messages.create(**kwargs)
        except RateLimitError as e:
            _log.warning("Anthropic rate limit hit for model %s: %s", self.model, e)
            raise
        except APIConnectionError as e:
            _log.error("Anthropic connection error for model %s: %s", self.model, e)
            raise
        except APIError as e:
            _log.error("Anthropic API error for model %s: %s", self.model, e)
            raise

        # SDK returns a list of content blocks; aggregate text blocks.
        parts = [getattr(block, "text", None) for block in getattr(response, "content", []) or []]
        text = "".join(p for p in parts if p).strip()

        usage = getattr(response, "usage", None)
        tokens = int(getattr(usage, "input_tokens", 0) or 0) + int(getattr(usage, "output_tokens", 0) or 0)
        return GenerationResult(text=text, tokens_used=tokens)
