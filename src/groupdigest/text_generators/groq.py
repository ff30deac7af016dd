# text_generators/groq.py
from __future__ import annotations

import logging
import os
from typing import TypedDict

from openai import APIConnectionError, APIError, AsyncOpenAI, RateLimitError

from ..summarization.models import GenerationResult
from .base import TextGeneratorAPI

_CLIENT_CACHE: dict[str, AsyncOpenAI] = {}
_LOG = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class _Message(TypedDict):
    role: str
    content: str


class GroqTextGenerator(TextGeneratorAPI):
    """Text-generation backend for models hosted on Groq.

    Uses Groq's OpenAI-compatible API. Requires GROQ_API_KEY in the
    environment. Token usage comes from ``usage.total_tokens``.
    """

    def __init__(self, model: str = "llama-3.1-8b-instant") -> None:
        self.model = model

    def _get_client(self) -> AsyncOpenAI:
        if "groq" not in _CLIENT_CACHE:
            api_key = os.getenv("GROQ_API_KEY")
            if not api_key:
                raise ValueError("GROQ_API_KEY environment variable is required for Groq")
            _CLIENT_CACHE["groq"] = AsyncOpenAI(
                api_key=api_key,
                base_url=os.getenv("GROQ_BASE_URL", GROQ_BASE_URL),
            )
        return _CLIENT_CACHE["groq"]

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 1.0,
    ) -> GenerationResult:
        messages: list[_Message] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        client = self._get_client()
        _LOG.debug("Groq: generating with model=%s, prompt_chars=%d", self.model, len(prompt))

        kwargs: dict[str, object] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        try:
            resp = await client.chat.completions.create(**kwargs)  # type: ignore[arg-type]
        except RateLimitError as e:
            _LOG.warning("Groq rate limit hit for model %s: %s", self.model, e)
            raise
        except APIConnectionError as e:
            _LOG.error("Groq connection error for model %s: %s", self.model, e)
            raise
        except APIError as e:
            _LOG.error("Groq API error for model %s (status %s): %s", self.model, getattr(e, "status_code", "unknown"), e)
            raise

        text = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        usage = getattr(resp, "usage", None)
        tokens = int(getattr(usage, "total_tokens", 0) or 0)
        return GenerationResult(text=text, tokens_used=tokens)
