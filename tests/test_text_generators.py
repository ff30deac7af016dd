"""Tests for the provider backends, with the SDK clients mocked out."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from groupdigest.summarization.models import GenerationResult
from groupdigest.text_generators import AnthropicTextGenerator, GroqTextGenerator, get_text_generator
from groupdigest.text_generators import groq as groq_module


def _openai_response(content, total_tokens):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


class TestGroqTextGenerator:
    @pytest.mark.asyncio
    async def test_generate_returns_text_and_usage(self, monkeypatch):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_openai_response("  a summary ", 321))
        gen = GroqTextGenerator("llama-3.1-8b-instant")
        monkeypatch.setattr(gen, "_get_client", lambda: client)

        result = await gen.generate("Summarize this", system="be brief", max_tokens=100, temperature=0.3)

        assert result == GenerationResult("a summary", 321)
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama-3.1-8b-instant"
        assert kwargs["max_tokens"] == 100
        assert kwargs["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "Summarize this"},
        ]

    @pytest.mark.asyncio
    async def test_missing_usage_counts_as_zero(self, monkeypatch):
        client = MagicMock()
        response = _openai_response("ok", 0)
        response.usage = None
        client.chat.completions.create = AsyncMock(return_value=response)
        gen = GroqTextGenerator()
        monkeypatch.setattr(gen, "_get_client", lambda: client)

        result = await gen.generate("hi")
        assert result.tokens_used == 0
        assert "max_tokens" not in client.chat.completions.create.call_args.kwargs

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        monkeypatch.setattr(groq_module, "_CLIENT_CACHE", {})
        with pytest.raises(ValueError, match="GROQ_API_KEY"):
            GroqTextGenerator()._get_client()


class TestAnthropicTextGenerator:
    @pytest.mark.asyncio
    async def test_generate_sums_input_and_output_tokens(self, monkeypatch):
        client = MagicMock()
        client.messages.create = AsyncMock(
            return_value=SimpleNamespace(
                content=[SimpleNamespace(text="Part one. "), SimpleNamespace(text="Part two.")],
                usage=SimpleNamespace(input_tokens=200, output_tokens=50),
            )
        )
        gen = AnthropicTextGenerator("claude-haiku-4-5")
        monkeypatch.setattr(gen, "_get_client", lambda: client)

        result = await gen.generate("Summarize", system="rules", max_tokens=300)

        assert result == GenerationResult("Part one. Part two.", 250)
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "rules"
        assert kwargs["max_tokens"] == 300
        assert kwargs["messages"] == [{"role": "user", "content": "Summarize"}]


class TestFactory:
    def test_known_providers(self):
        assert isinstance(get_text_generator("groq", "m"), GroqTextGenerator)
        assert isinstance(get_text_generator("anthropic", "m"), AnthropicTextGenerator)

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_text_generator("carrier-pigeon", "m")
