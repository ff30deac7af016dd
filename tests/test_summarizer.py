"""Tests for prompt building and the LLM-backed summarizer."""

import pytest

from groupdigest.summarization.capabilities import Summarizer
from groupdigest.summarization.models import GenerationResult, SummaryOptions
from groupdigest.summarization.prompts import (
    build_merge_user_prompt,
    build_summary_system_prompt,
    build_summary_user_prompt,
    level_config,
    merge_call_overhead,
    merge_max_tokens,
    summary_call_overhead,
    summary_options,
)
from groupdigest.text_generators import TextGeneratorAPI


class DummyLLM(TextGeneratorAPI):
    """Records every call and returns a fixed reply."""

    def __init__(self):
        self.calls = []

    async def generate(self, prompt, *, system=None, max_tokens=None, temperature=1.0):
        self.calls.append({"prompt": prompt, "system": system, "max_tokens": max_tokens, "temperature": temperature})
        return GenerationResult("  summary text \n", tokens_used=42)


class TestPrompts:
    def test_partial_wording(self):
        assert "PART" in build_summary_user_prompt("x", is_partial=True)
        assert "PART" not in build_summary_user_prompt("x", is_partial=False)

    def test_privacy_instruction_included(self):
        anonymous = build_summary_system_prompt(SummaryOptions(privacy="anonymous"))
        named = build_summary_system_prompt(SummaryOptions(privacy="with-names"))
        assert "do NOT mention" in anonymous
        assert "do NOT mention" not in named

    def test_merge_prompt_numbers_parts(self):
        prompt = build_merge_user_prompt(["first", "second"])
        assert "--- Part 1 ---\nfirst" in prompt
        assert "--- Part 2 ---\nsecond" in prompt

    def test_merge_allowance(self):
        assert merge_max_tokens(SummaryOptions(level=3)) == 750
        assert merge_max_tokens(SummaryOptions(level=1)) == 150

    def test_call_overhead_covers_output_allowance(self):
        detailed = SummaryOptions(level=4)
        assert summary_call_overhead(detailed) > 800
        assert merge_call_overhead(detailed) > 1200
        assert summary_call_overhead(SummaryOptions(level=1)) < summary_call_overhead(detailed)

    def test_unknown_level_falls_back(self):
        assert level_config(9) == level_config(3)

    def test_summary_options_listing(self):
        assert [o["level"] for o in summary_options()] == [1, 2, 3, 4]


class TestSummaryOptions:
    @pytest.mark.parametrize(
        "level,privacy,expected",
        [
            (1, "anonymous", SummaryOptions(1, "anonymous")),
            ("4", "with-names", SummaryOptions(4, "with-names")),
            (7, "smart", SummaryOptions(3, "smart")),
            ("abc", "nobody", SummaryOptions(3, "smart")),
            (None, None, SummaryOptions(3, "smart")),
        ],
    )
    def test_coerce(self, level, privacy, expected):
        assert SummaryOptions.coerce(level, privacy) == expected


class TestSummarizer:
    @pytest.mark.asyncio
    async def test_summarize_uses_level_limits(self):
        llm = DummyLLM()
        summarizer = Summarizer(llm, SummaryOptions(level=1, privacy="smart"))

        result = await summarizer.summarize("[10:00] Ana: hi", is_partial=True)

        assert result == GenerationResult("summary text", 42)
        call = llm.calls[0]
        assert call["max_tokens"] == 100
        assert call["temperature"] == 0.3
        assert "[10:00] Ana: hi" in call["prompt"]
        assert "PART" in call["prompt"]

    @pytest.mark.asyncio
    async def test_merge(self):
        llm = DummyLLM()
        result = await Summarizer(llm).merge(["a", "b"])

        assert result.text == "summary text"
        assert llm.calls[0]["max_tokens"] == 750
        assert "consolidates partial summaries" in llm.calls[0]["system"]
