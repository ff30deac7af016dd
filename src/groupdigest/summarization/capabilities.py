"""Bind a text-generation backend to the summarize and merge call shapes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import GenerationResult, SummaryOptions
from .prompts import (
    build_merge_system_prompt,
    build_merge_user_prompt,
    build_summary_system_prompt,
    build_summary_user_prompt,
    level_config,
    merge_max_tokens,
)

if TYPE_CHECKING:
    from ..text_generators import TextGeneratorAPI

# Low temperature keeps summaries of adjacent parts consistent
SUMMARY_TEMPERATURE = 0.3


class Summarizer:
    """Produces chunk summaries and merges through an LLM backend."""

    def __init__(self, llm: TextGeneratorAPI, options: SummaryOptions | None = None) -> None:
        self.llm = llm
        self.options = options or SummaryOptions()

    async def summarize(self, messages_text: str, is_partial: bool = False) -> GenerationResult:
        result = await self.llm.generate(
            build_summary_user_prompt(messages_text, is_partial),
            system=build_summary_system_prompt(self.options),
            max_tokens=level_config(self.options.level).max_tokens,
            temperature=SUMMARY_TEMPERATURE,
        )
        return GenerationResult(text=result.text.strip(), tokens_used=result.tokens_used)

    async def merge(self, summaries: list[str]) -> GenerationResult:
        result = await self.llm.generate(
            build_merge_user_prompt(summaries),
            system=build_merge_system_prompt(self.options),
            max_tokens=merge_max_tokens(self.options),
            temperature=SUMMARY_TEMPERATURE,
        )
        return GenerationResult(text=result.text.strip(), tokens_used=result.tokens_used)
