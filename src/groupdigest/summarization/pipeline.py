"""End-to-end summarization of one message scope: sample, chunk, summarize, merge."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from typing import Literal, Protocol

from .blocks import DEFAULT_BLOCK_GAP_MINUTES
from .budget import BudgetTracker
from .chunker import ChunkCapacity, chunk_stats, estimate_tokens, plan
from .errors import EmptyInputError
from .merger import DEFAULT_MERGE_FAN_IN, MergeCoordinator
from .models import GenerationResult, Message, PartialSummary, SummaryOptions, SummaryResult
from .prompts import build_merge_user_prompt, merge_call_overhead, summary_call_overhead
from .processor import (
    DEFAULT_COOLDOWN_SECONDS,
    DEFAULT_MAX_RETRIES,
    ChunkProcessor,
    ProgressSink,
    SleepFn,
)
from .sampler import sample

_log = logging.getLogger(__name__)

Mode = Literal["quick", "full", "auto"]

DEFAULT_CHUNK_SIZE = 120
DEFAULT_SAMPLE_TARGET = 300
DEFAULT_FULL_MODE_THRESHOLD = 120


class SummaryCapability(Protocol):
    """What the pipeline needs from the generation side."""

    options: SummaryOptions

    async def summarize(self, messages_text: str, is_partial: bool = False) -> GenerationResult:
        ...

    async def merge(self, summaries: list[str]) -> GenerationResult:
        ...


def sampling_note(sampled: int, total: int) -> str:
    return f"\n\n---\n_Summary of {sampled} of {total} messages_"


class SummaryPipeline:
    """Turns a day's messages into one summary within the provider's limits.

    The pipeline owns its budget tracker and runs every provider call in
    sequence. ``quick`` mode makes a single call over a sample the size of
    one chunk; ``full`` mode samples down to ``sample_target``, summarizes
    every chunk and merges the results.
    """

    def __init__(
        self,
        budget: BudgetTracker | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_chunk_tokens: int | None = None,
        sample_target: int = DEFAULT_SAMPLE_TARGET,
        block_gap_minutes: int = DEFAULT_BLOCK_GAP_MINUTES,
        merge_fan_in: int = DEFAULT_MERGE_FAN_IN,
        max_retries: int = DEFAULT_MAX_RETRIES,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        full_mode_threshold: int = DEFAULT_FULL_MODE_THRESHOLD,
        progress: ProgressSink | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            budget: Shared token budget; None disables budget waits
            chunk_size: Messages per chunk, also the quick-mode sample size
            max_chunk_tokens: Plan chunks by estimated tokens instead of count
            sample_target: Most messages full mode will send
            block_gap_minutes: Inactivity gap separating conversation blocks
            merge_fan_in: Most summaries per merge call
            max_retries: Retries per call on rate-limit or transient errors
            cooldown_seconds: Wait before each retry
            full_mode_threshold: Above this many messages ``auto`` uses full mode
            progress: Optional ``(current, total, status)`` sink
            sleep: Awaitable sleep, replaceable in tests
            clock: Monotonic clock used for processing time
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.budget = budget
        self.chunk_size = chunk_size
        self.capacity = (
            ChunkCapacity.tokens(max_chunk_tokens)
            if max_chunk_tokens is not None
            else ChunkCapacity.messages(chunk_size)
        )
        self.sample_target = sample_target
        self.block_gap_minutes = block_gap_minutes
        self.merger = MergeCoordinator(merge_fan_in)
        self.max_retries = max_retries
        self.cooldown_seconds = cooldown_seconds
        self.full_mode_threshold = full_mode_threshold
        self._progress = progress
        self._sleep = sleep
        self._clock = clock

    def _notify(self, current: int, total: int, status: str) -> None:
        if self._progress is not None:
            self._progress(current, total, status)

    def _processor(self, options: SummaryOptions) -> ChunkProcessor:
        return ChunkProcessor(
            self.budget,
            max_retries=self.max_retries,
            cooldown_seconds=self.cooldown_seconds,
            output_reserve=summary_call_overhead(options),
            include_names=options.include_names,
            progress=self._progress,
            sleep=self._sleep,
        )

    def resolve_mode(self, mode: Mode, message_count: int) -> Literal["quick", "full"]:
        if mode == "auto":
            return "full" if message_count > self.full_mode_threshold else "quick"
        if mode not in ("quick", "full"):
            raise ValueError(f"Unknown mode: {mode}")
        return mode

    async def summarize(
        self,
        messages: Sequence[Message],
        summarizer: SummaryCapability,
        mode: Mode = "auto",
    ) -> SummaryResult:
        """
        Summarize *messages* with *summarizer*.

        Raises:
            EmptyInputError: No non-system messages to summarize
            RetriesExhaustedError: A call stayed rate limited past the retry ceiling
        """
        started = self._clock()
        conversation = [m for m in messages if not m.is_system]
        if not conversation:
            raise EmptyInputError("No messages to summarize")

        resolved = self.resolve_mode(mode, len(conversation))
        target = self.chunk_size if resolved == "quick" else self.sample_target
        sampled = sample(conversation, target, self.block_gap_minutes)
        if not sampled:
            raise EmptyInputError("No messages left after sampling")

        # Quick mode always sends exactly one chunk
        if resolved == "quick":
            chunks = plan(sampled, ChunkCapacity.messages(len(sampled)))
        else:
            chunks = plan(sampled, self.capacity)
        stats = chunk_stats(chunks)
        _log.info(
            "Summarizing %d messages (%d sampled) in %s mode: %d chunk(s), ~%d tokens",
            len(conversation),
            len(sampled),
            resolved,
            stats["total_chunks"],
            stats["estimated_tokens"],
        )

        processor = self._processor(summarizer.options)
        is_partial = len(chunks) > 1
        partials = await processor.process(
            chunks,
            lambda text: summarizer.summarize(text, is_partial=is_partial),
        )

        final_text, merge_tokens, merge_calls = await self._merge(partials, summarizer, processor)

        if len(sampled) < len(conversation):
            final_text += sampling_note(len(sampled), len(conversation))

        tokens_used = sum(p.tokens_used for p in partials) + merge_tokens
        elapsed = self._clock() - started
        _log.info(
            "Summary done: %d chunk(s), %d merge call(s), %d tokens, %.1fs",
            len(chunks),
            merge_calls,
            tokens_used,
            elapsed,
        )
        return SummaryResult(
            summary=final_text,
            total_messages=len(conversation),
            sampled_messages=len(sampled),
            participants=len({m.sender for m in conversation}),
            tokens_used=tokens_used,
            chunks=len(chunks),
            merge_calls=merge_calls,
            processing_time=elapsed,
            partials=partials,
        )

    async def _merge(
        self,
        partials: list[PartialSummary],
        summarizer: SummaryCapability,
        processor: ChunkProcessor,
    ) -> tuple[str, int, int]:
        total = len(partials)
        if total > 1:
            self._notify(total, total, "Combining summaries...")

        async def guarded_merge(batch: list[str]) -> GenerationResult:
            return await processor.call(
                lambda: summarizer.merge(batch),
                estimate_tokens(build_merge_user_prompt(batch)) + merge_call_overhead(summarizer.options),
                total,
                total,
                label=f"Merge of {len(batch)} summaries",
            )

        final = await self.merger.merge(partials, guarded_merge)
        return final.text, final.tokens_used, final.merge_calls
