"""Sequential, budget-aware execution of per-chunk generation calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from .budget import BudgetTracker
from .chunker import estimate_tokens, format_chunk
from .errors import RetriesExhaustedError, is_rate_limit_error, is_transient_error
from .models import Chunk, GenerationResult, PartialSummary

_log = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_COOLDOWN_SECONDS = 60
# Output tokens reserved when estimating what a call will cost
DEFAULT_OUTPUT_RESERVE = 500

RATE_LIMIT_STATUS = "Rate limit reached, retrying in {remaining}s..."
PROVIDER_ERROR_STATUS = "Provider error, retrying in {remaining}s..."

ProgressSink = Callable[[int, int, str], None]
GenerateFn = Callable[[str], Awaitable[GenerationResult]]
SleepFn = Callable[[float], Awaitable[None]]


class ChunkProcessor:
    """Runs one generation call per chunk, strictly in order.

    Before each call the shared budget tracker is consulted and, if the
    remaining allowance looks too small, the processor waits for the window
    to reset. Rate-limit and transient provider errors are retried on the
    same chunk after a cooldown, up to ``max_retries`` times. Anything else
    propagates unchanged.
    """

    def __init__(
        self,
        budget: BudgetTracker | None = None,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        output_reserve: int = DEFAULT_OUTPUT_RESERVE,
        include_names: bool = True,
        progress: ProgressSink | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.budget = budget
        self.max_retries = max_retries
        self.cooldown_seconds = cooldown_seconds
        self.output_reserve = output_reserve
        self.include_names = include_names
        self._progress = progress
        self._sleep = sleep

    def _notify(self, current: int, total: int, status: str) -> None:
        if self._progress is not None:
            self._progress(current, total, status)

    async def _countdown(self, seconds: int, current: int, total: int, template: str) -> None:
        """Sleep *seconds* in one-second ticks, reporting the time left."""
        for remaining in range(seconds, 0, -1):
            self._notify(current, total, template.format(remaining=remaining))
            await self._sleep(1)

    def estimate_cost(self, text: str) -> int:
        """Conservative pre-estimate of a call's token cost."""
        return estimate_tokens(text) + self.output_reserve

    async def _wait_for_budget(self, needed: int, current: int, total: int) -> None:
        if self.budget is None or self.budget.available() >= needed:
            return
        wait = self.budget.seconds_until_reset()
        if wait <= 0:
            # Fresh window; the estimate alone exceeds the limit
            return
        _log.info(
            "Token budget low (%d available, ~%d needed); waiting %ds for reset",
            self.budget.available(),
            needed,
            wait,
        )
        await self._countdown(wait, current, total, "Waiting for token budget reset... {remaining}s")

    async def call(
        self,
        fn: Callable[[], Awaitable[GenerationResult]],
        estimated_cost: int,
        current: int,
        total: int,
        label: str = "call",
    ) -> GenerationResult:
        """
        Run one provider call under the budget and retry policy.

        Args:
            fn: Zero-argument coroutine factory performing the call
            estimated_cost: Tokens the call is expected to consume
            current: Progress position reported while waiting
            total: Progress total reported while waiting
            label: Name used in log messages

        Returns:
            The call's result, after its usage was recorded

        Raises:
            RetriesExhaustedError: Retryable failures outlasted ``max_retries``
        """
        retries = 0
        while True:
            await self._wait_for_budget(estimated_cost, current, total)
            try:
                result = await fn()
            except Exception as e:
                rate_limited = is_rate_limit_error(e)
                if not rate_limited and not is_transient_error(e):
                    raise
                if retries >= self.max_retries:
                    _log.error("%s failed after %d retries: %s", label, retries, e)
                    raise RetriesExhaustedError(
                        f"{label} failed after {retries + 1} attempts: {e}",
                        attempts=retries + 1,
                        rate_limited=rate_limited,
                        retry_after=self.cooldown_seconds,
                    ) from e
                retries += 1
                _log.warning(
                    "%s %s (retry %d/%d in %ds): %s",
                    label,
                    "rate limited" if rate_limited else "hit a transient error",
                    retries,
                    self.max_retries,
                    self.cooldown_seconds,
                    e,
                )
                await self._countdown(
                    self.cooldown_seconds,
                    current,
                    total,
                    RATE_LIMIT_STATUS if rate_limited else PROVIDER_ERROR_STATUS,
                )
                continue

            if self.budget is not None:
                self.budget.record_usage(result.tokens_used)
            return result

    async def process(self, chunks: Sequence[Chunk], generate_fn: GenerateFn) -> list[PartialSummary]:
        """
        Summarize every chunk in order.

        Args:
            chunks: Planned chunks
            generate_fn: Coroutine taking the rendered chunk text

        Returns:
            One partial summary per chunk, in chunk order
        """
        total = len(chunks)
        summaries: list[PartialSummary] = []

        for position, chunk in enumerate(chunks):
            text = format_chunk(chunk, total, self.include_names)
            self._notify(position, total, f"Summarizing part {position + 1}/{total}...")
            _log.info("Summarizing chunk %d/%d (%d messages)", position + 1, total, len(chunk))

            result = await self.call(
                lambda text=text: generate_fn(text),
                self.estimate_cost(text),
                position,
                total,
                label=f"Chunk {position + 1}/{total}",
            )
            summaries.append(PartialSummary(text=result.text, tokens_used=result.tokens_used))

        self._notify(total, total, "All parts summarized")
        return summaries
