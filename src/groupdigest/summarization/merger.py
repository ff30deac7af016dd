"""Hierarchical merging of partial summaries."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence

from .errors import EmptyInputError
from .models import FinalSummary, GenerationResult, PartialSummary

_log = logging.getLogger(__name__)

# Largest number of summaries handed to a single merge call
DEFAULT_MERGE_FAN_IN = 3

MergeFn = Callable[[list[str]], Awaitable[GenerationResult]]


class MergeCoordinator:
    """Reduces N partial summaries to one through a tree of merge calls.

    Every merge call receives at most ``fan_in`` texts. When there are more,
    the list is split into batches that are merged independently and the
    results are merged again, for ``O(log_fan_in(N))`` rounds.
    """

    def __init__(self, fan_in: int = DEFAULT_MERGE_FAN_IN) -> None:
        if fan_in < 2:
            raise ValueError("fan_in must be >= 2")
        self.fan_in = fan_in

    async def merge(self, summaries: Sequence[PartialSummary], merge_fn: MergeFn) -> FinalSummary:
        """
        Merge *summaries* into a single summary.

        Args:
            summaries: Partial summaries in chronological order
            merge_fn: Coroutine merging up to ``fan_in`` texts

        Returns:
            Final text with the tokens and calls spent merging
        """
        if not summaries:
            raise EmptyInputError("No summaries to merge")

        texts = [s.text for s in summaries]
        tokens = 0
        calls = 0
        round_number = 0

        while len(texts) > 1:
            round_number += 1
            batches = [texts[i : i + self.fan_in] for i in range(0, len(texts), self.fan_in)]
            _log.info(
                "Merge round %d: %d summaries in %d batch(es)",
                round_number,
                len(texts),
                len(batches),
            )
            merged: list[str] = []
            for batch in batches:
                if len(batch) == 1:
                    merged.append(batch[0])
                    continue
                result = await merge_fn(batch)
                calls += 1
                tokens += result.tokens_used
                merged.append(result.text)
            texts = merged

        return FinalSummary(text=texts[0], tokens_used=tokens, merge_calls=calls)
