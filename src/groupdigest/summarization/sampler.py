"""Representative sampling of oversized message lists."""

import logging
from collections.abc import Sequence

from .blocks import DEFAULT_BLOCK_GAP_MINUTES, segment_indices
from .models import Message

_log = logging.getLogger(__name__)


def sample(
    messages: Sequence[Message],
    target_count: int,
    max_gap_minutes: int = DEFAULT_BLOCK_GAP_MINUTES,
) -> list[Message]:
    """
    Pick at most ``target_count`` messages that keep the shape of the day.

    The first and last conversation blocks are kept when they fit together,
    then the largest remaining blocks are added whole. The first block that
    does not fit contributes its opening messages to fill the remainder.
    The selection is returned in original order.

    Args:
        messages: Messages in chronological order
        target_count: Hard upper bound on the result size
        max_gap_minutes: Inactivity gap separating blocks

    Returns:
        The input unchanged if it already fits, otherwise the sample
    """
    if target_count < 0:
        raise ValueError("target_count must be >= 0")
    if len(messages) <= target_count:
        return list(messages)

    blocks = segment_indices(messages, max_gap_minutes)
    selected: list[int] = []
    remaining = target_count

    candidates = list(blocks)
    edges = [blocks[0]] if len(blocks) == 1 else [blocks[0], blocks[-1]]
    if sum(len(b) for b in edges) <= remaining:
        for block in edges:
            selected.extend(block)
            remaining -= len(block)
        candidates = blocks[1:-1]

    # sorted() is stable, so equal-sized blocks keep first-encountered order
    for block in sorted(candidates, key=len, reverse=True):
        if remaining == 0:
            break
        if len(block) <= remaining:
            selected.extend(block)
            remaining -= len(block)
        else:
            selected.extend(block[:remaining])
            remaining = 0

    selected.sort()
    _log.debug(
        "Sampled %d of %d messages from %d blocks",
        len(selected),
        len(messages),
        len(blocks),
    )
    return [messages[i] for i in selected]
