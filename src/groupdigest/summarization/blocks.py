"""Split a chronological message list into conversation blocks."""

from collections.abc import Sequence

from .models import Message

DEFAULT_BLOCK_GAP_MINUTES = 5


def segment(messages: Sequence[Message], max_gap_minutes: int = DEFAULT_BLOCK_GAP_MINUTES) -> list[list[Message]]:
    """
    Partition messages into contiguous blocks separated by inactivity gaps.

    A new block starts when the time-of-day gap to the previous message is
    larger than ``max_gap_minutes`` or negative. Exports only carry time of
    day, so a decrease may be a day rollover or an out-of-order line; both
    are treated as a boundary.

    Args:
        messages: Messages in file order
        max_gap_minutes: Largest gap allowed inside one block

    Returns:
        List of non-empty blocks covering every message exactly once
    """
    blocks: list[list[Message]] = []
    current: list[Message] = []
    previous: Message | None = None

    for msg in messages:
        if previous is not None:
            gap = msg.minutes - previous.minutes
            if gap > max_gap_minutes or gap < 0:
                blocks.append(current)
                current = []
        current.append(msg)
        previous = msg

    if current:
        blocks.append(current)

    return blocks


def segment_indices(messages: Sequence[Message], max_gap_minutes: int = DEFAULT_BLOCK_GAP_MINUTES) -> list[range]:
    """Same partition as ``segment`` but as index ranges into *messages*."""
    ranges: list[range] = []
    start = 0
    for size in (len(block) for block in segment(messages, max_gap_minutes)):
        ranges.append(range(start, start + size))
        start += size
    return ranges
