"""Split messages into request-sized chunks and render them for the model."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .models import Chunk, Message

CHARS_PER_TOKEN = 4
# Llama 3.1 8B has a 32k context; 8k per chunk leaves room for prompt and reply
DEFAULT_MAX_TOKENS_PER_CHUNK = 8000
MEDIA_PLACEHOLDER = "[media]"


@dataclass(frozen=True)
class ChunkCapacity:
    """Per-request capacity, either a message count or a token ceiling."""

    max_messages: int | None = None
    max_tokens: int | None = None

    def __post_init__(self) -> None:
        if (self.max_messages is None) == (self.max_tokens is None):
            raise ValueError("Specify exactly one of max_messages or max_tokens")

    @classmethod
    def messages(cls, count: int) -> ChunkCapacity:
        return cls(max_messages=count)

    @classmethod
    def tokens(cls, count: int) -> ChunkCapacity:
        return cls(max_tokens=count)


def estimate_tokens(text: str) -> int:
    """Cheap token estimate: about four characters per token."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def message_line(msg: Message, include_names: bool = True) -> str:
    """Render one message as ``[HH:MM] sender: text``."""
    body = MEDIA_PLACEHOLDER if msg.is_media else msg.text
    if include_names:
        return f"[{msg.time}] {msg.sender}: {body}"
    return f"[{msg.time}] {body}"


def estimate_message_tokens(msg: Message) -> int:
    return estimate_tokens(message_line(msg))


def plan_by_count(messages: Sequence[Message], max_messages: int) -> list[Chunk]:
    """Slice into consecutive runs of at most ``max_messages``."""
    if max_messages < 1:
        raise ValueError("max_messages must be >= 1")
    return [
        Chunk(index=n, messages=tuple(messages[start : start + max_messages]))
        for n, start in enumerate(range(0, len(messages), max_messages))
    ]


def plan_by_tokens(messages: Sequence[Message], max_tokens: int = DEFAULT_MAX_TOKENS_PER_CHUNK) -> list[Chunk]:
    """
    Accumulate messages while the running token estimate stays within
    ``max_tokens``.

    A message that would overflow starts a new chunk, unless the current
    chunk is empty; an oversized message is admitted alone rather than dropped.
    """
    if max_tokens < 1:
        raise ValueError("max_tokens must be >= 1")

    groups: list[list[Message]] = []
    current: list[Message] = []
    current_tokens = 0

    for msg in messages:
        msg_tokens = estimate_message_tokens(msg)
        if current and current_tokens + msg_tokens > max_tokens:
            groups.append(current)
            current = []
            current_tokens = 0
        current.append(msg)
        current_tokens += msg_tokens

    if current:
        groups.append(current)

    return [Chunk(index=n, messages=tuple(group)) for n, group in enumerate(groups)]


def plan(messages: Sequence[Message], capacity: ChunkCapacity) -> list[Chunk]:
    """Plan chunks by whichever limit *capacity* carries."""
    if capacity.max_messages is not None:
        return plan_by_count(messages, capacity.max_messages)
    return plan_by_tokens(messages, capacity.max_tokens)  # type: ignore[arg-type]


def format_chunk(chunk: Chunk, total_chunks: int, include_names: bool = True) -> str:
    """
    Render a chunk as the text sent to the model.

    System lines are dropped and media is replaced by a placeholder. When the
    day was split, a ``[Part i of n]`` header tells the model it is reading a
    fragment.
    """
    header = f"[Part {chunk.index + 1} of {total_chunks}]\n\n" if total_chunks > 1 else ""
    lines = [message_line(msg, include_names) for msg in chunk.messages if not msg.is_system]
    return header + "\n".join(lines)


def chunk_stats(chunks: Sequence[Chunk]) -> dict[str, int]:
    """Return total chunks, messages and estimated tokens."""
    total_messages = 0
    estimated = 0
    for chunk in chunks:
        total_messages += len(chunk)
        estimated += sum(estimate_message_tokens(msg) for msg in chunk.messages)
    return {
        "total_chunks": len(chunks),
        "total_messages": total_messages,
        "estimated_tokens": estimated,
    }
