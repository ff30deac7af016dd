"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from groupdigest.summarization.models import GenerationResult, Message, SummaryOptions


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep that records durations and advances a clock instead of waiting."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.calls: list[float] = []
        self.clock = clock

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


class DummySummarizer:
    """Summarizer stand-in that returns predictable text and token counts.

    ``failures`` is a list of exceptions raised by successive summarize calls
    before they start succeeding; ``merge_failures`` does the same for merges.
    """

    def __init__(
        self,
        options: SummaryOptions | None = None,
        tokens_per_call: int = 100,
        failures: list[Exception] | None = None,
        merge_failures: list[Exception] | None = None,
    ) -> None:
        self.options = options or SummaryOptions()
        self.tokens_per_call = tokens_per_call
        self.failures = list(failures or [])
        self.merge_failures = list(merge_failures or [])
        self.summarize_calls: list[tuple[str, bool]] = []
        self.merge_calls: list[list[str]] = []

    async def summarize(self, messages_text: str, is_partial: bool = False) -> GenerationResult:
        self.summarize_calls.append((messages_text, is_partial))
        if self.failures:
            raise self.failures.pop(0)
        return GenerationResult(f"summary {len(self.summarize_calls)}", self.tokens_per_call)

    async def merge(self, summaries: list[str]) -> GenerationResult:
        self.merge_calls.append(list(summaries))
        if self.merge_failures:
            raise self.merge_failures.pop(0)
        return GenerationResult("(" + " + ".join(summaries) + ")", self.tokens_per_call // 2)


def msg(minutes: int, sender: str = "Ana", text: str | None = None, **kwargs) -> Message:
    return Message(minutes=minutes, sender=sender, text=text or f"message at {minutes}", **kwargs)


def bursts(sizes: list[int], gap: int = 30) -> list[Message]:
    """Build consecutive conversation blocks of the given sizes.

    Messages inside a block are one minute apart; blocks are ``gap`` minutes apart.
    """
    messages: list[Message] = []
    start = 0
    for block_number, size in enumerate(sizes):
        for i in range(size):
            messages.append(msg(start + i, sender=f"user{block_number % 3}", text=f"b{block_number} m{i}"))
        start += size - 1 + gap
    return messages


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeper(clock):
    return RecordingSleep(clock)


@pytest.fixture
def dummy_summarizer():
    return DummySummarizer()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db(temp_dir):
    """Create a temporary database file path."""
    yield str(temp_dir / "budget.db")


@pytest.fixture
def make_message():
    return msg


@pytest.fixture
def make_bursts():
    return bursts


@pytest.fixture
def summarizer_cls():
    return DummySummarizer
