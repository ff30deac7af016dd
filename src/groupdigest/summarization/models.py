"""Data types shared by the summarization pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# Sender used for WhatsApp system lines ("X joined", "Messages are encrypted", ...)
SYSTEM_SENDER = "__system__"

PrivacyMode = Literal["anonymous", "with-names", "smart"]
PRIVACY_MODES: tuple[str, ...] = ("anonymous", "with-names", "smart")
SUMMARY_LEVELS: tuple[int, ...] = (1, 2, 3, 4)


@dataclass(frozen=True)
class Message:
    """A single parsed chat message.

    ``minutes`` is the time of day in minutes (0-1439). Exports only record
    time of day, so ordering across midnight is not guaranteed.
    """

    minutes: int
    sender: str
    text: str
    is_media: bool = False
    date: str | None = None

    @property
    def is_system(self) -> bool:
        return self.sender == SYSTEM_SENDER

    @property
    def time(self) -> str:
        """Time of day as ``HH:MM``."""
        return f"{self.minutes // 60:02d}:{self.minutes % 60:02d}"


@dataclass(frozen=True)
class Chunk:
    """An API-request-sized contiguous slice of the message sequence."""

    index: int
    messages: tuple[Message, ...]

    def __len__(self) -> int:
        return len(self.messages)


@dataclass(frozen=True)
class GenerationResult:
    """What a generation or merge call returns."""

    text: str
    tokens_used: int = 0


@dataclass(frozen=True)
class PartialSummary:
    """Summary of one chunk (or one merge batch) and what it cost."""

    text: str
    tokens_used: int = 0


@dataclass(frozen=True)
class FinalSummary:
    """Result of merging partial summaries."""

    text: str
    tokens_used: int = 0
    merge_calls: int = 0


@dataclass
class BudgetState:
    """Token usage in the current rate window.

    ``window_reset_at`` is an epoch timestamp; 0 means no window is active.
    """

    tokens_consumed: int = 0
    window_reset_at: float = 0.0

    @classmethod
    def empty(cls) -> "BudgetState":
        return cls()

    @property
    def is_active(self) -> bool:
        return self.window_reset_at > 0


@dataclass(frozen=True)
class SummaryOptions:
    """Verbosity level and privacy mode passed to every provider call."""

    level: int = 3
    privacy: str = "smart"

    @property
    def include_names(self) -> bool:
        return self.privacy != "anonymous"

    @classmethod
    def coerce(cls, level: int | str | None = None, privacy: str | None = None) -> "SummaryOptions":
        """Build options from loose input, falling back to level 3 / smart."""
        try:
            lvl = int(level) if level is not None else 3
        except (TypeError, ValueError):
            lvl = 3
        if lvl not in SUMMARY_LEVELS:
            lvl = 3
        mode = privacy if privacy in PRIVACY_MODES else "smart"
        return cls(level=lvl, privacy=mode)


@dataclass
class SummaryResult:
    """Final summary plus the run statistics shown to the user."""

    summary: str
    total_messages: int
    sampled_messages: int
    participants: int
    tokens_used: int
    chunks: int
    merge_calls: int = 0
    processing_time: float = 0.0
    partials: list[PartialSummary] = field(default_factory=list)
