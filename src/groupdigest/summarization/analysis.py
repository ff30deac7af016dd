"""Light-hearted whole-group analysis: a roast, a personality sketch or a mock report."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .blocks import DEFAULT_BLOCK_GAP_MINUTES
from .chunker import estimate_tokens, format_chunk
from .errors import EmptyInputError
from .models import Chunk, GenerationResult, Message
from .processor import ChunkProcessor
from .prompts import PRIVACY_INSTRUCTIONS
from .sampler import sample

if TYPE_CHECKING:
    from ..text_generators import TextGeneratorAPI

_log = logging.getLogger(__name__)

ANALYSIS_STYLES = ("roast", "personality", "report")
# One call only, so the input stays small
MAX_ANALYSIS_MESSAGES = 150
ANALYSIS_TEMPERATURE = 0.8

_LAUGH_RE = re.compile(r"k{3,}|haha|rs{2,}|\U0001F602|\U0001F923", re.IGNORECASE)
_EMOJI_RE = re.compile("[\U0001F300-\U0001F9FF]")


@dataclass(frozen=True)
class StyleConfig:
    system: str
    max_tokens: int


STYLE_CONFIGS: dict[str, StyleConfig] = {
    "roast": StyleConfig(
        system=(
            'You are a comedian doing a friendly "roast" of a WhatsApp group.\n'
            "Write a FUNNY, IRONIC analysis that includes:\n"
            "- A creative title for the group\n"
            "- An ironic description of what the group stands for\n"
            "- The \"types\" of people in it (the voice-note sender, the one who vanished, ...)\n"
            "- The strangest topics\n\n"
            "Be funny but never offensive. Use markdown."
        ),
        max_tokens=400,
    ),
    "personality": StyleConfig(
        system=(
            'You describe the "personality" of a WhatsApp group as if it were a person.\n'
            "Include:\n"
            "- A name and a made-up star sign for the group\n"
            "- Personality traits\n"
            "- What makes the group happy or annoyed\n"
            "- One sentence that defines the group\n\n"
            "Be creative! Use markdown."
        ),
        max_tokens=400,
    ),
    "report": StyleConfig(
        system=(
            'You write a playful "annual report" about a WhatsApp group.\n'
            "Include:\n"
            "- Funny made-up statistics\n"
            "- Ironic awards for participants\n"
            "- Words or emojis that define the group\n"
            "- Comic predictions\n\n"
            "Be FUNNY! Use markdown."
        ),
        max_tokens=400,
    ),
}


@dataclass
class AnalysisResult:
    analysis: str
    vibe_score: int
    messages_analyzed: int
    tokens_used: int


def vibe_score(messages: Sequence[Message]) -> int:
    """
    Heuristic 1-10 liveliness score.

    Starts at 5 and gains a point each for more than 10 and more than 20
    participants, for laughter in over 10% and over 20% of messages, and for
    emoji in over 30% of messages.
    """
    score = 5
    total = len(messages)

    senders = len({m.sender for m in messages})
    if senders > 10:
        score += 1
    if senders > 20:
        score += 1

    text = " ".join(m.text.lower() for m in messages)
    laughs = len(_LAUGH_RE.findall(text))
    if laughs > total * 0.1:
        score += 1
    if laughs > total * 0.2:
        score += 1

    if len(_EMOJI_RE.findall(text)) > total * 0.3:
        score += 1

    return min(max(score, 1), 10)


class GroupAnalyzer:
    """Runs a single styled analysis call over a sample of the group's messages.

    Unknown styles fall back to ``roast`` and unknown privacy modes to ``smart``.
    """

    def __init__(self, llm: TextGeneratorAPI, style: str = "roast", privacy: str = "smart") -> None:
        self.llm = llm
        self.style = style if style in STYLE_CONFIGS else "roast"
        self.privacy = privacy if privacy in PRIVACY_INSTRUCTIONS else "smart"

    @property
    def include_names(self) -> bool:
        return self.privacy != "anonymous"

    @property
    def config(self) -> StyleConfig:
        return STYLE_CONFIGS[self.style]

    def system_prompt(self) -> str:
        return f"{self.config.system}\n\n{PRIVACY_INSTRUCTIONS[self.privacy]}"

    async def generate(self, messages_text: str) -> GenerationResult:
        result = await self.llm.generate(
            f"Analyze this WhatsApp group:\n\n{messages_text}",
            system=self.system_prompt(),
            max_tokens=self.config.max_tokens,
            temperature=ANALYSIS_TEMPERATURE,
        )
        return GenerationResult(text=result.text.strip(), tokens_used=result.tokens_used)

    async def analyze(
        self,
        messages: Sequence[Message],
        processor: ChunkProcessor | None = None,
        *,
        block_gap_minutes: int = DEFAULT_BLOCK_GAP_MINUTES,
    ) -> AnalysisResult:
        """
        Analyze *messages* in one provider call.

        Args:
            messages: Messages to analyze; system lines are ignored
            processor: Budget and retry guard for the call
            block_gap_minutes: Gap used when sampling large inputs

        Raises:
            EmptyInputError: No non-system messages
            RetriesExhaustedError: The call stayed rate limited past the retry ceiling
        """
        conversation = [m for m in messages if not m.is_system]
        if not conversation:
            raise EmptyInputError("No messages to analyze")

        selected = sample(conversation, MAX_ANALYSIS_MESSAGES, block_gap_minutes)
        text = format_chunk(Chunk(0, tuple(selected)), 1, self.include_names)
        cost = estimate_tokens(text) + estimate_tokens(self.system_prompt()) + self.config.max_tokens
        _log.info("Analyzing %d of %d messages as %s", len(selected), len(conversation), self.style)

        if processor is None:
            processor = ChunkProcessor(include_names=self.include_names)
        result = await processor.call(lambda: self.generate(text), cost, 0, 1, label="Group analysis")

        return AnalysisResult(
            analysis=result.text,
            vibe_score=vibe_score(selected),
            messages_analyzed=len(selected),
            tokens_used=result.tokens_used,
        )
