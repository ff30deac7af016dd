"""Prompt text for chunk summaries and merges."""

from dataclasses import dataclass

from .chunker import estimate_tokens
from .models import SummaryOptions

# Merges get more room since they cover several parts
MERGE_OUTPUT_MULTIPLIER = 1.5


@dataclass(frozen=True)
class LevelConfig:
    name: str
    description: str
    max_tokens: int
    instructions: str


LEVEL_CONFIGS: dict[int, LevelConfig] = {
    1: LevelConfig(
        name="Flash",
        description="Ultra-short summary in 1-2 sentences",
        max_tokens=100,
        instructions=(
            "Write an ULTRA-SHORT summary in just 1-2 sentences.\n"
            "Mention only the 2-3 main topics discussed.\n"
            "Be direct. Do not use lists or special formatting."
        ),
    ),
    2: LevelConfig(
        name="Short",
        description="Short paragraphs per topic",
        max_tokens=300,
        instructions=(
            "Write a SHORT summary with a brief paragraph for each main topic.\n"
            "Group related topics together.\n"
            "Use natural, flowing language. At most 3-4 short paragraphs."
        ),
    ),
    3: LevelConfig(
        name="Standard",
        description="Full summary with context",
        max_tokens=500,
        instructions=(
            "Write a DETAILED summary covering every important topic.\n"
            "Include the relevant context for each discussion.\n"
            "Organize by topic where it helps.\n"
            "Use markdown ## headings for sections if needed."
        ),
    ),
    4: LevelConfig(
        name="Complete",
        description="Detailed summary with participants",
        max_tokens=800,
        instructions=(
            "Write a COMPLETE, DETAILED summary of the whole conversation.\n"
            "Include who said what when it matters.\n"
            "Highlight decisions, important events and significant discussions.\n"
            "Use markdown ## for sections and ** for emphasis.\n"
            "Mention the most active participants and their main contributions."
        ),
    ),
}

PRIVACY_INSTRUCTIONS: dict[str, str] = {
    "anonymous": (
        "IMPORTANT: do NOT mention people's names or phone numbers.\n"
        "Focus on the TOPICS discussed, not on who spoke.\n"
        'Use generic phrasing such as "the group discussed" or "someone asked".'
    ),
    "with-names": (
        "You may mention people's names when they matter for context.\n"
        "Include who said or did what when it helps understanding."
    ),
    "smart": (
        "Mention names ONLY when someone made an important contribution or decision.\n"
        "Do not name people in casual exchanges.\n"
        'Never print phone numbers; say "a participant" instead.'
    ),
}


def level_config(level: int) -> LevelConfig:
    return LEVEL_CONFIGS.get(level, LEVEL_CONFIGS[3])


def summary_options() -> list[dict[str, object]]:
    """Level choices for display."""
    return [
        {"level": level, "name": cfg.name, "description": cfg.description}
        for level, cfg in LEVEL_CONFIGS.items()
    ]


def build_summary_system_prompt(options: SummaryOptions) -> str:
    cfg = level_config(options.level)
    return (
        "You are an assistant that summarizes WhatsApp group conversations.\n"
        f"{cfg.instructions}\n"
        f"{PRIVACY_INSTRUCTIONS[options.privacy]}"
    )


def build_summary_user_prompt(messages_text: str, is_partial: bool) -> str:
    if is_partial:
        return f"Summarize this PART of the group conversation:\n\n{messages_text}"
    return f"Summarize this group conversation:\n\n{messages_text}"


def build_merge_system_prompt(options: SummaryOptions) -> str:
    cfg = level_config(options.level)
    return (
        "You are an assistant that consolidates partial summaries into one final summary.\n"
        f"{cfg.instructions}\n"
        f"{PRIVACY_INSTRUCTIONS[options.privacy]}\n\n"
        "You will receive several partial summaries of consecutive parts of one conversation.\n"
        "Combine them into a single coherent summary, removing repetition and organizing by topic."
    )


def build_merge_user_prompt(summaries: list[str]) -> str:
    parts = "\n\n".join(f"--- Part {i + 1} ---\n{text}" for i, text in enumerate(summaries))
    return f"Combine these partial summaries into a final summary:\n\n{parts}"


def merge_max_tokens(options: SummaryOptions) -> int:
    return int(level_config(options.level).max_tokens * MERGE_OUTPUT_MULTIPLIER)


def summary_call_overhead(options: SummaryOptions) -> int:
    """Tokens a chunk call costs beyond the chunk text: system prompt plus full output allowance."""
    return estimate_tokens(build_summary_system_prompt(options)) + level_config(options.level).max_tokens


def merge_call_overhead(options: SummaryOptions) -> int:
    return estimate_tokens(build_merge_system_prompt(options)) + merge_max_tokens(options)
