"""Runtime settings read from the environment.

Secrets (API keys) must stay in the environment or .env; everything else has
a default here that matches the free-tier limits of the providers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


@dataclass(frozen=True)
class ModelPreset:
    """A model plus the chunk size and per-minute token limit it works with."""

    name: str
    model: str
    chunk_size: int
    tokens_per_minute: int


# Chunk sizes keep a single request well under each model's per-minute limit
MODEL_PRESETS: dict[str, ModelPreset] = {
    "fast": ModelPreset("fast", "llama-3.1-8b-instant", chunk_size=60, tokens_per_minute=6000),
    "balanced": ModelPreset("balanced", "llama-3.3-70b-versatile", chunk_size=80, tokens_per_minute=12000),
    "powerful": ModelPreset("powerful", "compound-beta", chunk_size=120, tokens_per_minute=70000),
}

DEFAULT_PRESET = os.getenv("GROUPDIGEST_MODEL_PRESET", "powerful")
PROVIDER = os.getenv("GROUPDIGEST_PROVIDER", "groq")
ANTHROPIC_MODEL = os.getenv("GROUPDIGEST_ANTHROPIC_MODEL", "claude-haiku-4-5")

TPM_LIMIT_OVERRIDE = _env_int("GROUPDIGEST_TPM_LIMIT", 0)
BUDGET_WINDOW_SECONDS = _env_int("GROUPDIGEST_BUDGET_WINDOW_SECONDS", 60)
SAMPLE_TARGET = _env_int("GROUPDIGEST_SAMPLE_TARGET", 300)
BLOCK_GAP_MINUTES = _env_int("GROUPDIGEST_BLOCK_GAP_MINUTES", 5)
MERGE_FAN_IN = _env_int("GROUPDIGEST_MERGE_FAN_IN", 3)
MAX_RETRIES = _env_int("GROUPDIGEST_MAX_RETRIES", 2)
COOLDOWN_SECONDS = _env_int("GROUPDIGEST_COOLDOWN_SECONDS", 60)
FULL_MODE_THRESHOLD = _env_int("GROUPDIGEST_FULL_MODE_THRESHOLD", 120)

DEFAULT_DB = Path.home() / ".groupdigest" / "budget.db"
DB_PATH = Path(os.getenv("GROUPDIGEST_DB_PATH", str(DEFAULT_DB))).expanduser()


def get_preset(name: str | None = None) -> ModelPreset:
    """Return the named preset, falling back to the configured default."""
    key = name or DEFAULT_PRESET
    if key not in MODEL_PRESETS:
        raise ValueError(f"Unknown model preset: {key} (choose from {', '.join(MODEL_PRESETS)})")
    return MODEL_PRESETS[key]


def tokens_per_minute(preset: ModelPreset) -> int:
    return TPM_LIMIT_OVERRIDE or preset.tokens_per_minute
