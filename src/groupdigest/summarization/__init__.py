"""Chunked, budget-aware summarization of large chat logs."""

from .analysis import ANALYSIS_STYLES, AnalysisResult, GroupAnalyzer, vibe_score
from .blocks import segment
from .budget import BudgetStore, BudgetTracker, MemoryBudgetStore, SQLiteBudgetStore
from .capabilities import Summarizer
from .chunker import ChunkCapacity, chunk_stats, estimate_tokens, format_chunk, plan, plan_by_count, plan_by_tokens
from .errors import (
    EmptyInputError,
    RateLimitedError,
    RetriesExhaustedError,
    SummarizationError,
    TransientProviderError,
    is_rate_limit_error,
    is_transient_error,
)
from .merger import MergeCoordinator
from .models import (
    SYSTEM_SENDER,
    BudgetState,
    Chunk,
    FinalSummary,
    GenerationResult,
    Message,
    PartialSummary,
    SummaryOptions,
    SummaryResult,
)
from .pipeline import SummaryPipeline
from .prompts import summary_options
from .processor import ChunkProcessor
from .sampler import sample

__all__ = [
    "segment",
    "sample",
    "plan",
    "plan_by_count",
    "plan_by_tokens",
    "ChunkCapacity",
    "chunk_stats",
    "estimate_tokens",
    "format_chunk",
    "BudgetStore",
    "BudgetTracker",
    "MemoryBudgetStore",
    "SQLiteBudgetStore",
    "ChunkProcessor",
    "MergeCoordinator",
    "Summarizer",
    "SummaryPipeline",
    "summary_options",
    "GroupAnalyzer",
    "AnalysisResult",
    "ANALYSIS_STYLES",
    "vibe_score",
    "SummarizationError",
    "EmptyInputError",
    "RateLimitedError",
    "RetriesExhaustedError",
    "TransientProviderError",
    "is_rate_limit_error",
    "is_transient_error",
    "SYSTEM_SENDER",
    "BudgetState",
    "Chunk",
    "FinalSummary",
    "GenerationResult",
    "Message",
    "PartialSummary",
    "SummaryOptions",
    "SummaryResult",
]
