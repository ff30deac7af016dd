# groupdigest/__main__.py
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

import anthropic
import openai

from . import settings
from .sources import date_info, date_stats, load_messages, recent_dates
from .summarization import (
    ANALYSIS_STYLES,
    BudgetTracker,
    ChunkProcessor,
    EmptyInputError,
    GroupAnalyzer,
    RetriesExhaustedError,
    SQLiteBudgetStore,
    Summarizer,
    SummaryOptions,
    SummaryPipeline,
    summary_options,
)
from .text_generators import get_text_generator

logger = logging.getLogger("groupdigest")

# Errors that end a run with a readable message instead of a traceback
FATAL_ERRORS = (openai.APIError, anthropic.APIError, ValueError)


def _print_progress(current: int, total: int, status: str) -> None:
    print(f"[{current}/{total}] {status}", file=sys.stderr, flush=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="groupdigest", description="Summarize a group chat export")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    llm_args = argparse.ArgumentParser(add_help=False)
    llm_args.add_argument("export", help="Path to the parsed messages JSON")
    llm_args.add_argument(
        "--date",
        action="append",
        dest="dates",
        help="Only use this day (YYYY-MM-DD); repeat for several days",
    )
    llm_args.add_argument(
        "--privacy",
        default="smart",
        choices=["anonymous", "with-names", "smart"],
        help="How to treat participant names",
    )
    llm_args.add_argument("--preset", default=None, choices=sorted(settings.MODEL_PRESETS))
    llm_args.add_argument("--provider", default=settings.PROVIDER, choices=["groq", "anthropic"])
    llm_args.add_argument("--model", help="Override the preset's model name")

    summarize = sub.add_parser("summarize", parents=[llm_args], help="Summarize messages from a JSON export")
    summarize.add_argument("--level", type=int, default=3, choices=[1, 2, 3, 4], help="Verbosity level")
    summarize.add_argument("--mode", default="auto", choices=["quick", "full", "auto"])

    analyze = sub.add_parser("analyze", parents=[llm_args], help="Playful analysis of the whole group")
    analyze.add_argument("--style", default="roast", choices=ANALYSIS_STYLES)

    dates = sub.add_parser("dates", help="List the days in a JSON export, newest first")
    dates.add_argument("export", help="Path to the parsed messages JSON")
    dates.add_argument("--all", action="store_true", help="List every day, not just the most recent")
    dates.add_argument("--count", type=int, default=3, help="How many recent days to list")

    sub.add_parser("levels", help="List the summary levels")
    sub.add_parser("budget", help="Show the persisted token budget state")
    return parser


def _model_for(args: argparse.Namespace) -> tuple[settings.ModelPreset, str]:
    preset = settings.get_preset(args.preset)
    model = args.model or (preset.model if args.provider == "groq" else settings.ANTHROPIC_MODEL)
    return preset, model


def _budget_for(args: argparse.Namespace, preset: settings.ModelPreset, model: str) -> BudgetTracker:
    return BudgetTracker(
        settings.tokens_per_minute(preset),
        window_seconds=settings.BUDGET_WINDOW_SECONDS,
        store=SQLiteBudgetStore(settings.DB_PATH, key=f"{args.provider}:{model}"),
    )


def _report_retries_exhausted(e: RetriesExhaustedError) -> int:
    if e.rate_limited:
        print(f"Token limit reached. Wait about {e.retry_after or 60}s and try again.", file=sys.stderr)
        return 2
    print(f"Provider kept failing: {e}", file=sys.stderr)
    return 1


async def _summarize(args: argparse.Namespace) -> int:
    preset, model = _model_for(args)
    messages = load_messages(args.export, dates=args.dates)
    pipeline = SummaryPipeline(
        _budget_for(args, preset, model),
        chunk_size=preset.chunk_size,
        sample_target=settings.SAMPLE_TARGET,
        block_gap_minutes=settings.BLOCK_GAP_MINUTES,
        merge_fan_in=settings.MERGE_FAN_IN,
        max_retries=settings.MAX_RETRIES,
        cooldown_seconds=settings.COOLDOWN_SECONDS,
        full_mode_threshold=settings.FULL_MODE_THRESHOLD,
        progress=_print_progress,
    )
    summarizer = Summarizer(
        get_text_generator(args.provider, model),
        SummaryOptions.coerce(args.level, args.privacy),
    )

    try:
        result = await pipeline.summarize(messages, summarizer, mode=args.mode)
    except EmptyInputError:
        print("No messages to summarize.", file=sys.stderr)
        return 1
    except RetriesExhaustedError as e:
        return _report_retries_exhausted(e)
    except FATAL_ERRORS as e:
        logger.debug("Summarization failed", exc_info=True)
        print(f"Summarization failed: {e}", file=sys.stderr)
        return 1

    print(result.summary)
    print(
        f"\n{result.total_messages} messages, {result.participants} participants, "
        f"{result.chunks} part(s), {result.tokens_used} tokens, {result.processing_time:.1f}s",
        file=sys.stderr,
    )
    return 0


async def _analyze(args: argparse.Namespace) -> int:
    preset, model = _model_for(args)
    messages = load_messages(args.export, dates=args.dates)
    analyzer = GroupAnalyzer(get_text_generator(args.provider, model), args.style, args.privacy)
    processor = ChunkProcessor(
        _budget_for(args, preset, model),
        max_retries=settings.MAX_RETRIES,
        cooldown_seconds=settings.COOLDOWN_SECONDS,
        include_names=analyzer.include_names,
        progress=_print_progress,
    )

    try:
        result = await analyzer.analyze(messages, processor, block_gap_minutes=settings.BLOCK_GAP_MINUTES)
    except EmptyInputError:
        print("No messages to analyze.", file=sys.stderr)
        return 1
    except RetriesExhaustedError as e:
        return _report_retries_exhausted(e)
    except FATAL_ERRORS as e:
        logger.debug("Analysis failed", exc_info=True)
        print(f"Analysis failed: {e}", file=sys.stderr)
        return 1

    print(result.analysis)
    print(f"\nVibe score: {result.vibe_score}/10")
    print(f"\n{result.messages_analyzed} messages analyzed, {result.tokens_used} tokens", file=sys.stderr)
    return 0


def _list_dates(args: argparse.Namespace) -> int:
    infos = date_info(load_messages(args.export))
    if not infos:
        print("No dated messages found.")
        return 1
    shown = infos if args.all else recent_dates(infos, args.count)
    for info in shown:
        print(f"{info.date}  {info.message_count} messages, {info.participants} participants  {info.preview}")
    stats = date_stats(infos)
    print(
        f"\n{stats.total_days} day(s) from {stats.oldest_date} to {stats.newest_date}, "
        f"{stats.total_messages} messages",
        file=sys.stderr,
    )
    return 0


def _list_levels() -> int:
    for option in summary_options():
        print(f"{option['level']}  {option['name']}: {option['description']}")
    return 0


def _show_budget() -> int:
    states = SQLiteBudgetStore(settings.DB_PATH).all_states()
    if not states:
        print("No budget state recorded.")
    for key, state in states.items():
        print(f"{key}: {state.tokens_consumed} tokens, window resets at {state.window_reset_at:.0f}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose or os.getenv("GROUPDIGEST_DEBUG") else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if args.command == "budget":
        return _show_budget()
    if args.command == "levels":
        return _list_levels()
    if args.command == "dates":
        return _list_dates(args)
    if args.command == "analyze":
        return asyncio.run(_analyze(args))
    return asyncio.run(_summarize(args))


if __name__ == "__main__":
    sys.exit(main())
