"""Load already-parsed chat messages from a JSON export."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .summarization.models import SYSTEM_SENDER, Message

_log = logging.getLogger(__name__)

PREVIEW_CHARS = 50
DEFAULT_RECENT_DAYS = 3


def parse_time(value: str) -> int:
    """Convert ``HH:MM`` (or ``HH:MM:SS``) to minutes of day."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time: {value!r}")
    return hours * 60 + minutes


def message_from_dict(raw: dict[str, Any]) -> Message:
    """Build a Message from an export record.

    Records look like ``{"date": "2024-05-01", "time": "14:03", "sender": "Ana",
    "content": "hi", "isMedia": false}``. A missing sender marks a system line.
    """
    return Message(
        minutes=parse_time(str(raw["time"])),
        sender=raw.get("sender") or SYSTEM_SENDER,
        text=raw.get("content") or "",
        is_media=bool(raw.get("isMedia", False)),
        date=raw.get("date"),
    )


def messages_from_records(records: Iterable[dict[str, Any]], dates: str | Sequence[str] | None = None) -> list[Message]:
    messages = [message_from_dict(r) for r in records]
    wanted = _wanted_dates(dates)
    if wanted is not None:
        messages = [m for m in messages if m.date in wanted]
    return messages


def _wanted_dates(dates: str | Sequence[str] | None) -> list[str] | None:
    if dates is None:
        return None
    if isinstance(dates, str):
        return [dates]
    return sorted(set(dates))


def load_messages(path: str | Path, dates: str | Sequence[str] | None = None) -> list[Message]:
    """
    Read messages from *path*.

    The file is either a list of records or an object with a ``messages``
    list (or ``messagesByDate`` mapping) as produced by the upload endpoint.

    Args:
        path: JSON file
        dates: Keep only messages from this ``YYYY-MM-DD`` day, or these days

    Returns:
        Messages in file order, or day by day for ``messagesByDate`` files
    """
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    wanted = _wanted_dates(dates)
    if isinstance(payload, dict):
        if "messagesByDate" in payload:
            by_date = payload["messagesByDate"]
            days = wanted if wanted is not None else sorted(by_date)
            records = [
                {**r, "date": r.get("date", day)}
                for day in days
                for r in by_date.get(day, [])
            ]
        else:
            records = payload.get("messages", [])
    else:
        records = payload

    messages = messages_from_records(records, wanted)
    _log.info("Loaded %d messages from %s", len(messages), path)
    return messages


@dataclass(frozen=True)
class DateInfo:
    date: str
    message_count: int
    participants: int
    preview: str


@dataclass(frozen=True)
class DateStats:
    total_days: int
    oldest_date: str
    newest_date: str
    total_messages: int


def date_info(messages: Iterable[Message]) -> list[DateInfo]:
    """
    Summarize each day present in *messages*, newest first.

    Message counts include system lines; participants and the preview do
    not. The preview is the first text message of the day, cut to
    ``PREVIEW_CHARS``. Undated messages are skipped.
    """
    by_date: dict[str, list[Message]] = {}
    for msg in messages:
        if msg.date is not None:
            by_date.setdefault(msg.date, []).append(msg)

    infos = []
    for day, day_messages in by_date.items():
        senders = set()
        preview = ""
        for msg in day_messages:
            if msg.is_system:
                continue
            senders.add(msg.sender)
            if not preview and not msg.is_media:
                preview = msg.text[:PREVIEW_CHARS]
                if len(msg.text) > PREVIEW_CHARS:
                    preview += "..."
        infos.append(DateInfo(day, len(day_messages), len(senders), preview))

    infos.sort(key=lambda info: info.date, reverse=True)
    return infos


def recent_dates(infos: Sequence[DateInfo], count: int = DEFAULT_RECENT_DAYS) -> list[DateInfo]:
    return list(infos[:count])


def date_stats(infos: Sequence[DateInfo]) -> DateStats:
    """Totals over *infos*, which must be sorted newest first."""
    if not infos:
        return DateStats(0, "", "", 0)
    return DateStats(
        total_days=len(infos),
        oldest_date=infos[-1].date,
        newest_date=infos[0].date,
        total_messages=sum(info.message_count for info in infos),
    )
