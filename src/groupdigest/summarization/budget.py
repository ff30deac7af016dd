"""Per-window token budget tracking with best-effort persistence.

The tracker is advisory: it keeps the pipeline from making calls that are
obviously going to be rejected, but the provider's own counter is the
authority and its rejections are still handled by the chunk processor.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from .models import BudgetState

_log = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60


class BudgetStore(Protocol):
    """Key-value persistence for a single ``BudgetState``."""

    def load(self) -> BudgetState | None:
        ...

    def save(self, state: BudgetState) -> None:
        ...


class MemoryBudgetStore:
    """Keeps the state in memory; survives tracker instances, not processes."""

    def __init__(self, state: BudgetState | None = None) -> None:
        self._state = state
        self.save_count = 0

    def load(self) -> BudgetState | None:
        if self._state is None:
            return None
        return BudgetState(self._state.tokens_consumed, self._state.window_reset_at)

    def save(self, state: BudgetState) -> None:
        self._state = BudgetState(state.tokens_consumed, state.window_reset_at)
        self.save_count += 1


class SQLiteBudgetStore:
    """Stores budget state in a SQLite table, one row per key.

    Failures are logged and ignored: losing this state only risks one extra
    rate-limit rejection from the provider.
    """

    def __init__(self, db_path: str | Path, key: str = "default") -> None:
        self.db_path = str(db_path)
        self.key = key
        self.enabled = True
        try:
            self._ensure_table_exists()
        except (OSError, sqlite3.Error) as e:
            _log.warning("Budget persistence disabled, cannot use %s: %s", self.db_path, e)
            self.enabled = False

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _ensure_table_exists(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS token_budget (
                    key TEXT PRIMARY KEY,
                    tokens_consumed INTEGER NOT NULL DEFAULT 0,
                    window_reset_at REAL NOT NULL DEFAULT 0
                )
            """)

    def load(self) -> BudgetState | None:
        if not self.enabled:
            return None
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT tokens_consumed, window_reset_at FROM token_budget WHERE key = ?",
                    (self.key,),
                ).fetchone()
        except sqlite3.Error as e:
            _log.warning("Could not load budget state from %s: %s", self.db_path, e)
            return None
        if row is None:
            return None
        return BudgetState(tokens_consumed=int(row[0]), window_reset_at=float(row[1]))

    def save(self, state: BudgetState) -> None:
        if not self.enabled:
            return
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO token_budget (key, tokens_consumed, window_reset_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        tokens_consumed = excluded.tokens_consumed,
                        window_reset_at = excluded.window_reset_at
                    """,
                    (self.key, state.tokens_consumed, state.window_reset_at),
                )
        except sqlite3.Error as e:
            _log.warning("Could not save budget state to %s: %s", self.db_path, e)

    def all_states(self) -> dict[str, BudgetState]:
        """Every stored key with its state, for inspection."""
        if not self.enabled:
            return {}
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT key, tokens_consumed, window_reset_at FROM token_budget ORDER BY key"
            ).fetchall()
        return {row[0]: BudgetState(int(row[1]), float(row[2])) for row in rows}


class BudgetTracker:
    """Tracks tokens consumed in the current rate window.

    EMPTY until the first ``record_usage``, which opens a window ending
    ``window_seconds`` later. Once the clock passes the end of the window the
    next query resets the state to EMPTY.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        store: BudgetStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            limit: Tokens allowed per window
            window_seconds: Window length in seconds
            store: Optional persistence for the state across runs
            clock: Returns the current epoch time in seconds
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self.window_seconds = window_seconds
        self._store = store
        self._clock = clock
        self._state = (store.load() if store is not None else None) or BudgetState.empty()
        self._expire()

    @property
    def state(self) -> BudgetState:
        """Copy of the current state, after expiring a finished window."""
        self._expire()
        return BudgetState(self._state.tokens_consumed, self._state.window_reset_at)

    def _save(self) -> None:
        if self._store is not None:
            self._store.save(self._state)

    def _expire(self) -> None:
        if self._state.is_active and self._clock() > self._state.window_reset_at:
            _log.debug(
                "Budget window expired after %d tokens; resetting",
                self._state.tokens_consumed,
            )
            self._state = BudgetState.empty()
            self._save()

    def reset(self) -> None:
        self._state = BudgetState.empty()
        self._save()

    def available(self) -> int:
        """Tokens left in the current window, never below zero."""
        self._expire()
        return max(0, self.limit - self._state.tokens_consumed)

    def record_usage(self, tokens: int) -> None:
        """Add *tokens* to the current window, opening one if needed."""
        if tokens < 0:
            raise ValueError("tokens must be >= 0")
        self._expire()
        if not self._state.is_active:
            self._state.window_reset_at = self._clock() + self.window_seconds
        self._state.tokens_consumed += tokens
        _log.debug(
            "Recorded %d tokens (%d/%d used this window)",
            tokens,
            self._state.tokens_consumed,
            self.limit,
        )
        self._save()

    def seconds_until_reset(self) -> int:
        """Whole seconds to wait before the window has reset.

        The reset happens once the clock is strictly past ``window_reset_at``,
        so waiting the returned number of seconds is always enough. Returns 0
        when no window is active.
        """
        self._expire()
        if not self._state.is_active:
            return 0
        return int(self._state.window_reset_at - self._clock()) + 1
