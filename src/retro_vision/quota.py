"""Daily generation quota persisted in a small key-value store.

The record lives under a single key as JSON
(``{"count": 3, "lastResetDate": "2025-01-31"}``). Every read and every
write first compares the stored date with today's date from the injected
clock. On a new day the counter drops back to zero before anything else
happens, so an idle console never carries yesterday's usage forward.

Storage problems never reach the caller: an unreadable or corrupt record
counts as "no record" and a failed write is logged and dropped.
"""

from __future__ import annotations

import datetime
import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .errors import QuotaExceeded
from .models.scene import QuotaState

logger = logging.getLogger(__name__)

STORAGE_KEY = "retro_vision_daily_limit"
DAILY_MAX = 10


class KeyValueStore(Protocol):
    """Minimal string store the limiter persists through."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Process-local store; state is lost on exit."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """All keys in one JSON object on disk, rewritten atomically on each set."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.is_file():
            return {}
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not hold a JSON object")
        return data

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except (OSError, ValueError):
            logger.warning("Discarding unreadable state file %s", self._path)
            data = {}
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class QuotaLimiter:
    """Per-day usage counter with automatic reset at the day boundary."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        daily_max: int = DAILY_MAX,
        today: Callable[[], datetime.date] = datetime.date.today,
        key: str = STORAGE_KEY,
    ) -> None:
        if daily_max < 1:
            raise ValueError("daily_max must be >= 1")
        self._store = store
        self._daily_max = daily_max
        self._today = today
        self._key = key

    @property
    def daily_max(self) -> int:
        return self._daily_max

    def remaining(self) -> int:
        """Generations left today."""
        state = self._normalized()
        return max(0, self._daily_max - state.count)

    def is_limit_reached(self) -> bool:
        return self.remaining() == 0

    def ensure_available(self, message: str | None = None) -> None:
        """Raise :class:`QuotaExceeded` when today's credits are used up."""
        if self.is_limit_reached():
            raise QuotaExceeded(message)

    def used(self) -> int:
        """Generations consumed today."""
        return self._normalized().count

    def increment(self) -> int:
        """Record one successful generation. Returns the new remaining count."""
        state = self._normalized()
        state = QuotaState(count=state.count + 1, last_reset_date=state.last_reset_date)
        self._save(state)
        remaining = max(0, self._daily_max - state.count)
        logger.info("Quota used %d/%d (remaining %d)", state.count, self._daily_max, remaining)
        return remaining

    def _normalized(self) -> QuotaState:
        """Load the record, resetting it first if it belongs to another day."""
        today = self._today()
        state = self._load()
        if state is None or state.last_reset_date != today:
            if state is not None:
                logger.info("New day (%s) — resetting quota", today.isoformat())
            state = QuotaState(count=0, last_reset_date=today)
            self._save(state)
        return state

    def _load(self) -> QuotaState | None:
        try:
            raw = self._store.get(self._key)
            if raw is None:
                return None
            return QuotaState.model_validate_json(raw)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable quota record: %s", exc)
            return None

    def _save(self, state: QuotaState) -> None:
        payload = state.model_dump_json(by_alias=True)
        try:
            self._store.set(self._key, payload)
        except (OSError, ValueError) as exc:
            logger.warning("Could not persist quota record: %s", exc)
