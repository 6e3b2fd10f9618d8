"""Typewriter subtitle overlay.

A freshly set line stays hidden for ``reveal_delay_ms``, then appears empty
and gains one character every ``reveal_rate_ms`` until it is complete::

    HIDDEN --delay--> REVEALING --rate x len(text)--> FULLY_REVEALED

Timers go through an injected :class:`Scheduler` so tests can drive virtual
time. Both timers belong to the current line and are cancelled whenever
the line changes or the overlay is closed. The user's hide toggle is
separate from the timers: hiding never pauses the reveal, and showing again
lands on wherever the reveal has got to.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_REVEAL_DELAY_MS = 2000
DEFAULT_REVEAL_RATE_MS = 80


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Tick source: run *callback* once after *delay_ms* milliseconds."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules on the running event loop."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay_ms / 1000, callback)


class RevealPhase(str, Enum):
    HIDDEN = "HIDDEN"
    REVEALING = "REVEALING"
    FULLY_REVEALED = "FULLY_REVEALED"


class SubtitleLayout(str, Enum):
    """Presentation variants. Layout never affects reveal timing."""

    HORIZONTAL = "HORIZONTAL"
    HORIZONTAL_NO_BG = "HORIZONTAL_NO_BG"
    VERTICAL_LEFT = "VERTICAL_LEFT"
    VERTICAL_LEFT_NO_BG = "VERTICAL_LEFT_NO_BG"

    @property
    def has_panel(self) -> bool:
        return not self.value.endswith("_NO_BG")

    @property
    def is_vertical(self) -> bool:
        return self.value.startswith("VERTICAL")


LAYOUT_CYCLE: tuple[SubtitleLayout, ...] = tuple(SubtitleLayout)


def next_layout(layout: SubtitleLayout | str) -> SubtitleLayout:
    """Following layout in the fixed rotation, wrapping around."""
    index = LAYOUT_CYCLE.index(SubtitleLayout(layout))
    return LAYOUT_CYCLE[(index + 1) % len(LAYOUT_CYCLE)]


def revealed_length(
    elapsed_ms: float,
    text_length: int,
    *,
    delay_ms: float = DEFAULT_REVEAL_DELAY_MS,
    rate_ms: float = DEFAULT_REVEAL_RATE_MS,
) -> int:
    """Characters on screen *elapsed_ms* after the line was set."""
    if elapsed_ms < delay_ms:
        return 0
    return min(text_length, int((elapsed_ms - delay_ms) // rate_ms))


@dataclass
class SubtitleConfig:
    """Timing and layout for the overlay; the text itself is set per scene."""

    layout: SubtitleLayout = SubtitleLayout.HORIZONTAL
    reveal_delay_ms: int = DEFAULT_REVEAL_DELAY_MS
    reveal_rate_ms: int = DEFAULT_REVEAL_RATE_MS

    def __post_init__(self) -> None:
        self.layout = SubtitleLayout(self.layout)
        if self.reveal_delay_ms < 0:
            raise ValueError("reveal_delay_ms must be >= 0")
        if self.reveal_rate_ms <= 0:
            raise ValueError("reveal_rate_ms must be > 0")


class SubtitleTypewriter:
    """Reveal state for one overlay; reused across scenes via :meth:`set_text`."""

    def __init__(self, scheduler: Scheduler | None = None, config: SubtitleConfig | None = None) -> None:
        self._scheduler = scheduler or AsyncioScheduler()
        self._config = config or SubtitleConfig()
        self._text: str | None = None
        self._displayed = 0
        self._phase = RevealPhase.HIDDEN
        self._shown = True
        self._show_timer: TimerHandle | None = None
        self._tick_timer: TimerHandle | None = None

    # ── state ────────────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        return self._text or ""

    @property
    def phase(self) -> RevealPhase:
        return self._phase

    @property
    def displayed_length(self) -> int:
        return self._displayed

    @property
    def visible_text(self) -> str:
        return self.text[: self._displayed]

    @property
    def fully_revealed(self) -> bool:
        return self._phase is RevealPhase.FULLY_REVEALED

    @property
    def shown(self) -> bool:
        """User toggle; False forces the overlay hidden."""
        return self._shown

    @property
    def visible(self) -> bool:
        return self._text is not None and self._shown and self._phase is not RevealPhase.HIDDEN

    @property
    def layout(self) -> SubtitleLayout:
        return self._config.layout

    @property
    def config(self) -> SubtitleConfig:
        return self._config

    # ── text lifecycle ───────────────────────────────────────────────────

    def set_text(self, text: str) -> None:
        """Start a new line from HIDDEN with a zeroed counter."""
        self._cancel_timers()
        self._text = text
        self._displayed = 0
        self._phase = RevealPhase.HIDDEN
        self._show_timer = self._scheduler.call_later(self._config.reveal_delay_ms, self._on_show)

    def clear(self) -> None:
        """Drop the current line (no scene on screen)."""
        self._cancel_timers()
        self._text = None
        self._displayed = 0
        self._phase = RevealPhase.HIDDEN

    def close(self) -> None:
        """Tear down: cancel both timers."""
        self._cancel_timers()

    # ── user controls ────────────────────────────────────────────────────

    def hide(self) -> None:
        self._shown = False

    def show(self) -> None:
        self._shown = True

    def toggle(self) -> bool:
        """Flip the hide toggle. Returns the new ``shown`` value."""
        self._shown = not self._shown
        return self._shown

    def cycle_layout(self) -> SubtitleLayout:
        self._config.layout = next_layout(self._config.layout)
        return self._config.layout

    # ── timers ───────────────────────────────────────────────────────────

    def _on_show(self) -> None:
        self._show_timer = None
        self._displayed = 0
        if not self.text:
            self._phase = RevealPhase.FULLY_REVEALED
            return
        self._phase = RevealPhase.REVEALING
        self._tick_timer = self._scheduler.call_later(self._config.reveal_rate_ms, self._on_tick)

    def _on_tick(self) -> None:
        self._tick_timer = None
        self._displayed += 1
        if self._displayed >= len(self.text):
            self._displayed = len(self.text)
            self._phase = RevealPhase.FULLY_REVEALED
            return
        self._tick_timer = self._scheduler.call_later(self._config.reveal_rate_ms, self._on_tick)

    def _cancel_timers(self) -> None:
        for handle in (self._show_timer, self._tick_timer):
            if handle is not None:
                handle.cancel()
        self._show_timer = None
        self._tick_timer = None
