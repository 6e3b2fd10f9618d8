"""Generation state machine — the console's single source of truth.

Phases::

    IDLE ──submit──▶ DESCRIBING_SCENE ──▶ RENDERING_IMAGE ──▶ COMPLETE
      │                     │                    │
      └─quota exhausted─▶ FAILED ◀───error───────┘
    any ──reset──▶ IDLE

Submitting while a generation is in flight does nothing; that is the only
concurrency guard. Every submit takes a fresh generation token, and a
reset bumps it too, so a pipeline call that finishes after a reset is
discarded without touching state or quota.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from .errors import GAME_OVER_MESSAGE, PipelineError, QuotaExceeded
from .i18n import check_language, t
from .models.scene import GeneratedScene
from .pipeline import SceneGenerationPipeline
from .quota import QuotaLimiter
from .styles import StyleCatalog, ThemeId
from .types import ASPECT_RATIOS

logger = logging.getLogger(__name__)

DEFAULT_THEME = ThemeId.JAPANESE_SCHOOL.value


class GenerationPhase(str, Enum):
    IDLE = "IDLE"
    DESCRIBING_SCENE = "DESCRIBING_SCENE"
    RENDERING_IMAGE = "RENDERING_IMAGE"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


BUSY_PHASES = frozenset({GenerationPhase.DESCRIBING_SCENE, GenerationPhase.RENDERING_IMAGE})

_STATUS_KEYS = {
    GenerationPhase.IDLE: "insert_coin",
    GenerationPhase.DESCRIBING_SCENE: "reading_cartridge",
    GenerationPhase.RENDERING_IMAGE: "rendering_graphics",
    GenerationPhase.COMPLETE: "save",
    GenerationPhase.FAILED: "system_error",
}

PhaseListener = Callable[["GenerationStateMachine", GenerationPhase], None]


class GenerationStateMachine:
    """Holds phase, input, theme, result and error; reacts to user actions."""

    def __init__(
        self,
        pipeline: SceneGenerationPipeline,
        quota: QuotaLimiter,
        *,
        language: str = "en",
        theme: str = DEFAULT_THEME,
    ) -> None:
        self._pipeline = pipeline
        self._quota = quota
        self._language = check_language(language)
        self._theme = self._checked_theme(theme)
        self._phase = GenerationPhase.IDLE
        self._input_text = ""
        self._result: GeneratedScene | None = None
        self._error: str | None = None
        self._generation = 0
        self._listeners: list[PhaseListener] = []

    # ── observed state ───────────────────────────────────────────────────

    @property
    def phase(self) -> GenerationPhase:
        return self._phase

    @property
    def busy(self) -> bool:
        return self._phase in BUSY_PHASES

    @property
    def input_text(self) -> str:
        return self._input_text

    @property
    def theme(self) -> str:
        return self._theme

    @property
    def result(self) -> GeneratedScene | None:
        return self._result

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def quota(self) -> QuotaLimiter:
        return self._quota

    @property
    def styles(self) -> StyleCatalog:
        return self._pipeline.styles

    @property
    def language(self) -> str:
        return self._language

    @language.setter
    def language(self, value: str) -> None:
        self._language = check_language(value)

    def status_label(self, language: str | None = None) -> str:
        """Screen caption for the current phase, in the console language by default."""
        return t(language or self._language, _STATUS_KEYS[self._phase])

    def subscribe(self, listener: PhaseListener) -> None:
        """Call *listener(machine, phase)* after every phase change."""
        self._listeners.append(listener)

    # ── user actions ─────────────────────────────────────────────────────

    def set_input(self, text: str) -> None:
        self._input_text = text

    def select_theme(self, theme: str) -> None:
        self._theme = self._checked_theme(theme)

    async def submit(
        self,
        text: str | None = None,
        *,
        aspect_ratio: str = "16:9",
        theme: str | None = None,
    ) -> GenerationPhase:
        """Start a generation for the current (or given) input text.

        No-op while busy or when the text is blank, and *theme* is only
        switched once the submit is accepted. With the daily quota used up
        the machine goes straight to FAILED without calling the pipeline.
        Usage is counted only once both stages succeed.

        Returns:
            The phase after the submit has been handled.
        """
        if self.busy:
            logger.debug("Submit ignored — generation already in flight")
            return self._phase
        if aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio '{aspect_ratio}'. Allowed: {', '.join(ASPECT_RATIOS)}")
        checked_theme = self._checked_theme(theme) if theme is not None else self._theme
        if text is not None:
            self._input_text = text
        if not self._input_text.strip():
            logger.debug("Submit ignored — blank dialogue")
            return self._phase
        self._theme = checked_theme

        limit = self._quota.daily_max
        try:
            self._quota.ensure_available(t(self._language, "daily_limit_reached", used=limit, limit=limit))
        except QuotaExceeded as exc:
            self._error = str(exc)
            logger.info("Submit rejected — daily limit of %d reached", limit)
            self._set_phase(GenerationPhase.FAILED)
            return self._phase

        self._generation += 1
        token = self._generation
        self._error = None
        self._set_phase(GenerationPhase.DESCRIBING_SCENE)

        def described(_description: str) -> None:
            if token == self._generation:
                self._set_phase(GenerationPhase.RENDERING_IMAGE)

        try:
            scene = await self._pipeline.run(
                self._input_text, self._theme, aspect_ratio, on_described=described,
            )
        except PipelineError as exc:
            if token != self._generation:
                logger.info("Discarding failure of superseded generation #%d", token)
                return self._phase
            self._error = str(exc) or GAME_OVER_MESSAGE
            self._set_phase(GenerationPhase.FAILED)
            return self._phase
        except Exception:
            if token == self._generation:
                self._error = GAME_OVER_MESSAGE
                self._set_phase(GenerationPhase.FAILED)
            raise

        if token != self._generation:
            logger.info("Discarding result of superseded generation #%d", token)
            return self._phase

        self._result = scene
        self._quota.increment()
        self._set_phase(GenerationPhase.COMPLETE)
        return self._phase

    def reset(self) -> None:
        """Back to IDLE from any phase; clears result, error and input."""
        self._generation += 1
        self._result = None
        self._error = None
        self._input_text = ""
        self._set_phase(GenerationPhase.IDLE)

    # ── internals ────────────────────────────────────────────────────────

    def _checked_theme(self, theme: str) -> str:
        choices = self._pipeline.styles.choices()
        if theme not in choices:
            raise ValueError(f"Unknown theme '{theme}'. Allowed: {', '.join(choices)}")
        return theme

    def _set_phase(self, phase: GenerationPhase) -> None:
        self._phase = phase
        logger.debug("Phase → %s", phase.value)
        for listener in list(self._listeners):
            listener(self, phase)
