"""Console sessions — one generation machine plus its subtitle overlay and exporter.

The machine is the source of truth. Each session subscribes to it and keeps
the typewriter in step: a COMPLETE scene starts a fresh reveal of the
original dialogue with the overlay shown, and any other phase clears it.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from .config import get_config
from .errors import SessionNotFound
from .export import PillowSceneRenderer, SceneExporter
from .i18n import check_language, t
from .machine import DEFAULT_THEME, GenerationPhase, GenerationStateMachine
from .models.console import ConsoleState, ExportResult, SceneSnapshot, SubtitleState
from .pipeline import SceneGenerationPipeline
from .quota import JsonFileStore, QuotaLimiter
from .subtitle import Scheduler, SubtitleConfig, SubtitleTypewriter

logger = logging.getLogger(__name__)

LANGUAGE_TOGGLE = {"en": "zh", "zh": "en"}


@dataclass
class ConsoleSession:
    """A single player's console."""

    session_id: str
    machine: GenerationStateMachine
    typewriter: SubtitleTypewriter
    exporter: SceneExporter
    created_at: datetime = field(default_factory=datetime.now)
    last_active: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.machine.subscribe(self._on_phase)

    def _on_phase(self, machine: GenerationStateMachine, phase: GenerationPhase) -> None:
        if phase is GenerationPhase.COMPLETE and machine.result is not None:
            self.typewriter.set_text(machine.result.original_text)
            self.typewriter.show()
        else:
            self.typewriter.clear()

    def touch(self) -> None:
        self.last_active = datetime.now()

    @property
    def language(self) -> str:
        return self.machine.language

    def set_language(self, language: str) -> None:
        self.machine.language = check_language(language)

    def toggle_language(self) -> str:
        self.machine.language = LANGUAGE_TOGGLE[self.machine.language]
        return self.machine.language

    def subtitles(self, action: str) -> SubtitleState:
        """Apply a subtitle control: toggle, show, hide, or cycle (layout)."""
        if action == "toggle":
            self.typewriter.toggle()
        elif action == "show":
            self.typewriter.show()
        elif action == "hide":
            self.typewriter.hide()
        elif action == "cycle":
            self.typewriter.cycle_layout()
        else:
            raise ValueError(f"Unknown subtitle action '{action}'. Allowed: toggle, show, hide, cycle")
        return self.subtitle_state()

    def subtitle_state(self) -> SubtitleState:
        tw = self.typewriter
        return SubtitleState(
            phase=tw.phase.value,
            visible=tw.visible,
            text=tw.visible_text,
            displayed_length=tw.displayed_length,
            layout=tw.layout.value,
            layout_label=t(self.language, tw.layout.value),
            fully_revealed=tw.fully_revealed,
        )

    def state(self) -> ConsoleState:
        m = self.machine
        return ConsoleState(
            session_id=self.session_id,
            language=m.language,
            phase=m.phase.value,
            status_label=m.status_label(),
            input_text=m.input_text,
            theme=m.theme,
            theme_label=m.styles.label(m.theme, m.language),
            result=m.result if m.phase is GenerationPhase.COMPLETE else None,
            error=m.error if m.phase is GenerationPhase.FAILED else None,
            subtitles=self.subtitle_state(),
            remaining_credits=m.quota.remaining(),
            daily_max=m.quota.daily_max,
            exporting=self.exporter.busy,
        )

    async def export(self, out_dir: str | Path | None = None, stem: str | None = None) -> ExportResult:
        """Capture the scene on screen, with whatever subtitle text is visible now.

        The result is flagged ``stale`` when the console has moved to another
        scene (or been reset) by the time the file is written.
        """
        scene = self.machine.result
        if self.machine.phase is not GenerationPhase.COMPLETE or scene is None:
            return ExportResult(error="No scene on screen to save.")

        overlay = self.typewriter.visible_text if self.typewriter.visible else None
        snapshot = SceneSnapshot(
            image_url=scene.image_url,
            overlay_text=overlay or None,
            layout=self.typewriter.layout.value,
        )
        target_dir = out_dir or get_config().export_dir
        result = await self.exporter.export(snapshot, stem or f"retro-scene-{int(time.time() * 1000)}", target_dir)
        if result.path and self.machine.result is not scene:
            logger.info("Export finished after the scene changed (session %s)", self.session_id)
            result = result.model_copy(update={"stale": True})
        return result

    def close(self) -> None:
        self.typewriter.close()


class ConsoleStore:
    """Process-wide console registry with TTL eviction.

    All sessions share one pipeline and one quota limiter, since the daily
    limit belongs to the installation rather than to a session.
    """

    def __init__(
        self,
        *,
        pipeline: SceneGenerationPipeline | None = None,
        quota: QuotaLimiter | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._sessions: dict[str, ConsoleSession] = {}
        self._pipeline = pipeline
        self._quota = quota
        self._scheduler = scheduler

    @property
    def pipeline(self) -> SceneGenerationPipeline:
        if self._pipeline is None:
            self._pipeline = SceneGenerationPipeline(image_size=get_config().image_size)
        return self._pipeline

    @property
    def quota(self) -> QuotaLimiter:
        if self._quota is None:
            cfg = get_config()
            self._quota = QuotaLimiter(JsonFileStore(cfg.state_path), daily_max=cfg.daily_max)
        return self._quota

    def reconfigure(self) -> None:
        """Drop the shared pipeline and quota so the next session picks up new config."""
        self._pipeline = None
        self._quota = None

    def create(self, language: str = "en", theme: str = DEFAULT_THEME) -> ConsoleSession:
        """Create a new console, evicting expired ones first."""
        self._evict_expired()
        cfg = get_config()
        if len(self._sessions) >= cfg.max_sessions:
            oldest_id = min(self._sessions, key=lambda k: self._sessions[k].last_active)
            self._sessions.pop(oldest_id).close()
            logger.info("Evicted least recently used console %s", oldest_id)

        sid = uuid.uuid4().hex[:12]
        session = ConsoleSession(
            session_id=sid,
            machine=GenerationStateMachine(self.pipeline, self.quota, language=language, theme=theme),
            typewriter=SubtitleTypewriter(
                self._scheduler,
                SubtitleConfig(reveal_delay_ms=cfg.reveal_delay_ms, reveal_rate_ms=cfg.reveal_rate_ms),
            ),
            exporter=SceneExporter(PillowSceneRenderer(cfg.export_scale, cfg.font_path)),
        )
        self._sessions[sid] = session
        return session

    def get(self, session_id: str) -> ConsoleSession:
        """Return the live session, refreshing its activity timestamp.

        Raises:
            SessionNotFound: Unknown or expired id.
        """
        self._evict_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(f"Console session '{session_id}' not found.")
        session.touch()
        return session

    def delete(self, session_id: str) -> bool:
        """Close and forget a session. Returns False if it was not live."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def close_all(self) -> int:
        count = len(self._sessions)
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
        return count

    def _evict_expired(self) -> int:
        timeout = timedelta(hours=get_config().session_timeout_hours)
        now = datetime.now()
        expired = [sid for sid, s in self._sessions.items() if now - s.last_active > timeout]
        for sid in expired:
            self._sessions.pop(sid).close()
        return len(expired)

    @property
    def count(self) -> int:
        return len(self._sessions)


# Module-level singleton
console_store = ConsoleStore()
