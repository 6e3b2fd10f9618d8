"""Shared test fixtures for retro-vision."""

from __future__ import annotations

import datetime
import io
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import types
from PIL import Image

from retro_vision.pipeline import SceneGenerationPipeline
from retro_vision.quota import MemoryStore, QuotaLimiter
from retro_vision.styles import StyleCatalog

DESCRIPTION = "Two students on a school rooftop at dusk, one handing the other a letter."


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped."""
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable."""
    import importlib
    import pkgutil

    import retro_vision.tools as tools_pkg

    for info in pkgutil.walk_packages(tools_pkg.__path__, tools_pkg.__name__ + "."):
        mod = importlib.import_module(info.name)
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _set_dummy_api_key(monkeypatch):
    """Ensure tests never hit real Gemini API."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing in all tests."""
    monkeypatch.setenv("RETRO_TRACING_ENABLED", "false")


@pytest.fixture(autouse=True)
def _isolate_filesystem(tmp_path, monkeypatch):
    """Keep dotenv, quota state and exports inside the test's tmp dir."""
    monkeypatch.setattr("retro_vision.dotenv.DEFAULT_ENV_PATH", tmp_path / "nonexistent.env")
    monkeypatch.setenv("RETRO_STATE_PATH", str(tmp_path / "state.json"))
    monkeypatch.setenv("RETRO_EXPORT_DIR", str(tmp_path / "exports"))


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the config singleton between tests."""
    import retro_vision.config as cfg_mod

    cfg_mod._config = None
    yield
    cfg_mod._config = None


# ── virtual time ─────────────────────────────────────────────────────────────


@dataclass(order=True)
class _Timer:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls :meth:`advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[_Timer] = []
        self._seq = 0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _Timer:
        self._seq += 1
        timer = _Timer(self.now + delay_ms, self._seq, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, ms: float) -> None:
        target = self.now + ms
        while True:
            live = sorted(t for t in self._timers if not t.cancelled and t.due <= target)
            if not live:
                break
            timer = live[0]
            self._timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.now = target


@pytest.fixture()
def scheduler():
    return ManualScheduler()


# ── collaborators ────────────────────────────────────────────────────────────


@pytest.fixture()
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (16, 9), (40, 80, 120)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def image_part(png_bytes):
    return types.Part(inline_data=types.Blob(data=png_bytes, mime_type="image/png"))


@pytest.fixture()
def text_gen():
    gen = MagicMock()
    gen.generate_text = AsyncMock(return_value=DESCRIPTION)
    return gen


@pytest.fixture()
def image_gen(image_part):
    gen = MagicMock()
    gen.generate_image = AsyncMock(return_value=[types.Part(text="Here is your scene."), image_part])
    return gen


@pytest.fixture()
def styles():
    return StyleCatalog(rng=random.Random(7))


@pytest.fixture()
def pipeline(text_gen, image_gen, styles):
    return SceneGenerationPipeline(text_gen, image_gen, styles=styles)


class Clock:
    """Settable ``today`` for the quota limiter."""

    def __init__(self, day: datetime.date) -> None:
        self.day = day

    def __call__(self) -> datetime.date:
        return self.day


@pytest.fixture()
def clock():
    return Clock(datetime.date(2025, 1, 31))


@pytest.fixture()
def quota(clock):
    return QuotaLimiter(MemoryStore(), today=clock)


@pytest.fixture()
def console_env(pipeline, quota, scheduler):
    """Point the process-wide console store at fake collaborators."""
    from retro_vision.console import console_store

    console_store.close_all()
    console_store._pipeline = pipeline
    console_store._quota = quota
    console_store._scheduler = scheduler
    yield console_store
    console_store.close_all()
    console_store.reconfigure()
    console_store._scheduler = None
