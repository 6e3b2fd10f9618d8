"""Console models — export inputs/outputs and the state snapshot returned by tools."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .scene import GeneratedScene


class SceneSnapshot(BaseModel):
    """What is on screen at the moment an export starts."""

    model_config = ConfigDict(frozen=True)

    image_url: str
    overlay_text: str | None = Field(
        default=None,
        description="Subtitle text as currently revealed; None when the overlay is hidden",
    )
    layout: str = "HORIZONTAL"


class ExportResult(BaseModel):
    """Outcome of one export. ``error`` is set instead of raising."""

    path: str | None = None
    error: str | None = None
    stale: bool = Field(
        default=False,
        description="True when the console moved on to another scene before the export finished",
    )


class SubtitleState(BaseModel):
    """Subtitle overlay as the viewer sees it."""

    phase: str
    visible: bool
    text: str
    displayed_length: int
    layout: str
    layout_label: str
    fully_revealed: bool


class ConsoleState(BaseModel):
    """Output schema for console_* tools."""

    session_id: str
    language: str
    phase: str
    status_label: str
    input_text: str
    theme: str
    theme_label: str
    result: GeneratedScene | None = None
    error: str | None = None
    subtitles: SubtitleState
    remaining_credits: int
    daily_max: int
    exporting: bool = False
