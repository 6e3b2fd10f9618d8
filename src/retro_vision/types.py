"""Shared type aliases for tool and route parameters."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

# ── Literal enums ────────────────────────────────────────────────────────────

AspectRatio = Literal["16:9", "4:3"]
Language = Literal["en", "zh"]
ThemeChoice = Literal[
    "JAPANESE_SCHOOL", "MEDIEVAL_FANTASY", "MILLENNIUM_CITY", "CASSETTE_FUTURISM", "RANDOM",
]
SubtitleAction = Literal["toggle", "show", "hide", "cycle"]
ImageSize = Literal["1K", "2K", "4K"]

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "zh")
ASPECT_RATIOS: tuple[str, ...] = ("16:9", "4:3")

# Narrow viewports get the squarer frame (matches the md: breakpoint of the TV unit).
MOBILE_BREAKPOINT_PX = 768

# ── Annotated aliases ────────────────────────────────────────────────────────

DialogueText = Annotated[str, Field(
    min_length=1,
    max_length=500,
    description="A single line of character dialogue, e.g. 'I will wait for you'",
)]
SessionId = Annotated[str, Field(min_length=1, description="Console session ID from console_create")]
SceneDescriptionText = Annotated[str, Field(
    min_length=1,
    description="Scene description produced by scene_describe",
)]
