"""Pydantic models for generation results, quota records, and console state."""

from .console import ConsoleState, ExportResult, SceneSnapshot, SubtitleState
from .scene import GeneratedScene, GenerationRequest, QuotaState

__all__ = [
    "ConsoleState",
    "ExportResult",
    "GeneratedScene",
    "GenerationRequest",
    "QuotaState",
    "SceneSnapshot",
    "SubtitleState",
]
