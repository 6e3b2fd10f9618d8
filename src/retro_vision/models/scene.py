"""Generation models — request, result, and persisted quota record."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..types import AspectRatio


class GenerationRequest(BaseModel):
    """One submit from the console.

    ``dialogue_text`` is kept verbatim; only its stripped form must be non-empty.
    ``theme`` may still be RANDOM here — the pipeline resolves it once.
    """

    model_config = ConfigDict(frozen=True)

    dialogue_text: str
    theme: str = "JAPANESE_SCHOOL"
    aspect_ratio: AspectRatio = "16:9"

    @field_validator("dialogue_text")
    @classmethod
    def validate_dialogue(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Dialogue text must not be blank")
        return value


class GeneratedScene(BaseModel):
    """A finished generation. Replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True)

    image_url: str = Field(description="Displayable data URI of the rendered scene")
    original_text: str = Field(description="Dialogue exactly as submitted")
    scene_description: str = Field(description="Stage-1 scene description fed to the image model")
    theme: str = Field(description="Concrete theme used for both stages")
    aspect_ratio: AspectRatio = "16:9"


class QuotaState(BaseModel):
    """Persisted daily usage record.

    Serialised with camelCase keys: ``{"count": 3, "lastResetDate": "2025-01-31"}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    count: int = Field(default=0, ge=0)
    last_reset_date: datetime.date = Field(alias="lastResetDate")
