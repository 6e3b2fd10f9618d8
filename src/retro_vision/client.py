"""Shared Gemini client pool with text and image generation entrypoints."""

from __future__ import annotations

import logging
import os

from google import genai
from google.genai import types

from .config import get_config

logger = logging.getLogger(__name__)


class GeminiClient:
    """Process-wide Gemini client pool (one client per API key).

    ``generate_text`` and ``generate_image`` are the two collaborators the
    scene pipeline calls. Each makes exactly one request — no retries.
    """

    _clients: dict[str, genai.Client] = {}

    @classmethod
    def get(cls, api_key: str | None = None) -> genai.Client:
        """Return (or create) the shared client for *api_key*."""
        key = api_key or get_config().gemini_api_key or os.getenv("GEMINI_API_KEY", "")
        if not key:
            raise ValueError("No Gemini API key — set GEMINI_API_KEY or pass api_key explicitly")
        if key not in cls._clients:
            cls._clients[key] = genai.Client(api_key=key)
            logger.info("Created Gemini client (key …%s)", key[-4:])
        return cls._clients[key]

    @classmethod
    async def generate_text(cls, prompt: str, *, model: str | None = None) -> str | None:
        """Send a single text prompt and return the visible answer.

        Thought parts are dropped. Returns None when the model produced no
        text at all; callers decide how to treat that.
        """
        resolved_model = model or get_config().description_model
        client = cls.get()
        logger.debug("Text request to %s (%d chars)", resolved_model, len(prompt))
        response = await client.aio.models.generate_content(
            model=resolved_model,
            contents=prompt,
        )

        content = response.candidates[0].content if response.candidates else None
        parts = content.parts if content is not None else None
        text_parts = [p.text for p in parts or [] if p.text and not getattr(p, "thought", False)]
        if text_parts:
            return "\n".join(text_parts)
        return response.text or None

    @classmethod
    async def generate_image(
        cls,
        prompt: str,
        *,
        aspect_ratio: str = "16:9",
        image_size: str | None = None,
        model: str | None = None,
    ) -> list[types.Part]:
        """Send an image prompt and return the first candidate's content parts.

        Args:
            prompt: Full image-generation instruction.
            aspect_ratio: "16:9" or "4:3".
            image_size: Resolution tier ("1K", "2K", "4K"); defaults to config.
            model: Override the image model ID.

        Returns:
            Content parts in response order; may be empty.
        """
        cfg = get_config()
        resolved_model = model or cfg.image_model
        config = types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            image_config=types.ImageConfig(
                aspect_ratio=aspect_ratio,
                image_size=image_size or cfg.image_size,
            ),
        )

        client = cls.get()
        logger.debug("Image request to %s (%s)", resolved_model, aspect_ratio)
        response = await client.aio.models.generate_content(
            model=resolved_model,
            contents=prompt,
            config=config,
        )
        if not response.candidates or response.candidates[0].content is None:
            return []
        return list(response.candidates[0].content.parts or [])

    @classmethod
    async def close_all(cls) -> int:
        """Shut down all shared clients. Returns count closed."""
        count = 0
        for client in list(cls._clients.values()):
            try:
                await client.aio.aclose()
            except Exception:
                logger.debug("Async Gemini client close failed", exc_info=True)
            try:
                client.close()
            except Exception:
                logger.debug("Gemini client close failed", exc_info=True)
            count += 1
        cls._clients.clear()
        logger.info("Closed %d Gemini client(s)", count)
        return count
