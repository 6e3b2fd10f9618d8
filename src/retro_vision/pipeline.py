"""Two-stage scene generation: describe the dialogue, then render the description.

The stages are strictly sequential — the image prompt embeds the text
model's description — and each makes a single collaborator call. Errors
from either collaborator are wrapped in :class:`DescriptionGenerationFailed`
or :class:`ImageGenerationFailed` and propagate to the caller unretried.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from .errors import DescriptionGenerationFailed, ImageGenerationFailed
from .models.scene import GeneratedScene, GenerationRequest
from .prompts.scene import FALLBACK_DESCRIPTION, build_description_prompt, build_image_prompt
from .styles import StyleCatalog, catalog as default_catalog
from .tracing import tag_scene, trace
from .types import MOBILE_BREAKPOINT_PX

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Stage-1 collaborator: prompt in, text (or nothing) out."""

    async def generate_text(self, prompt: str) -> str | None: ...


class ImageGenerator(Protocol):
    """Stage-2 collaborator: prompt + image config in, content parts out."""

    async def generate_image(
        self, prompt: str, *, aspect_ratio: str, image_size: str | None = None,
    ) -> Sequence[Any]: ...


def aspect_ratio_for_width(viewport_width_px: int) -> str:
    """Pick the frame for a viewport: 4:3 below the mobile breakpoint, else 16:9."""
    return "4:3" if viewport_width_px < MOBILE_BREAKPOINT_PX else "16:9"


def first_inline_image(parts: Sequence[Any]) -> str | None:
    """Return the first part carrying inline image bytes as a ``data:`` URI.

    Accepts ``google.genai`` parts (``inline_data.data`` as bytes) and plain
    base64 strings, which is what the REST surface returns.
    """
    for part in parts or []:
        blob = getattr(part, "inline_data", None)
        if blob is None or not blob.data:
            continue
        data = blob.data
        encoded = base64.b64encode(data).decode("ascii") if isinstance(data, bytes) else str(data)
        mime = blob.mime_type or "image/png"
        return f"data:{mime};base64,{encoded}"
    return None


class SceneGenerationPipeline:
    """Describe-then-render orchestration over injected collaborators."""

    def __init__(
        self,
        text: TextGenerator | None = None,
        image: ImageGenerator | None = None,
        *,
        styles: StyleCatalog | None = None,
        image_size: str | None = None,
    ) -> None:
        if text is None or image is None:
            from .client import GeminiClient

            text = text or GeminiClient
            image = image or GeminiClient
        self._text = text
        self._image = image
        self._styles = styles or default_catalog
        self._image_size = image_size

    @property
    def styles(self) -> StyleCatalog:
        return self._styles

    @trace(name="describe_scene", span_type="CHAIN")
    async def describe_scene(self, dialogue_text: str, theme_id: str) -> str:
        """Expand a dialogue line into a short visual scene description.

        Args:
            dialogue_text: The user's line, embedded verbatim in the prompt.
            theme_id: A concrete (already resolved) theme id.

        Returns:
            The description, or :data:`FALLBACK_DESCRIPTION` when the model
            answered with nothing.

        Raises:
            DescriptionGenerationFailed: The text collaborator raised.
        """
        theme = self._styles.get(theme_id)
        prompt = build_description_prompt(dialogue_text, theme.id.value, theme.description_prompt)
        try:
            text = await self._text.generate_text(prompt)
        except Exception as exc:
            logger.error("Scene description failed: %s", exc)
            raise DescriptionGenerationFailed(str(exc) or None) from exc

        description = (text or "").strip()
        if not description:
            logger.warning("Empty scene description — using fallback")
            return FALLBACK_DESCRIPTION
        return description

    @trace(name="render_image", span_type="CHAIN")
    async def render_image(self, scene_description: str, theme_id: str, aspect_ratio: str) -> str:
        """Render a scene description as pixel art.

        Returns:
            ``data:<mime>;base64,...`` URI of the first inline image.

        Raises:
            ImageGenerationFailed: The image collaborator raised, or its
                response held no inline image.
        """
        theme = self._styles.get(theme_id)
        prompt = build_image_prompt(scene_description, theme.image_prompt)
        try:
            parts = await self._image.generate_image(
                prompt, aspect_ratio=aspect_ratio, image_size=self._image_size,
            )
        except Exception as exc:
            logger.error("Image generation failed: %s", exc)
            raise ImageGenerationFailed(str(exc) or None) from exc

        image_url = first_inline_image(parts)
        if image_url is None:
            logger.error("Image response carried no inline image (%d part(s))", len(parts or []))
            raise ImageGenerationFailed("No image data found in response.")
        return image_url

    @trace(name="generate_scene", span_type="CHAIN")
    async def run(
        self,
        dialogue_text: str,
        theme: str,
        aspect_ratio: str = "16:9",
        *,
        on_described: Callable[[str], None] | None = None,
    ) -> GeneratedScene:
        """Run both stages for one dialogue line.

        RANDOM is resolved once here and the same theme feeds both stages.
        *on_described* is called with the description between the stages.

        Raises:
            ValueError: Blank dialogue, unknown theme, or unsupported aspect ratio.
            DescriptionGenerationFailed: Stage 1 failed.
            ImageGenerationFailed: Stage 2 failed.
        """
        request = GenerationRequest(dialogue_text=dialogue_text, theme=theme, aspect_ratio=aspect_ratio)
        resolved = self._styles.resolve(request.theme)
        theme_id = resolved.id.value
        logger.info("Generating scene (theme=%s, ratio=%s)", theme_id, request.aspect_ratio)
        tag_scene(theme_id, request.aspect_ratio, request.theme)

        description = await self.describe_scene(request.dialogue_text, theme_id)
        if on_described is not None:
            on_described(description)
        image_url = await self.render_image(description, theme_id, request.aspect_ratio)
        return GeneratedScene(
            image_url=image_url,
            original_text=request.dialogue_text,
            scene_description=description,
            theme=theme_id,
            aspect_ratio=request.aspect_ratio,
        )
