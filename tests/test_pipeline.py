"""Tests for the describe-then-render pipeline."""

from __future__ import annotations

import base64
import random
from unittest.mock import AsyncMock

import pytest
from google.genai import types

from retro_vision.errors import DescriptionGenerationFailed, ImageGenerationFailed
from retro_vision.pipeline import SceneGenerationPipeline, aspect_ratio_for_width, first_inline_image
from retro_vision.prompts.scene import FALLBACK_DESCRIPTION
from retro_vision.styles import RANDOM, StyleCatalog, ThemeId

from conftest import DESCRIPTION


class TestHelpers:
    @pytest.mark.parametrize(("width", "ratio"), [(375, "4:3"), (767, "4:3"), (768, "16:9"), (1920, "16:9")])
    def test_aspect_ratio_for_width(self, width, ratio):
        assert aspect_ratio_for_width(width) == ratio

    def test_first_inline_image_skips_text_parts(self, png_bytes, image_part):
        url = first_inline_image([types.Part(text="caption"), image_part])
        assert url == "data:image/png;base64," + base64.b64encode(png_bytes).decode()

    def test_first_inline_image_none_without_image(self):
        assert first_inline_image([types.Part(text="only text")]) is None
        assert first_inline_image([]) is None


class TestRun:
    async def test_success(self, pipeline, text_gen, image_gen, png_bytes):
        scene = await pipeline.run("  I will wait for you.  ", "JAPANESE_SCHOOL", "4:3")

        assert scene.original_text == "  I will wait for you.  "
        assert scene.scene_description == DESCRIPTION
        assert scene.theme == "JAPANESE_SCHOOL"
        assert scene.aspect_ratio == "4:3"
        assert scene.image_url.endswith(base64.b64encode(png_bytes).decode())

        desc_prompt = text_gen.generate_text.await_args.args[0]
        assert '"  I will wait for you.  "' in desc_prompt
        assert "JAPANESE_SCHOOL" in desc_prompt
        image_prompt = image_gen.generate_image.await_args.args[0]
        assert DESCRIPTION in image_prompt
        assert "NO TEXT" in image_prompt
        assert image_gen.generate_image.await_args.kwargs["aspect_ratio"] == "4:3"

    async def test_random_resolved_once_for_both_stages(self, text_gen, image_gen):
        styles = StyleCatalog(rng=random.Random(3))
        pipeline = SceneGenerationPipeline(text_gen, image_gen, styles=styles)

        scene = await pipeline.run("Run!", RANDOM)

        assert scene.theme in {t.value for t in ThemeId}
        theme = styles.get(scene.theme)
        assert theme.description_prompt in text_gen.generate_text.await_args.args[0]
        assert theme.image_prompt in image_gen.generate_image.await_args.args[0]

    async def test_on_described_called_between_stages(self, pipeline, image_gen):
        seen = []

        def described(text):
            seen.append((text, image_gen.generate_image.await_count))

        await pipeline.run("Hello", "MEDIEVAL_FANTASY", on_described=described)
        assert seen == [(DESCRIPTION, 0)]

    async def test_empty_description_uses_fallback(self, pipeline, text_gen, image_gen):
        text_gen.generate_text = AsyncMock(return_value="   ")
        scene = await pipeline.run("Hello", "MEDIEVAL_FANTASY")
        assert scene.scene_description == FALLBACK_DESCRIPTION
        assert FALLBACK_DESCRIPTION in image_gen.generate_image.await_args.args[0]

    async def test_description_failure_skips_image(self, pipeline, text_gen, image_gen):
        text_gen.generate_text = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(DescriptionGenerationFailed, match="boom"):
            await pipeline.run("Hello", "JAPANESE_SCHOOL")
        image_gen.generate_image.assert_not_awaited()

    async def test_description_failure_without_message(self, pipeline, text_gen):
        text_gen.generate_text = AsyncMock(side_effect=RuntimeError())
        with pytest.raises(DescriptionGenerationFailed, match="Failed to interpret the text."):
            await pipeline.run("Hello", "JAPANESE_SCHOOL")

    async def test_image_without_inline_data(self, pipeline, image_gen):
        image_gen.generate_image = AsyncMock(return_value=[types.Part(text="sorry")])
        with pytest.raises(ImageGenerationFailed, match="No image data found in response."):
            await pipeline.run("Hello", "JAPANESE_SCHOOL")

    async def test_image_collaborator_error(self, pipeline, image_gen):
        image_gen.generate_image = AsyncMock(side_effect=RuntimeError("503 unavailable"))
        with pytest.raises(ImageGenerationFailed, match="503"):
            await pipeline.run("Hello", "JAPANESE_SCHOOL")

    async def test_single_call_per_stage(self, pipeline, text_gen, image_gen):
        await pipeline.run("Hello", "CASSETTE_FUTURISM")
        assert text_gen.generate_text.await_count == 1
        assert image_gen.generate_image.await_count == 1

    @pytest.mark.parametrize(
        ("text", "theme", "ratio"),
        [("   ", "JAPANESE_SCHOOL", "16:9"), ("Hi", "SPACE_OPERA", "16:9"), ("Hi", "JAPANESE_SCHOOL", "21:9")],
    )
    async def test_invalid_request(self, pipeline, text_gen, text, theme, ratio):
        with pytest.raises(ValueError):
            await pipeline.run(text, theme, ratio)
        text_gen.generate_text.assert_not_awaited()
