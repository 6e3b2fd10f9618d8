"""Scene tools — the two pipeline stages as standalone tools."""

from __future__ import annotations

import logging

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..console import console_store
from ..errors import make_tool_error
from ..tracing import trace
from ..types import AspectRatio, DialogueText, SceneDescriptionText, ThemeChoice

logger = logging.getLogger(__name__)

scene_server = FastMCP("scene")


@scene_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
@trace(name="scene_describe", span_type="TOOL")
async def scene_describe(text: DialogueText, theme: ThemeChoice = "JAPANESE_SCHOOL") -> dict:
    """Turn a dialogue line into a short isometric 8-bit scene description.

    Does not use a daily credit.

    Args:
        text: The dialogue line.
        theme: Game style; "RANDOM" picks one.

    Returns:
        Dict with description and the resolved theme.
    """
    try:
        pipeline = console_store.pipeline
        resolved = pipeline.styles.resolve(theme).id.value
        description = await pipeline.describe_scene(text, resolved)
        return {"description": description, "theme": resolved}
    except Exception as exc:
        return make_tool_error(exc)


@scene_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
@trace(name="scene_render", span_type="TOOL")
async def scene_render(
    scene_description: SceneDescriptionText,
    theme: ThemeChoice = "JAPANESE_SCHOOL",
    aspect_ratio: AspectRatio = "16:9",
) -> dict:
    """Render a scene description as an NES-style screenshot.

    Does not use a daily credit.

    Returns:
        Dict with image_url (a base64 data URI) and the resolved theme.
    """
    try:
        pipeline = console_store.pipeline
        resolved = pipeline.styles.resolve(theme).id.value
        image_url = await pipeline.render_image(scene_description, resolved, aspect_ratio)
        return {"image_url": image_url, "theme": resolved}
    except Exception as exc:
        return make_tool_error(exc)
