"""Console tools — 6 tools on a FastMCP sub-server.

Each tool drives one console session (machine, subtitle overlay, exporter)
and answers with the session's :class:`ConsoleState` snapshot.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..console import console_store
from ..errors import make_tool_error
from ..machine import DEFAULT_THEME
from ..tracing import trace
from ..types import AspectRatio, Language, SessionId, SubtitleAction, ThemeChoice

logger = logging.getLogger(__name__)

console_server = FastMCP("console")


@console_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    )
)
@trace(name="console_create", span_type="TOOL")
async def console_create(
    language: Language = "en",
    theme: ThemeChoice = DEFAULT_THEME,
) -> dict:
    """Power on a new retro console session.

    Args:
        language: UI language for labels and messages — "en" or "zh".
        theme: Initial game style, or "RANDOM" to pick one per generation.

    Returns:
        Dict with the console state, including session_id.
    """
    try:
        session = console_store.create(language=language, theme=theme)
        logger.info("Created console %s (%s, %s)", session.session_id, language, theme)
        return session.state().model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)


@console_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
@trace(name="console_submit", span_type="TOOL")
async def console_submit(
    session_id: SessionId,
    text: Annotated[str, Field(max_length=500, description="Dialogue line to turn into a scene")],
    theme: ThemeChoice | None = None,
    aspect_ratio: AspectRatio = "16:9",
) -> dict:
    """Generate a pixel-art scene for one line of dialogue.

    Runs the describe-then-render pipeline and waits for it to finish.
    Uses one daily credit on success. Ignored while a generation is
    already running or when the text is blank.

    Args:
        session_id: Console from console_create.
        text: The dialogue line; kept verbatim for the subtitle.
        theme: Switch game style for this generation (ignored with the submit).
        aspect_ratio: "16:9" (wide screens) or "4:3" (narrow screens).

    Returns:
        Dict with the console state. phase is COMPLETE with a result, or
        FAILED with an error message.
    """
    try:
        session = console_store.get(session_id)
        await session.machine.submit(text, aspect_ratio=aspect_ratio, theme=theme)
        return session.state().model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)


@console_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="console_reset", span_type="TOOL")
async def console_reset(session_id: SessionId) -> dict:
    """Reset the console to INSERT COIN, discarding the scene and input.

    Args:
        session_id: Console from console_create.

    Returns:
        Dict with the console state.
    """
    try:
        session = console_store.get(session_id)
        session.machine.reset()
        return session.state().model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)


@console_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="console_status", span_type="TOOL")
async def console_status(
    session_id: SessionId,
    language: Annotated[Language | None, Field(description="Switch UI language before reading the state")] = None,
) -> dict:
    """Read the console state, including how far the subtitle has revealed."""
    try:
        session = console_store.get(session_id)
        if language is not None:
            session.set_language(language)
        return session.state().model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)


@console_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    )
)
@trace(name="console_subtitles", span_type="TOOL")
async def console_subtitles(session_id: SessionId, action: SubtitleAction = "toggle") -> dict:
    """Control the subtitle overlay.

    Args:
        session_id: Console from console_create.
        action: "toggle", "show" or "hide" the overlay, or "cycle" to the
            next layout (horizontal, horizontal without panel, vertical,
            vertical without panel).

    Returns:
        Dict with the subtitle state.
    """
    try:
        session = console_store.get(session_id)
        return session.subtitles(action).model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)


@console_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    )
)
@trace(name="console_export", span_type="TOOL")
async def console_export(
    session_id: SessionId,
    output_dir: Annotated[str | None, Field(description="Directory for the PNG; defaults to RETRO_EXPORT_DIR")] = None,
    filename_stem: Annotated[str | None, Field(
        pattern=r"^[\w.-]+$",
        description="File name without suffix; _scene.png or _raw.png is appended",
    )] = None,
) -> dict:
    """Save the scene on screen as a PNG, with the subtitle as currently revealed.

    Returns:
        Dict with path (or error) and a stale flag set when the console
        moved on to another scene before the file was written.
    """
    try:
        session = console_store.get(session_id)
        result = await session.export(output_dir, filename_stem)
        return result.model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)
