"""Infrastructure tools — 1 tool on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..config import get_config, update_config
from ..console import console_store
from ..errors import make_tool_error
from ..tracing import trace
from ..types import ImageSize

infra_server = FastMCP("infra")
_SENSITIVE_CONFIG_FIELDS = {"gemini_api_key"}


def _redacted_config() -> dict:
    """Return runtime config with secret-bearing fields removed."""
    return get_config().model_dump(exclude=_SENSITIVE_CONFIG_FIELDS)


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="infra_configure", span_type="TOOL")
async def infra_configure(
    description_model: Annotated[str | None, Field(description="Gemini model ID for scene descriptions")] = None,
    image_model: Annotated[str | None, Field(description="Gemini model ID for pixel-art rendering")] = None,
    image_size: ImageSize | None = None,
    daily_max: Annotated[int | None, Field(ge=1, description="Generations allowed per day")] = None,
    reveal_delay_ms: Annotated[int | None, Field(ge=0, description="Subtitle delay before typing starts")] = None,
    reveal_rate_ms: Annotated[int | None, Field(ge=1, description="Milliseconds per revealed character")] = None,
) -> dict:
    """Reconfigure the server at runtime — models, image size, quota, or subtitle timing.

    Model changes apply to the next generation. Quota and timing changes
    apply to consoles created afterwards.

    Returns:
        Dict with current_config (secrets removed).
    """
    try:
        overrides = {
            "description_model": description_model,
            "image_model": image_model,
            "image_size": image_size,
            "daily_max": daily_max,
            "reveal_delay_ms": reveal_delay_ms,
            "reveal_rate_ms": reveal_rate_ms,
        }
        if any(v is not None for v in overrides.values()):
            update_config(**overrides)
            console_store.reconfigure()
        return {"current_config": _redacted_config()}
    except Exception as exc:
        return make_tool_error(exc)
