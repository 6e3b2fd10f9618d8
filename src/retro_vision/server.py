"""Main FastMCP server — mounts all sub-servers and the HTTP routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .client import GeminiClient
from .console import console_store
from .http import register_routes
from .tools.console import console_server
from .tools.infra import infra_server
from .tools.scene import scene_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — stops subtitle timers and shared Gemini clients."""
    tracing.setup()
    yield {}
    consoles = console_store.close_all()
    closed = await GeminiClient.close_all()
    tracing.shutdown()
    logger.info("Lifespan shutdown: closed %d console(s), %d client(s)", consoles, closed)


app = FastMCP(
    "retro-vision",
    instructions=(
        "Retro game screenshot generator — turns a line of dialogue into an "
        "8-bit isometric scene with a typewriter subtitle. Limited daily credits."
    ),
    lifespan=_lifespan,
)

app.mount(console_server)
app.mount(scene_server)
app.mount(infra_server)
register_routes(app, lambda: console_store.pipeline)


def main() -> None:
    """Entry-point for ``retro-vision-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
