"""Scene capture — composite the current frame and subtitle overlay into a PNG.

The frame is upscaled with nearest-neighbour sampling so pixels stay hard.
Whatever subtitle text is revealed at capture time is drawn on top, using
the same layout the viewer sees. Failures are logged and reported in the
:class:`ExportResult`; they never change the console state.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
import re
from pathlib import Path
from typing import Protocol

from PIL import Image, ImageDraw, ImageFont

from .errors import ExportFailed
from .models.console import ExportResult, SceneSnapshot
from .subtitle import SubtitleLayout

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?:;[\w=-]+)*;base64,(?P<data>.+)$", re.DOTALL)

PANEL_FILL = (0, 0, 0, 200)
PANEL_BORDER = (255, 255, 255, 255)
TEXT_FILL = (255, 255, 255, 255)
OUTLINE_FILL = (0, 0, 0, 255)


def decode_data_uri(image_url: str) -> bytes:
    """Return the raw bytes of a ``data:...;base64,`` URI."""
    match = _DATA_URI.match(image_url.strip())
    if match is None:
        raise ExportFailed("Scene image is not an inline data URI.")
    try:
        return base64.b64decode(match.group("data"), validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ExportFailed(f"Scene image is not valid base64: {exc}") from exc


def _wrap(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont, max_width: int) -> list[str]:
    """Greedy wrap by character so CJK text (no spaces) wraps too."""
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        line = ""
        for ch in paragraph:
            candidate = line + ch
            if line and draw.textlength(candidate, font=font) > max_width:
                lines.append(line.rstrip())
                line = ch.lstrip()
            else:
                line = candidate
        lines.append(line)
    return lines


class SceneRenderer(Protocol):
    def render(self, snapshot: SceneSnapshot) -> Image.Image: ...


class PillowSceneRenderer:
    """Draws the captured frame with Pillow."""

    def __init__(self, scale: int = 2, font_path: str = "") -> None:
        if scale < 1:
            raise ValueError("scale must be >= 1")
        self._scale = scale
        self._font_path = font_path

    def _font(self, size: int) -> ImageFont.ImageFont:
        if self._font_path:
            try:
                return ImageFont.truetype(self._font_path, size)
            except OSError:
                logger.warning("Could not load font %s — using Pillow default", self._font_path)
        return ImageFont.load_default(size=size)

    def render(self, snapshot: SceneSnapshot) -> Image.Image:
        raw = decode_data_uri(snapshot.image_url)
        try:
            with Image.open(io.BytesIO(raw)) as src:
                frame = src.convert("RGBA")
        except (OSError, Image.DecompressionBombError) as exc:
            raise ExportFailed(f"Scene image could not be decoded: {exc}") from exc

        if self._scale > 1:
            frame = frame.resize(
                (frame.width * self._scale, frame.height * self._scale),
                Image.Resampling.NEAREST,
            )
        if snapshot.overlay_text:
            frame = self._draw_overlay(frame, snapshot.overlay_text, SubtitleLayout(snapshot.layout))
        return frame.convert("RGB")

    def _draw_overlay(self, frame: Image.Image, text: str, layout: SubtitleLayout) -> Image.Image:
        overlay = Image.new("RGBA", frame.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        width, height = frame.size
        font_size = max(12, height // 24)
        font = self._font(font_size)
        margin = max(8, width // 40)
        line_height = int(font_size * 1.4)

        if layout.is_vertical:
            # Characters stacked top to bottom, columns filled from the left.
            chars = [ch for ch in text if not ch.isspace()]
            per_column = max(1, (height - 2 * margin) // line_height)
            columns = [chars[i:i + per_column] for i in range(0, len(chars), per_column)]
            box = (
                margin,
                margin,
                margin + len(columns) * line_height + margin,
                margin + min(len(chars), per_column) * line_height + margin,
            )
            if layout.has_panel:
                self._panel(draw, box)
            for col, column in enumerate(columns):
                x = box[0] + margin // 2 + col * line_height
                for row, ch in enumerate(column):
                    self._text(draw, (x, box[1] + margin // 2 + row * line_height), ch, font, layout.has_panel)
        else:
            lines = _wrap(draw, text, font, width - 4 * margin)
            panel_height = len(lines) * line_height + margin
            box = (margin, height - margin - panel_height, width - margin, height - margin)
            if layout.has_panel:
                self._panel(draw, box)
            for i, line in enumerate(lines):
                self._text(draw, (box[0] + margin, box[1] + margin // 2 + i * line_height), line, font, layout.has_panel)

        return Image.alpha_composite(frame, overlay)

    @staticmethod
    def _panel(draw: ImageDraw.ImageDraw, box: tuple[int, int, int, int]) -> None:
        draw.rectangle(box, fill=PANEL_FILL, outline=PANEL_BORDER, width=2)
        inset = (box[0] + 4, box[1] + 4, box[2] - 4, box[3] - 4)
        draw.rectangle(inset, outline=PANEL_BORDER, width=1)

    @staticmethod
    def _text(draw: ImageDraw.ImageDraw, xy: tuple[int, int], text: str, font, has_panel: bool) -> None:
        if has_panel:
            draw.text(xy, text, font=font, fill=TEXT_FILL)
        else:
            draw.text(xy, text, font=font, fill=TEXT_FILL, stroke_width=2, stroke_fill=OUTLINE_FILL)


class SceneExporter:
    """Writes scene captures to disk, one at a time."""

    def __init__(self, renderer: SceneRenderer | None = None) -> None:
        self._renderer = renderer or PillowSceneRenderer()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @staticmethod
    def filename(stem: str, with_overlay: bool) -> str:
        return f"{stem}_{'scene' if with_overlay else 'raw'}.png"

    def _write(self, snapshot: SceneSnapshot, target: Path) -> None:
        image = self._renderer.render(snapshot)
        target.parent.mkdir(parents=True, exist_ok=True)
        image.save(target, format="PNG")

    async def export(self, snapshot: SceneSnapshot, stem: str, out_dir: str | Path) -> ExportResult:
        """Capture *snapshot* to ``<out_dir>/<stem>_scene.png`` (``_raw`` without overlay).

        A second export while one is running is refused with an error result.
        """
        if self._busy:
            return ExportResult(error="An export is already in progress.")
        target = Path(out_dir).expanduser() / self.filename(stem, bool(snapshot.overlay_text))
        self._busy = True
        try:
            await asyncio.to_thread(self._write, snapshot, target)
        except Exception as exc:
            failure = exc if isinstance(exc, ExportFailed) else ExportFailed(f"Failed to save the scene: {exc}")
            logger.error("Export to %s failed: %s", target, failure)
            return ExportResult(error=str(failure))
        finally:
            self._busy = False
        logger.info("Exported scene to %s", target)
        return ExportResult(path=str(target))
