"""Card image renderer using PIL."""

import base64
import io
import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from cardbooth.models.card import STAT_MAX, GeneratedCardRecord

logger = logging.getLogger(__name__)

# Layout is designed on a 1200x1800 canvas and scaled to the configured size
BASE_WIDTH = 1200
BASE_HEIGHT = 1800

BACKGROUND_TOP = (11, 16, 32)
BACKGROUND_BOTTOM = (28, 30, 53)
PANEL_FILL = (18, 26, 48)
ACCENT_START = (70, 224, 255)
ACCENT_END = (142, 124, 255)
BAR_TRACK = (26, 42, 68)
BAR_FILL = (111, 210, 255)
TITLE_COLOR = (245, 247, 255)
SUBTITLE_COLOR = (157, 181, 255)
BODY_COLOR = (215, 231, 255)
HEADING_COLOR = (111, 210, 255)

BAR_START_X = 360
BAR_START_Y = 640
BAR_WIDTH = 680
BAR_HEIGHT = 26
BAR_GAP = 70

DESCRIPTION_CHARS_PER_LINE = 28
DESCRIPTION_MAX_LINES = 3

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont


class RenderError(Exception):
    """Raised when a card cannot be rendered."""


def wrap_text(text: str, max_chars_per_line: int, max_lines: int) -> list[str]:
    """Greedy word wrap.

    Words longer than a line are kept whole on their own line. Text past
    max_lines is dropped.
    """
    clean = (text or "").strip()
    if not clean:
        return []

    lines: list[str] = []
    current = ""
    for word in clean.split():
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_chars_per_line:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word
        if len(lines) >= max_lines:
            break

    if len(lines) < max_lines and current:
        lines.append(current)
    return lines[:max_lines]


class CardRenderer:
    """Draws a GeneratedCardRecord onto a PNG card."""

    def __init__(
        self,
        width: int = BASE_WIDTH,
        height: int = BASE_HEIGHT,
        font_path: Path | None = None,
        bold_font_path: Path | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.font_path = font_path
        self.bold_font_path = bold_font_path or font_path
        self._scale = width / BASE_WIDTH
        self._font_cache: dict[tuple[bool, int], FontType] = {}

    def render_png(self, card: GeneratedCardRecord) -> bytes:
        """Render the card as PNG bytes.

        Raises:
            RenderError: If drawing fails.
        """
        try:
            image = self._draw(card)
            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            return buffer.getvalue()
        except Exception as e:
            raise RenderError(f"Failed to render card: {e}") from e

    def render_base64(self, card: GeneratedCardRecord) -> str:
        """Render the card as a base64 encoded PNG."""
        return base64.b64encode(self.render_png(card)).decode("ascii")

    def _x(self, value: float) -> int:
        return int(value * self._scale)

    def _y(self, value: float) -> int:
        return int(value * self.height / BASE_HEIGHT)

    def _font(self, size: int, bold: bool = False) -> FontType:
        scaled = max(8, int(size * self._scale))
        key = (bold, scaled)
        if key in self._font_cache:
            return self._font_cache[key]

        path = self.bold_font_path if bold else self.font_path
        font: FontType
        if path is not None:
            try:
                font = ImageFont.truetype(str(path), scaled)
            except OSError as e:
                logger.warning(f"Could not load font {path}: {e}, using default font")
                font = ImageFont.load_default(size=scaled)
        else:
            font = ImageFont.load_default(size=scaled)
        self._font_cache[key] = font
        return font

    def _draw(self, card: GeneratedCardRecord) -> Image.Image:
        image = Image.new("RGB", (self.width, self.height), BACKGROUND_TOP)
        draw = ImageDraw.Draw(image)

        # Vertical background gradient
        for y in range(self.height):
            ratio = y / max(1, self.height - 1)
            draw.line([(0, y), (self.width, y)], fill=_blend(BACKGROUND_TOP, BACKGROUND_BOTTOM, ratio))

        # Panel with accent frame
        margin = self._x(60)
        draw.rounded_rectangle(
            [margin, margin, self.width - margin, self.height - margin],
            radius=self._x(42),
            fill=PANEL_FILL,
            outline=_blend(ACCENT_START, ACCENT_END, 0.5),
            width=max(1, self._x(4)),
        )

        left = self._x(100)
        draw.text((left, self._y(180)), card.name, font=self._font(64, bold=True), fill=TITLE_COLOR, anchor="ls")
        draw.text((left, self._y(240)), card.card_class, font=self._font(30), fill=SUBTITLE_COLOR, anchor="ls")

        draw.text((left, self._y(560)), "STATS", font=self._font(26), fill=HEADING_COLOR, anchor="ls")
        self._draw_stats(draw, card)

        draw.text((left, self._y(1040)), "SKILL", font=self._font(24), fill=HEADING_COLOR, anchor="ls")
        draw.text((left, self._y(1090)), card.skill, font=self._font(40, bold=True), fill=TITLE_COLOR, anchor="ls")

        draw.text((left, self._y(1220)), "DESCRIPTION", font=self._font(24), fill=HEADING_COLOR, anchor="ls")
        description_font = self._font(30)
        lines = wrap_text(card.description, DESCRIPTION_CHARS_PER_LINE, DESCRIPTION_MAX_LINES)
        for index, line in enumerate(lines):
            draw.text((left, self._y(1280 + index * 44)), line, font=description_font, fill=BODY_COLOR, anchor="lt")

        return image

    def _draw_stats(self, draw: ImageDraw.ImageDraw, card: GeneratedCardRecord) -> None:
        label_font = self._font(22)
        value_font = self._font(20)
        bar_x = self._x(BAR_START_X)
        bar_width = self._x(BAR_WIDTH)
        radius = self._x(10)

        for index, (label, value) in enumerate(card.stats.model_dump().items()):
            top = self._y(BAR_START_Y + index * BAR_GAP)
            bottom = top + self._y(BAR_HEIGHT)
            baseline = top + self._y(20)
            fill_width = round(bar_width * value / STAT_MAX)

            draw.text((self._x(100), baseline), label.upper(), font=label_font, fill=BODY_COLOR, anchor="ls")
            draw.rounded_rectangle([bar_x, top, bar_x + bar_width, bottom], radius=radius, fill=BAR_TRACK)
            if fill_width > 0:
                draw.rounded_rectangle([bar_x, top, bar_x + fill_width, bottom], radius=radius, fill=BAR_FILL)
            draw.text(
                (bar_x + bar_width + self._x(20), baseline),
                str(value),
                font=value_font,
                fill=BODY_COLOR,
                anchor="ls",
            )


def _blend(start: tuple[int, int, int], end: tuple[int, int, int], ratio: float) -> tuple[int, int, int]:
    return (
        int(start[0] + (end[0] - start[0]) * ratio),
        int(start[1] + (end[1] - start[1]) * ratio),
        int(start[2] + (end[2] - start[2]) * ratio),
    )
