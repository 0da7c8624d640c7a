"""Subtitle compositing for extracted video frames.

Features:
- Multi-line subtitle layout with left/center/right and top/center/bottom anchors
- Per-subtitle hex colors (white fallback)
- Soft black outline built from a blurred copy of the text layer
- In-place rewrite of the frame file in its original format
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from burnsub.exceptions import FontLoadError, SubtitleRenderError
from burnsub.schemas.project import Subtitle

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)

# Blur radius of the outline, relative to the font size
OUTLINE_RADIUS_FACTOR = 0.025


@dataclass(frozen=True)
class Margins:
    """Distance of subtitles from the frame edges."""

    x: int
    y: int

    @classmethod
    def for_frame(cls, width: int, height: int) -> "Margins":
        return cls(x=width // 20, y=height // 10)


@dataclass(frozen=True)
class PlacedLine:
    """One line of subtitle text with its left baseline position."""

    text: str
    x: float
    y: float


def parse_hex_color(value: str) -> Optional[tuple[int, int, int]]:
    """Parse ``#rgb`` or ``#rrggbb`` into an RGB tuple, None if invalid."""
    hex_c = (value or "").strip().lstrip("#")
    if len(hex_c) == 3:
        hex_c = "".join(c * 2 for c in hex_c)
    if len(hex_c) != 6:
        return None
    try:
        return int(hex_c[0:2], 16), int(hex_c[2:4], 16), int(hex_c[4:6], 16)
    except ValueError:
        return None


def resolve_color(value: str) -> tuple[int, int, int]:
    return parse_hex_color(value) or WHITE


def load_font(font_path: Optional[str], font_size: float) -> ImageFont.FreeTypeFont:
    """
    Load the subtitle font at ``font_size`` pixels.

    Args:
        font_path: TrueType font file, None for Pillow's bundled font
        font_size: Font size in pixels

    Raises:
        FontLoadError: If the font can not be loaded
    """
    try:
        if font_path is None:
            font = ImageFont.load_default(size=font_size)
        else:
            font = ImageFont.truetype(font_path, font_size)
    except (OSError, ValueError) as e:
        raise FontLoadError(f"Could not load subtitle font {font_path or '<default>'}: {e}") from e

    if not isinstance(font, ImageFont.FreeTypeFont):
        raise FontLoadError("Scalable fonts are not available (Pillow built without FreeType)")

    logger.info(f"[SUBTITLE] Loaded font {font_path or '<default>'} at {font_size:.2f}px")
    return font


def first_baseline(anchor_y: str, frame_height: int, margin_y: int, font_size: float, line_count: int) -> float:
    """Baseline of the first line for a vertical anchor."""
    if anchor_y == "top":
        return margin_y + font_size
    if anchor_y == "bottom":
        # the last line sits on the bottom margin
        return frame_height - margin_y - font_size * (line_count - 1)
    return (frame_height - font_size * line_count) / 2 + font_size


def line_start(anchor_x: str, frame_width: int, margin_x: int, line_width: float) -> float:
    """Left edge of a line for a horizontal anchor."""
    if anchor_x == "left":
        return margin_x
    if anchor_x == "right":
        return frame_width - margin_x - line_width
    return (frame_width - line_width) / 2


def layout_subtitle(
    subtitle: Subtitle,
    font: ImageFont.FreeTypeFont,
    font_size: float,
    width: int,
    height: int,
) -> list[PlacedLine]:
    """Place every non-blank line of a subtitle on a ``width`` x ``height`` frame."""
    margins = Margins.for_frame(width, height)
    lines = subtitle.text.split("\n")

    y = first_baseline(subtitle.position.y, height, margins.y, font_size, len(lines))

    placed = []
    for idx, line in enumerate(lines):
        # blank lines take up their slot but are not drawn
        if not line.strip():
            continue

        x = line_start(subtitle.position.x, width, margins.x, font.getlength(line))
        placed.append(PlacedLine(text=line, x=x, y=y + idx * font_size))

    return placed


def draw_text_layer(
    size: tuple[int, int],
    font: ImageFont.FreeTypeFont,
    font_size: float,
    subtitles: Iterable[Subtitle],
) -> Image.Image:
    """Draw subtitles onto a transparent RGBA layer of ``size``."""
    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)

    width, height = size
    for subtitle in subtitles:
        fill = resolve_color(subtitle.color) + (255,)
        for line in layout_subtitle(subtitle, font, font_size, width, height):
            draw.text((line.x, line.y), line.text, font=font, fill=fill, anchor="ls")

    return layer


def outline_layer(text_layer: Image.Image, font_size: float) -> Image.Image:
    """Opaque black halo wherever the blurred text layer has any alpha."""
    blurred = text_layer.filter(ImageFilter.GaussianBlur(OUTLINE_RADIUS_FACTOR * font_size))
    mask = blurred.getchannel("A").point(lambda a: 255 if a > 0 else 0)

    outline = Image.new("RGBA", text_layer.size, (0, 0, 0, 255))
    outline.putalpha(mask)
    return outline


def compose_frame(background: Image.Image, text_layer: Image.Image, font_size: float) -> Image.Image:
    """Background, then outline, then text."""
    target = Image.new("RGBA", background.size, (0, 0, 0, 0))
    target.alpha_composite(background.convert("RGBA"))
    target.alpha_composite(outline_layer(text_layer, font_size))
    target.alpha_composite(text_layer)
    return target


def render_subtitles(
    file_path: str,
    font: ImageFont.FreeTypeFont,
    font_size: float,
    subtitles: Sequence[Subtitle],
    quality: int = 98,
) -> None:
    """
    Burn ``subtitles`` into the frame at ``file_path``.

    The file is truncated and rewritten in place using its original format.

    Raises:
        SubtitleRenderError: If the frame can not be read or written
    """
    try:
        with open(file_path, "r+b") as fp:
            with Image.open(fp) as image:
                image.load()
                image_format = image.format or "JPEG"
                text_layer = draw_text_layer(image.size, font, font_size, subtitles)
                target = compose_frame(image, text_layer, font_size)

            if image_format == "JPEG":
                target = target.convert("RGB")

            fp.seek(0)
            fp.truncate()

            save_kwargs = {"quality": quality} if image_format == "JPEG" else {}
            target.save(fp, format=image_format, **save_kwargs)
    except (OSError, ValueError) as e:
        raise SubtitleRenderError(f"Could not render subtitles into {file_path}: {e}") from e
