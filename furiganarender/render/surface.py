"""
Drawing surface abstraction and its Pillow implementation.

The layout engine only needs to measure strings under a font and, once the
geometry is known, fill text at baseline coordinates. Everything Pillow-specific
lives here so the layout code stays testable against a fake surface.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from typing import Protocol

from PIL import Image, ImageDraw, ImageFont
from PIL.ImageFont import FreeTypeFont

from furiganarender.errors import InputValidationError, LayoutPreconditionError

logger = logging.getLogger(__name__)

FONT_SPEC_PATTERN = re.compile(r"^\s*(?P<size>\d+(?:\.\d+)?)px\s+(?P<family>.+?)\s*$")


@dataclass(frozen=True, slots=True)
class TextMetrics:
    """Width and baseline-relative extents of a measured string."""

    width: float = 0.0
    ascent: float = 0.0
    descent: float = 0.0

    @property
    def height(self) -> float:
        return self.ascent + self.descent


@dataclass(frozen=True, slots=True)
class FontSpec:
    size: int
    family: str


class DrawingSurface(Protocol):
    """Protocol capturing the canvas operations the renderer relies on."""

    def set_font(self, spec: str) -> None:
        ...

    def measure(self, text: str) -> TextMetrics:
        ...

    def resize(self, width: int, height: int) -> None:
        ...

    def fill_rect(
        self, x: float, y: float, width: float, height: float, color: str
    ) -> None:
        ...

    def fill_text(self, text: str, x: float, y: float, color: str) -> None:
        ...

    def encode(self, image_format: str) -> bytes:
        ...


def parse_font_spec(spec: str) -> FontSpec:
    """
    Parse a ``"<size>px <family-or-path>"`` font specification.

    Args:
        spec: Font specification such as ``"40px IPAMincho"`` or
            ``"20px /usr/share/fonts/NotoSansCJK-Regular.ttc"``.

    Returns:
        Parsed size (rounded to whole pixels) and family.
    """
    match = FONT_SPEC_PATTERN.match(spec)
    if match is None:
        raise InputValidationError(
            f"Invalid font specification '{spec}'. Expected '<size>px <font name or path>'."
        )
    size = round(float(match.group("size")))
    if size < 1:
        raise InputValidationError(f"Font size must be at least 1px (got '{spec}').")
    return FontSpec(size=size, family=match.group("family"))


class PillowSurface:
    """Pillow-backed drawing surface with a per-instance font cache."""

    def __init__(self, *, mode: str = "RGB") -> None:
        self._mode = mode
        self._image = Image.new(mode, (1, 1))
        self._draw = ImageDraw.Draw(self._image)
        self._fonts: dict[str, ImageFont.ImageFont | FreeTypeFont] = {}
        self._font: ImageFont.ImageFont | FreeTypeFont | None = None

    @property
    def image(self) -> Image.Image:
        return self._image

    def set_font(self, spec: str) -> None:
        if spec not in self._fonts:
            self._fonts[spec] = _load_font(parse_font_spec(spec))
        self._font = self._fonts[spec]

    def measure(self, text: str) -> TextMetrics:
        font = self._active_font()
        if not text:
            return TextMetrics()
        _, top, _, bottom = font.getbbox(text, anchor="ls")
        return TextMetrics(width=font.getlength(text), ascent=-top, descent=bottom)

    def resize(self, width: int, height: int) -> None:
        self._image = Image.new(self._mode, (max(width, 1), max(height, 1)))
        self._draw = ImageDraw.Draw(self._image)

    def fill_rect(
        self, x: float, y: float, width: float, height: float, color: str
    ) -> None:
        self._draw.rectangle((x, y, x + width - 1, y + height - 1), fill=color)

    def fill_text(self, text: str, x: float, y: float, color: str) -> None:
        self._draw.text((x, y), text, fill=color, font=self._active_font(), anchor="ls")

    def encode(self, image_format: str) -> bytes:
        buffer = io.BytesIO()
        self._image.save(buffer, format=image_format)
        return buffer.getvalue()

    def _active_font(self) -> ImageFont.ImageFont | FreeTypeFont:
        if self._font is None:
            raise LayoutPreconditionError("No font selected; call set_font() before measuring or drawing.")
        return self._font


def _load_font(spec: FontSpec) -> ImageFont.ImageFont | FreeTypeFont:
    """Load a TrueType font by name or path, falling back to Pillow's default."""
    try:
        return ImageFont.truetype(spec.family, spec.size)
    except OSError:
        logger.warning(
            f"Font '{spec.family}' could not be loaded; using Pillow's default font at {spec.size}px"
        )
        return ImageFont.load_default(size=spec.size)
