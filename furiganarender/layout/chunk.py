"""
Chunk phases for the layout engine.

A chunk is one base/annotation pair laid out as an atomic unit. It moves through
four frozen phases, each produced from the previous one:

    Chunk -> BaseMeasuredChunk -> MeasuredChunk -> CenteredChunk

Each step only accepts the phase before it, so centering can never run on a
chunk that has not been measured under both fonts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from furiganarender.errors import LayoutPreconditionError
from furiganarender.render.surface import DrawingSurface, TextMetrics

# U+200A HAIR SPACE pads base text without adding visible ink.
FILLER = "\u200a"


@dataclass(frozen=True, slots=True)
class Chunk:
    """Unmeasured base/annotation pair as produced by pre-processing."""

    base: str
    annotation: str = ""
    forced_break: bool = False


@dataclass(frozen=True, slots=True)
class BaseMeasuredChunk:
    chunk: Chunk
    base: TextMetrics


@dataclass(frozen=True, slots=True)
class MeasuredChunk:
    chunk: Chunk
    base: TextMetrics
    annotation: TextMetrics


@dataclass(frozen=True, slots=True)
class CenteredChunk:
    """Fully measured, offset-corrected chunk ready for line assembly."""

    base: str
    annotation: str
    forced_break: bool
    base_width: float
    base_ascent: float
    base_descent: float
    annotation_width: float
    annotation_ascent: float
    annotation_descent: float
    annotation_x_offset: float
    base_x_offset: float = 0.0
    filler_count: int = 0

    @property
    def width(self) -> float:
        """Horizontal space the chunk occupies within its line."""
        return max(self.base_width, self.annotation_width)

    @property
    def base_height(self) -> float:
        return self.base_ascent + self.base_descent

    @property
    def annotation_height(self) -> float:
        return self.annotation_ascent + self.annotation_descent


def center_offset(a: float, b: float) -> float:
    """Offset that centers something of width ``b`` within width ``a``."""
    return max((a - b) / 2, 0.0)


def measure_base(chunk: Chunk, surface: DrawingSurface) -> BaseMeasuredChunk:
    """Measure base text; the base font must already be active on ``surface``."""
    if not isinstance(chunk, Chunk):
        raise LayoutPreconditionError(
            f"Base measurement expects an unmeasured Chunk, got {type(chunk).__name__}."
        )
    metrics = surface.measure(chunk.base) if chunk.base else TextMetrics()
    return BaseMeasuredChunk(chunk=chunk, base=metrics)


def measure_annotation(
    measured: BaseMeasuredChunk, surface: DrawingSurface
) -> MeasuredChunk:
    """Measure annotation text; the annotation font must already be active."""
    if not isinstance(measured, BaseMeasuredChunk):
        raise LayoutPreconditionError(
            "Annotation measurement requires the base measurement pass to run first "
            f"(got {type(measured).__name__})."
        )
    annotation = measured.chunk.annotation
    metrics = surface.measure(annotation) if annotation else TextMetrics()
    return MeasuredChunk(chunk=measured.chunk, base=measured.base, annotation=metrics)


def center(measured: MeasuredChunk, filler_width: float) -> CenteredChunk:
    """
    Compute horizontal centering for a chunk measured under both fonts.

    The annotation is centered with a draw offset. A base narrower than its
    annotation is instead padded on both sides with hair spaces so that a whole
    line of base text can be drawn as one string. With a zero-width filler the
    padding is impossible and the offset is kept as ``base_x_offset``.

    Args:
        measured: Chunk carrying both base and annotation metrics.
        filler_width: Width of one ``FILLER`` glyph under the base font.

    Returns:
        The offset-corrected chunk.
    """
    if not isinstance(measured, MeasuredChunk):
        raise LayoutPreconditionError(
            "Offsets can only be computed after both measurement passes "
            f"(got {type(measured).__name__})."
        )

    chunk = measured.chunk
    base_width = measured.base.width
    annotation_width = measured.annotation.width
    base = chunk.base
    base_x_offset = 0.0
    filler_count = 0

    required = center_offset(annotation_width, base_width)
    if required > 0:
        if filler_width > 0:
            filler_count = math.ceil(required / filler_width)
            padding = FILLER * filler_count
            base = f"{padding}{base}{padding}"
            base_width += filler_count * 2 * filler_width
        else:
            base_x_offset = required

    return CenteredChunk(
        base=base,
        annotation=chunk.annotation,
        forced_break=chunk.forced_break,
        base_width=base_width,
        base_ascent=measured.base.ascent,
        base_descent=measured.base.descent,
        annotation_width=annotation_width,
        annotation_ascent=measured.annotation.ascent,
        annotation_descent=measured.annotation.descent,
        annotation_x_offset=center_offset(measured.base.width, annotation_width),
        base_x_offset=base_x_offset,
        filler_count=filler_count,
    )
