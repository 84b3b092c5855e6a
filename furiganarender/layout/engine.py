"""
Layout engine: measurement passes, greedy line assignment and page geometry.

The engine is purely geometric. It switches fonts on the drawing surface
exactly twice while measuring (base font, then annotation font) and produces a
``PageLayout`` holding every line and every draw instruction. Drawing itself is
left to the renderer.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from furiganarender.render.options import RenderOptions
from furiganarender.render.surface import DrawingSurface
from .chunk import (
    FILLER,
    CenteredChunk,
    Chunk,
    center,
    measure_annotation,
    measure_base,
)
from .line import Line, TextDraw

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageLayout:
    """Fully positioned page ready to be drawn."""

    lines: tuple[Line, ...]
    width: int
    height: int
    annotation_draws: tuple[TextDraw, ...]
    base_draws: tuple[TextDraw, ...]

    @property
    def chunks(self) -> tuple[CenteredChunk, ...]:
        return tuple(chunk for line in self.lines for chunk in line.chunks)


def measure_chunks(
    chunks: Sequence[Chunk],
    surface: DrawingSurface,
    base_font: str,
    annotation_font: str,
) -> list[CenteredChunk]:
    """Run both measurement passes and compute centering for every chunk."""
    surface.set_font(base_font)
    base_measured = [measure_base(chunk, surface) for chunk in chunks]
    filler_width = surface.measure(FILLER).width
    logger.debug(
        f"Measured {len(base_measured)} base strings (filler width {filler_width:.2f}px)"
    )

    surface.set_font(annotation_font)
    measured = [measure_annotation(chunk, surface) for chunk in base_measured]
    logger.debug(f"Measured {len(measured)} annotation strings")

    return [center(chunk, filler_width) for chunk in measured]


def assign_lines(
    chunks: Iterable[CenteredChunk], budget: float, annotation_gap: float = 0.0
) -> list[Line]:
    """
    Greedily pack chunks into lines, first fit, in input order.

    A new line starts when the current one is non-empty and the chunk either
    does not fit or carries a forced break. A chunk wider than the whole budget
    is placed alone on its own, overflowing line.
    """
    current = Line(budget, annotation_gap)
    lines = [current]
    for chunk in chunks:
        if not current.is_empty() and (chunk.forced_break or not current.can_add(chunk)):
            current.close()
            current = Line(budget, annotation_gap)
            lines.append(current)
            logger.debug(
                f"Started line {len(lines)} ({'forced' if chunk.forced_break else 'wrapped'})"
            )
        current.add(chunk)
    current.close()
    return lines


def page_width(lines: Sequence[Line], options: RenderOptions) -> int:
    """
    Page width for ``lines`` including horizontal padding.

    The maximum width is a wrapping target. It only clamps the page when every
    line fits its budget, so an oversized chunk is never cut off.
    """
    content = max((line.width for line in lines), default=0.0)
    needed = math.ceil(content + options.left_padding + options.right_padding)
    if any(line.overflows() for line in lines):
        return max(needed, options.min_width_in_pixels)
    return max(min(needed, options.max_width_in_pixels), options.min_width_in_pixels)


def page_height(lines: Sequence[Line], options: RenderOptions) -> int:
    """Page height for ``lines`` including padding, clamped to the configured range."""
    content = sum(line.height for line in lines)
    content += max(len(lines) - 1, 0) * options.padding_between_lines
    needed = math.ceil(content + options.top_padding + options.bottom_padding)
    return max(min(needed, options.max_height_in_pixels), options.min_height_in_pixels)


def layout_page(
    chunks: Sequence[Chunk],
    surface: DrawingSurface,
    base_font: str,
    annotation_font: str,
    options: RenderOptions,
) -> PageLayout:
    """Measure, wrap and position ``chunks`` into a page."""
    centered = measure_chunks(chunks, surface, base_font, annotation_font)
    lines = assign_lines(
        centered,
        budget=options.line_budget,
        annotation_gap=options.padding_between_annotation_and_base,
    )

    annotation_draws: list[TextDraw] = []
    base_draws: list[TextDraw] = []
    top = float(options.top_padding)
    for line in lines:
        annotation_draws.extend(line.annotation_draws(options.left_padding, top))
        base_draws.extend(line.base_draws(options.left_padding, top))
        top += line.height + options.padding_between_lines

    layout = PageLayout(
        lines=tuple(lines),
        width=page_width(lines, options),
        height=page_height(lines, options),
        annotation_draws=tuple(annotation_draws),
        base_draws=tuple(base_draws),
    )
    logger.debug(
        f"Laid out {len(centered)} chunks on {len(lines)} lines ({layout.width}x{layout.height}px)"
    )
    return layout
