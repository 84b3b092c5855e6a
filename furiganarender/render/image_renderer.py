"""
Furigana-to-image rendering.

Turns plain text or base/annotation pairs into an encoded raster image with
each annotation centered above its base text. Geometry comes from the layout
engine; this module validates input, chooses the pre-processing path and issues
the draw calls in font-switch-minimizing order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Union

from furiganarender.errors import (
    CollaboratorError,
    FuriganaRenderError,
    InputValidationError,
    MissingCollaboratorError,
)
from furiganarender.ingest.annotation import AnnotationProvider
from furiganarender.ingest.preprocess import preprocess_structured, preprocess_text_pairs
from furiganarender.layout.chunk import Chunk
from furiganarender.layout.engine import PageLayout, layout_page
from .options import RenderOptions, resolve_options
from .surface import DrawingSurface, PillowSurface

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_FORMAT = "PNG"

RenderInput = Union[str, Sequence[Any]]
OptionsInput = Union[RenderOptions, Mapping[str, Any], None]


def layout(
    text: RenderInput,
    base_font: str,
    annotation_font: str,
    options: OptionsInput = None,
    *,
    annotation_provider: AnnotationProvider | None = None,
    surface: DrawingSurface | None = None,
) -> PageLayout:
    """
    Compute the page layout for ``text`` without drawing it.

    Args:
        text: Plain string (requires ``annotation_provider``) or a sequence of
            ``{"base": ..., "annotation": ...}`` pairs.
        base_font: Font specification for base text, e.g. ``"40px IPAMincho"``.
        annotation_font: Font specification for annotations.
        options: ``RenderOptions`` or a mapping of option names to values.
        annotation_provider: Reading detector used for plain-string input.
        surface: Drawing surface used for measurement.

    Returns:
        The positioned ``PageLayout``.
    """
    resolved = resolve_options(options)
    _validate_fonts(base_font, annotation_font)
    chunks = _prepare_chunks(text, annotation_provider)
    return layout_page(
        chunks,
        surface if surface is not None else PillowSurface(),
        base_font,
        annotation_font,
        resolved,
    )


def render(
    text: RenderInput,
    base_font: str,
    annotation_font: str,
    options: OptionsInput = None,
    *,
    annotation_provider: AnnotationProvider | None = None,
    surface: DrawingSurface | None = None,
    image_format: str = DEFAULT_IMAGE_FORMAT,
) -> bytes:
    """
    Render text with furigana into an encoded image.

    Returns:
        Encoded image bytes in ``image_format``.
    """
    resolved = resolve_options(options)
    surface = surface if surface is not None else PillowSurface()
    page = layout(
        text,
        base_font,
        annotation_font,
        resolved,
        annotation_provider=annotation_provider,
        surface=surface,
    )
    return draw_page(
        page, surface, base_font, annotation_font, resolved, image_format=image_format
    )


def draw_page(
    page: PageLayout,
    surface: DrawingSurface,
    base_font: str,
    annotation_font: str,
    options: RenderOptions,
    *,
    image_format: str = DEFAULT_IMAGE_FORMAT,
) -> bytes:
    """
    Draw a computed layout onto ``surface`` and encode it.

    Annotations are drawn first, one call per chunk, then the base text with
    one call per line, so the active font changes only twice.
    """
    logger.info(
        f"Rendering {len(page.chunks)} chunks on {len(page.lines)} lines "
        f"({page.width}x{page.height}px, {image_format})"
    )

    surface.resize(page.width, page.height)
    surface.fill_rect(0, 0, page.width, page.height, options.background_color)

    surface.set_font(annotation_font)
    for draw in page.annotation_draws:
        surface.fill_text(draw.text, draw.x, draw.y, options.text_color)

    surface.set_font(base_font)
    for draw in page.base_draws:
        surface.fill_text(draw.text, draw.x, draw.y, options.text_color)

    try:
        payload = surface.encode(image_format)
    except (OSError, ValueError, KeyError) as exc:
        raise CollaboratorError(f"Image encoding failed ({image_format}): {exc}") from exc
    logger.info(f"Encoded {len(payload)} bytes of {image_format}")
    return payload


async def render_async(
    text: RenderInput,
    base_font: str,
    annotation_font: str,
    options: OptionsInput = None,
    *,
    annotation_provider: AnnotationProvider | None = None,
    surface: DrawingSurface | None = None,
    image_format: str = DEFAULT_IMAGE_FORMAT,
) -> bytes:
    """Awaitable ``render`` running in a worker thread."""
    return await asyncio.to_thread(
        render,
        text,
        base_font,
        annotation_font,
        options,
        annotation_provider=annotation_provider,
        surface=surface,
        image_format=image_format,
    )


def _validate_fonts(base_font: Any, annotation_font: Any) -> None:
    if not isinstance(base_font, str):
        raise InputValidationError(
            "No base font provided. You must provide a font specification as a string."
        )
    if not isinstance(annotation_font, str):
        raise InputValidationError(
            "No annotation font provided. You must provide a font specification as a string."
        )


def _prepare_chunks(
    text: RenderInput, annotation_provider: AnnotationProvider | None
) -> list[Chunk]:
    if not text:
        raise InputValidationError(
            "No text provided. You must provide a string or a sequence of "
            "{'base': ..., 'annotation': ...} pairs."
        )
    if isinstance(text, str):
        if annotation_provider is None:
            raise MissingCollaboratorError(
                "Plain-text input needs an annotation provider for automatic furigana "
                "detection, which is an optional capability. Pass annotation_provider= "
                "or supply base/annotation pairs instead."
            )
        try:
            pairs = annotation_provider.annotate(text)
        except FuriganaRenderError:
            raise
        except Exception as exc:
            raise CollaboratorError(f"Annotation provider failed: {exc}") from exc
        return preprocess_text_pairs(pairs)
    if isinstance(text, (bytes, bytearray)) or not isinstance(text, Sequence):
        raise InputValidationError(
            f"Text must be a string or a sequence of pairs, got {type(text).__name__}."
        )
    return preprocess_structured(text)
