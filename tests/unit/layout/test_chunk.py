from __future__ import annotations

import pytest

from furiganarender.errors import LayoutPreconditionError
from furiganarender.layout.chunk import (
    FILLER,
    BaseMeasuredChunk,
    Chunk,
    MeasuredChunk,
    center,
    center_offset,
    measure_annotation,
    measure_base,
)
from furiganarender.render.surface import TextMetrics


def _measured(base_width: float, annotation_width: float, base: str = "漢") -> MeasuredChunk:
    return MeasuredChunk(
        chunk=Chunk(base=base, annotation="かな" if annotation_width else ""),
        base=TextMetrics(width=base_width, ascent=32, descent=8),
        annotation=(
            TextMetrics(width=annotation_width, ascent=16, descent=4)
            if annotation_width
            else TextMetrics()
        ),
    )


def test_center_offset_never_negative() -> None:
    assert center_offset(40, 20) == 10
    assert center_offset(20, 40) == 0


def test_wider_base_offsets_annotation() -> None:
    centered = center(_measured(base_width=40, annotation_width=20), filler_width=1.0)

    assert centered.annotation_x_offset == 10
    assert centered.base == "漢"
    assert centered.base_width == 40
    assert centered.filler_count == 0
    assert centered.width == 40


def test_wider_annotation_pads_base_with_fillers() -> None:
    centered = center(_measured(base_width=20, annotation_width=45), filler_width=1.0)

    # (45 - 20) / 2 = 12.5 -> 13 fillers per side
    assert centered.filler_count == 13
    assert centered.base == FILLER * 13 + "漢" + FILLER * 13
    assert centered.base_width == 46
    assert centered.annotation_x_offset == 0
    assert centered.base_x_offset == 0
    assert centered.width == 46


@pytest.mark.parametrize(
    ("base_width", "annotation_width", "filler_width"),
    [(20, 45, 1), (40, 50, 3), (0, 30, 2), (10, 11, 4), (33, 80, 5)],
)
def test_padding_is_smallest_filler_multiple_covering_annotation(
    base_width: float, annotation_width: float, filler_width: float
) -> None:
    centered = center(_measured(base_width, annotation_width), filler_width)
    added = centered.base_width - base_width

    assert centered.base_width >= annotation_width
    assert added % (2 * filler_width) == 0
    assert centered.base_width - 2 * filler_width < annotation_width


def test_zero_width_filler_keeps_offset_instead_of_padding() -> None:
    centered = center(_measured(base_width=20, annotation_width=40), filler_width=0.0)

    assert centered.base == "漢"
    assert centered.base_x_offset == 10
    assert centered.filler_count == 0
    assert centered.width == 40


def test_unannotated_chunk_is_untouched() -> None:
    centered = center(_measured(base_width=40, annotation_width=0), filler_width=1.0)

    assert centered.annotation == ""
    assert centered.annotation_height == 0
    assert centered.base_height == 40


def test_center_rejects_chunks_missing_a_measurement() -> None:
    chunk = Chunk(base="漢", annotation="かん")
    base_only = BaseMeasuredChunk(chunk=chunk, base=TextMetrics(width=40))

    with pytest.raises(LayoutPreconditionError):
        center(chunk, 1.0)  # type: ignore[arg-type]
    with pytest.raises(LayoutPreconditionError):
        center(base_only, 1.0)  # type: ignore[arg-type]


def test_annotation_measurement_requires_base_pass(surface) -> None:
    surface.set_font("20px FakeMincho")

    with pytest.raises(LayoutPreconditionError):
        measure_annotation(Chunk(base="漢", annotation="かん"), surface)  # type: ignore[arg-type]


def test_measurement_skips_empty_strings(surface) -> None:
    surface.set_font("40px FakeMincho")
    base_measured = measure_base(Chunk(base="漢字"), surface)
    surface.set_font("20px FakeMincho")
    measured = measure_annotation(base_measured, surface)

    assert measured.base == TextMetrics(width=80, ascent=32, descent=8)
    assert measured.annotation == TextMetrics()
    assert surface.measured == [("40px FakeMincho", "漢字")]
