from __future__ import annotations

import asyncio
import io
from statistics import mean

import pytest
from PIL import Image

from furiganarender.errors import (
    CollaboratorError,
    InputValidationError,
    MissingCollaboratorError,
)
from furiganarender.layout.chunk import Chunk
from furiganarender.render.image_renderer import layout, render, render_async

BASE_FONT = "40px FakeMincho"
ANNOTATION_FONT = "20px FakeMincho"


class FakeProvider:
    def __init__(self, chunks: list[Chunk]) -> None:
        self._chunks = chunks
        self.requests: list[str] = []

    def annotate(self, text: str) -> list[Chunk]:
        self.requests.append(text)
        return list(self._chunks)


class FailingProvider:
    def annotate(self, text: str) -> list[Chunk]:
        raise RuntimeError("dictionary unavailable")


AO_TO_AKA = [Chunk("青", "あお"), Chunk("と"), Chunk("赤", "あか")]


@pytest.mark.parametrize("text", ["", [], None])
def test_missing_text_is_rejected_before_measuring(surface, text) -> None:
    with pytest.raises(InputValidationError, match="No text provided"):
        render(text, BASE_FONT, ANNOTATION_FONT, surface=surface)

    assert surface.calls == []


@pytest.mark.parametrize(
    ("base_font", "annotation_font"), [(None, ANNOTATION_FONT), (BASE_FONT, 20)]
)
def test_fonts_must_be_strings(surface, base_font, annotation_font) -> None:
    with pytest.raises(InputValidationError, match="font"):
        render([{"base": "a"}], base_font, annotation_font, surface=surface)

    assert surface.calls == []


def test_plain_text_without_provider_reports_missing_capability(surface) -> None:
    with pytest.raises(MissingCollaboratorError, match="optional"):
        render("青と赤", BASE_FONT, ANNOTATION_FONT, surface=surface)


def test_provider_failure_is_wrapped(surface) -> None:
    with pytest.raises(CollaboratorError) as excinfo:
        render(
            "青と赤",
            BASE_FONT,
            ANNOTATION_FONT,
            annotation_provider=FailingProvider(),
            surface=surface,
        )

    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_encoding_failure_is_wrapped(make_surface) -> None:
    surface = make_surface(encode_error=OSError("disk full"))

    with pytest.raises(CollaboratorError, match="disk full"):
        render([{"base": "a"}], BASE_FONT, ANNOTATION_FONT, surface=surface)


def test_single_line_page_has_no_interline_padding(surface) -> None:
    provider = FakeProvider(AO_TO_AKA)

    page = layout(
        "青と赤", BASE_FONT, ANNOTATION_FONT, annotation_provider=provider, surface=surface
    )

    assert provider.requests == ["青と赤"]
    assert len(page.lines) == 1
    assert [chunk.base for chunk in page.lines[0].chunks] == ["青", "と", "赤"]
    assert page.height == 10 + 10 + page.lines[0].height


def test_structured_pairs_wrap_within_budget(surface) -> None:
    pairs = [
        {"base": "word1", "annotation": "one"},
        {"base": "  "},
        {"base": "word-two", "annotation": "two"},
    ]
    options = {"max_width_in_pixels": 200}

    page = layout(pairs, BASE_FONT, ANNOTATION_FONT, options, surface=surface)

    budget = 200 - 10 - 10
    assert len(page.lines) >= 2
    for line in page.lines:
        assert sum(chunk.width for chunk in line.chunks) <= budget or len(line.chunks) == 1
    assert [chunk.base for chunk in page.chunks] == ["word1", "  ", "word-two"]


def test_forced_break_starts_line_and_is_not_drawn(surface) -> None:
    pairs = [{"base": "abc"}, {"base": "\nX"}]

    render(pairs, BASE_FONT, ANNOTATION_FONT, surface=surface)

    base_draws = surface.text_draws(BASE_FONT)
    assert [draw[2] for draw in base_draws] == ["abc", "X"]
    assert all("\n" not in draw[2] for draw in base_draws)


def test_draw_order_switches_font_once_per_pass(surface) -> None:
    pairs = [{"base": "青", "annotation": "あお"}, {"base": "と"}, {"base": "赤", "annotation": "あか"}]

    payload = render(
        pairs,
        BASE_FONT,
        ANNOTATION_FONT,
        {"background_color": "ivory", "text_color": "navy"},
        surface=surface,
    )

    assert payload == b"FAKE-PNG"
    kinds = [call[0] for call in surface.calls]
    assert kinds == [
        "set_font",
        "set_font",
        "resize",
        "fill_rect",
        "set_font",
        "fill_text",
        "fill_text",
        "set_font",
        "fill_text",
        "encode",
    ]
    assert surface.calls[3] == ("fill_rect", 0, 0, 140, 83, "ivory")
    assert surface.calls[-2] == ("fill_text", BASE_FONT, "青と赤", 10, 65, "navy")


def test_render_async_returns_image(surface) -> None:
    payload = asyncio.run(
        render_async([{"base": "a"}], BASE_FONT, ANNOTATION_FONT, surface=surface, image_format="WEBP")
    )

    assert payload == b"FAKE-WEBP"


def test_render_with_pillow_produces_png() -> None:
    pairs = [{"base": "Furigana", "annotation": "reading"}, {"base": " test"}]

    payload = render(pairs, "40px furiganarender-missing-font", "20px furiganarender-missing-font")

    image = Image.open(io.BytesIO(payload))
    assert image.format == "PNG"
    pixels = list(image.convert("L").getdata())
    assert min(pixels) < 255, "Image appears blank; expected drawn text."
    assert mean(pixels) < 255
