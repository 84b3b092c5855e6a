"""Shared pytest fixtures for the furiganarender project."""

import pathlib
from collections.abc import Callable, Iterator

import pytest

from furiganarender.config import set_config
from furiganarender.layout.chunk import FILLER
from furiganarender.render.surface import TextMetrics, parse_font_spec


class FakeSurface:
    """
    Deterministic drawing surface.

    Metrics per font size ``s``: ASCII glyphs advance ``s / 2``, everything else
    ``s``, the hair-space filler ``filler_width``. Ascent is ``4s/5`` and descent
    ``s/5`` for any non-empty string.
    """

    def __init__(
        self, *, filler_width: float = 1.0, encode_error: Exception | None = None
    ) -> None:
        self.filler_width = filler_width
        self.encode_error = encode_error
        self.font: str | None = None
        self.calls: list[tuple] = []
        self.measured: list[tuple[str, str]] = []

    def set_font(self, spec: str) -> None:
        parse_font_spec(spec)
        self.font = spec
        self.calls.append(("set_font", spec))

    def measure(self, text: str) -> TextMetrics:
        assert self.font is not None, "measure() called before set_font()"
        self.measured.append((self.font, text))
        size = parse_font_spec(self.font).size
        if not text:
            return TextMetrics()
        width = sum(self._advance(ch, size) for ch in text)
        return TextMetrics(width=width, ascent=size * 4 / 5, descent=size / 5)

    def resize(self, width: int, height: int) -> None:
        self.calls.append(("resize", width, height))

    def fill_rect(self, x: float, y: float, width: float, height: float, color: str) -> None:
        self.calls.append(("fill_rect", x, y, width, height, color))

    def fill_text(self, text: str, x: float, y: float, color: str) -> None:
        self.calls.append(("fill_text", self.font, text, x, y, color))

    def encode(self, image_format: str) -> bytes:
        if self.encode_error is not None:
            raise self.encode_error
        self.calls.append(("encode", image_format))
        return f"FAKE-{image_format}".encode()

    def text_draws(self, font: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == "fill_text" and call[1] == font]

    def _advance(self, character: str, size: int) -> float:
        if character == FILLER:
            return self.filler_width
        if ord(character) < 128:
            return size / 2
        return float(size)


@pytest.fixture(scope="session")
def project_root() -> Iterator[pathlib.Path]:
    """Return repository root for convenience in tests."""
    yield pathlib.Path(__file__).resolve().parent.parent


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def make_surface() -> Callable[..., FakeSurface]:
    return FakeSurface


@pytest.fixture(autouse=True)
def _reset_global_config() -> Iterator[None]:
    set_config(None)
    yield
    set_config(None)
