"""Width-bounded rows of centered chunks."""

from __future__ import annotations

from dataclasses import dataclass

from furiganarender.errors import LayoutPreconditionError
from .chunk import CenteredChunk


@dataclass(frozen=True, slots=True)
class TextDraw:
    """A single fill-text instruction at baseline-left coordinates."""

    text: str
    x: float
    y: float


class Line:
    """
    An ordered row of chunks sharing one vertical position.

    Args:
        budget: Maximum occupied width in pixels for the row.
        annotation_gap: Padding inserted between the annotation band and the
            base band, applied only when the line carries any annotation.
    """

    def __init__(self, budget: float, annotation_gap: float = 0.0) -> None:
        self.budget = budget
        self.annotation_gap = annotation_gap
        self.remaining_width = budget
        self.annotation_part_height = 0.0
        self.base_part_height = 0.0
        self.base_ascent = 0.0
        self._chunks: list[CenteredChunk] = []
        self._closed = False

    @property
    def chunks(self) -> tuple[CenteredChunk, ...]:
        return tuple(self._chunks)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def width(self) -> float:
        return self.budget - self.remaining_width

    @property
    def gap(self) -> float:
        return self.annotation_gap if self.annotation_part_height > 0 else 0.0

    @property
    def height(self) -> float:
        return self.annotation_part_height + self.gap + self.base_part_height

    @property
    def base_text(self) -> str:
        """Concatenated base string for the whole line."""
        return "".join(chunk.base for chunk in self._chunks)

    def is_empty(self) -> bool:
        return not self._chunks

    def can_add(self, chunk: CenteredChunk) -> bool:
        return chunk.width <= self.remaining_width

    def overflows(self) -> bool:
        return self.remaining_width < 0

    def add(self, chunk: CenteredChunk) -> None:
        if self._closed:
            raise LayoutPreconditionError("Cannot add chunks to a closed line.")
        if self._chunks and not self.can_add(chunk):
            raise LayoutPreconditionError(
                f"Chunk of width {chunk.width:.2f} exceeds remaining line width "
                f"{self.remaining_width:.2f}."
            )
        self.remaining_width -= chunk.width
        self.annotation_part_height = max(self.annotation_part_height, chunk.annotation_height)
        self.base_part_height = max(self.base_part_height, chunk.base_height)
        self.base_ascent = max(self.base_ascent, chunk.base_ascent)
        self._chunks.append(chunk)

    def close(self) -> None:
        self._closed = True

    def annotation_draws(self, left: float, top: float) -> list[TextDraw]:
        """One draw per chunk with a non-empty annotation."""
        draws: list[TextDraw] = []
        x = left
        for chunk in self._chunks:
            if chunk.annotation:
                draws.append(
                    TextDraw(
                        text=chunk.annotation,
                        x=x + chunk.annotation_x_offset,
                        # Each annotation sits on its own ascent, not the line maximum.
                        y=top + chunk.annotation_ascent,
                    )
                )
            x += chunk.width
        return draws

    def base_draws(self, left: float, top: float) -> list[TextDraw]:
        """
        Draw instructions for the line's base text.

        Base text is drawn as a single concatenated string. A chunk that still
        carries a ``base_x_offset`` (its base could not be padded) starts a new
        run, and so does the chunk following it.
        """
        baseline = top + self.annotation_part_height + self.gap + self.base_ascent
        draws: list[TextDraw] = []
        run_text = ""
        run_x = left
        x = left
        for chunk in self._chunks:
            if chunk.base_x_offset:
                if run_text:
                    draws.append(TextDraw(text=run_text, x=run_x, y=baseline))
                draws.append(TextDraw(text=chunk.base, x=x + chunk.base_x_offset, y=baseline))
                run_text = ""
                run_x = x + chunk.width
            else:
                if not run_text:
                    run_x = x
                run_text += chunk.base
            x += chunk.width
        if run_text:
            draws.append(TextDraw(text=run_text, x=run_x, y=baseline))
        return draws
