"""
Pre-processing of base/annotation pairs before layout.

Structured input only needs coercion and normalization. Text that went through
automatic annotation is additionally split so that unannotated kana become one
chunk per character, giving the line wrapper natural break points, while runs
of kanji and other characters stay together.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from furiganarender.errors import InputValidationError
from furiganarender.layout.chunk import Chunk

KANA_FIRST = "\u3040"
KANA_LAST = "\u30ff"
IDEOGRAPHIC_SPACE = "\u3000"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_LEADING_BREAKS_RE = re.compile(r"^(?:\r\n|\r|\n)+")


def is_kana(character: str) -> bool:
    return KANA_FIRST <= character <= KANA_LAST


def coerce_pairs(items: Iterable[Any]) -> list[Chunk]:
    """
    Convert caller-supplied pairs into ``Chunk`` instances.

    Accepted shapes are ``Chunk``, ``(base, annotation)`` tuples, bare strings,
    and mappings with ``base``/``annotation`` (or ``kanji``/``furigana``) keys.
    """
    chunks: list[Chunk] = []
    for index, item in enumerate(items):
        if isinstance(item, Chunk):
            chunks.append(item)
        elif isinstance(item, str):
            chunks.append(Chunk(base=item))
        elif isinstance(item, Mapping):
            base = item.get("base", item.get("kanji", ""))
            annotation = item.get("annotation", item.get("furigana", "")) or ""
            if not isinstance(base, str) or not isinstance(annotation, str):
                raise InputValidationError(
                    f"Pair {index} must contain string 'base' and 'annotation' values."
                )
            chunks.append(Chunk(base=base, annotation=annotation))
        elif isinstance(item, tuple) and len(item) in (1, 2) and all(
            isinstance(part, str) for part in item
        ):
            chunks.append(Chunk(base=item[0], annotation=item[1] if len(item) == 2 else ""))
        else:
            raise InputValidationError(
                f"Pair {index} has unsupported type {type(item).__name__}; expected a "
                "mapping with 'base' and optional 'annotation'."
            )
    return chunks


def split_unannotated(chunks: Iterable[Chunk]) -> list[Chunk]:
    """
    Split unannotated chunks into per-kana chunks and coalesced non-kana runs.

    Non-kana runs continue across adjacent unannotated chunks. An annotated
    chunk passes through untouched and ends the current run. A line feed ends
    the current run and starts a new one beginning with the break.
    """
    result: list[Chunk] = []
    run: list[str] | None = None

    def flush() -> None:
        nonlocal run
        if run:
            result.append(Chunk(base="".join(run)))
        run = None

    for chunk in chunks:
        if chunk.annotation:
            flush()
            result.append(chunk)
            continue
        for character in chunk.base:
            if is_kana(character):
                flush()
                result.append(Chunk(base=character))
            elif character in "\r\n":
                if run and run[-1] == "\r" and character == "\n":
                    run.append(character)
                    continue
                flush()
                run = [character]
            else:
                if run is None:
                    run = []
                run.append(character)
    flush()
    return result


def normalize(chunks: Iterable[Chunk]) -> list[Chunk]:
    """
    Normalize whitespace and line breaks ahead of measurement.

    Ideographic spaces become two ordinary spaces. Leading breaks are stripped
    and turned into ``forced_break``; embedded breaks split the base into
    several chunks, the annotation staying with the first one.
    """
    result: list[Chunk] = []
    for chunk in chunks:
        base = chunk.base.replace(IDEOGRAPHIC_SPACE, "  ")
        annotation = chunk.annotation.replace(IDEOGRAPHIC_SPACE, "  ")
        forced_break = chunk.forced_break

        stripped = _LEADING_BREAKS_RE.sub("", base)
        if stripped != base:
            forced_break = True
            base = stripped

        segments = _LINE_BREAK_RE.split(base)
        for position, segment in enumerate(segments):
            if position == 0:
                if not segment and not annotation and not forced_break:
                    continue
                result.append(Chunk(base=segment, annotation=annotation, forced_break=forced_break))
            elif segment or position == len(segments) - 1:
                # Trailing break with nothing after it still ends the line.
                result.append(Chunk(base=segment, forced_break=True))
    return result


def preprocess_text_pairs(chunks: Iterable[Chunk]) -> list[Chunk]:
    """Pre-processing for pairs produced by automatic annotation."""
    return normalize(split_unannotated(chunks))


def preprocess_structured(items: Iterable[Any]) -> list[Chunk]:
    """Pre-processing for caller-supplied pairs (no kana splitting)."""
    return normalize(coerce_pairs(items))
