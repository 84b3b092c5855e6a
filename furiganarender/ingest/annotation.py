"""
Annotation providers turning plain strings into base/annotation pairs.

Plain-text input needs a provider that finds readings for kanji. Two providers
ship with the package, each backed by an optional dependency:

* ``KakasiAnnotationProvider`` derives readings with pykakasi.
* ``RubyMarkupAnnotationProvider`` reads existing HTML ruby markup with
  BeautifulSoup.

Install both with ``pip install furiganarender[furigana]``. Structured pair
input never touches this module.
"""

from __future__ import annotations

import re
from typing import Protocol

from furiganarender.errors import MissingCollaboratorError
from furiganarender.layout.chunk import Chunk
from .preprocess import is_kana

try:
    import pykakasi

    KAKASI_AVAILABLE = True
except ImportError:
    KAKASI_AVAILABLE = False
    pykakasi = None  # type: ignore[assignment]

try:
    from bs4 import BeautifulSoup, Comment, NavigableString, Tag

    BS4_AVAILABLE = True
except ImportError:
    BS4_AVAILABLE = False
    BeautifulSoup = None  # type: ignore[assignment,misc]
    Comment = NavigableString = Tag = None  # type: ignore[assignment,misc]

_KATAKANA_FIRST = 0x30A1
_KATAKANA_LAST = 0x30F6
_KATAKANA_TO_HIRAGANA = 0x60
_LINE_BREAK = re.compile(r"(\r\n|\r|\n)")


class AnnotationProvider(Protocol):
    """Turns plain text into ordered base/annotation pairs."""

    def annotate(self, text: str) -> list[Chunk]:
        ...


def is_kanji(character: str) -> bool:
    code = ord(character)
    return (
        0x4E00 <= code <= 0x9FFF  # CJK Unified Ideographs
        or 0x3400 <= code <= 0x4DBF  # Extension A
        or 0xF900 <= code <= 0xFAFF  # Compatibility Ideographs
        or character == "々"
    )


def to_hiragana(text: str) -> str:
    return "".join(
        chr(ord(ch) - _KATAKANA_TO_HIRAGANA)
        if _KATAKANA_FIRST <= ord(ch) <= _KATAKANA_LAST
        else ch
        for ch in text
    )


def split_okurigana(base: str, reading: str) -> list[Chunk]:
    """
    Detach kana shared by the start or end of ``base`` and ``reading``.

    ``("食べる", "たべる")`` becomes ``[("食", "た"), ("べる", "")]`` so the
    reading sits only above the kanji stem.
    """
    normalized = to_hiragana(base)
    head = 0
    while (
        head < len(base)
        and head < len(reading)
        and is_kana(base[head])
        and normalized[head] == reading[head]
    ):
        head += 1
    tail = 0
    while (
        tail < len(base) - head
        and tail < len(reading) - head
        and is_kana(base[-1 - tail])
        and normalized[-1 - tail] == reading[-1 - tail]
    ):
        tail += 1

    stem = base[head : len(base) - tail]
    stem_reading = reading[head : len(reading) - tail]
    if not stem or not stem_reading:
        return [Chunk(base=base, annotation=reading)]

    chunks: list[Chunk] = []
    if head:
        chunks.append(Chunk(base=base[:head]))
    chunks.append(Chunk(base=stem, annotation=stem_reading))
    if tail:
        chunks.append(Chunk(base=base[len(base) - tail :]))
    return chunks


class KakasiAnnotationProvider:
    """Automatic furigana detection using pykakasi's hiragana readings."""

    def __init__(self) -> None:
        if not KAKASI_AVAILABLE:
            raise MissingCollaboratorError(
                "Could not load pykakasi, which is necessary for automatically detecting "
                "furigana. Install the optional 'furigana' extra "
                "(pip install furiganarender[furigana]) to use automatic furigana detection."
            )
        self._kakasi = pykakasi.kakasi()

    def annotate(self, text: str) -> list[Chunk]:
        chunks: list[Chunk] = []
        for segment in _LINE_BREAK.split(text):
            if _LINE_BREAK.fullmatch(segment):
                chunks.append(Chunk(base=segment))
            elif segment:
                chunks.extend(self._annotate_line(segment))
        return chunks

    def _annotate_line(self, line: str) -> list[Chunk]:
        # pykakasi re-emits the segment before a line break; feed it one line at a time.
        chunks: list[Chunk] = []
        for item in self._kakasi.convert(line):
            original = item.get("orig", "")
            reading = item.get("hira", "")
            if not original:
                continue
            if (
                not reading
                or not any(is_kanji(ch) for ch in original)
                or to_hiragana(original) == reading
            ):
                chunks.append(Chunk(base=original))
                continue
            chunks.extend(split_okurigana(original, reading))
        return chunks


class RubyMarkupAnnotationProvider:
    """Reads furigana already present as HTML ``<ruby>`` markup."""

    def __init__(self) -> None:
        if not BS4_AVAILABLE:
            raise MissingCollaboratorError(
                "Could not load beautifulsoup4, which is necessary for parsing ruby markup. "
                "Install the optional 'furigana' extra (pip install furiganarender[furigana]) "
                "to render ruby markup."
            )

    def annotate(self, text: str) -> list[Chunk]:
        return parse_ruby_markup(text)


def parse_ruby_markup(markup: str) -> list[Chunk]:
    """
    Parse HTML ruby markup into pairs.

    ``<rp>`` fallbacks are ignored. Each ``<rb>`` is paired with the ``<rt>`` at
    the same position, text outside ``<ruby>`` becomes unannotated pairs and
    ``<br>`` becomes a line break.
    """
    if not BS4_AVAILABLE:
        raise MissingCollaboratorError(
            "Could not load beautifulsoup4, which is necessary for parsing ruby markup. "
            "Install the optional 'furigana' extra to render ruby markup."
        )
    soup = BeautifulSoup(markup, "html.parser")
    chunks: list[Chunk] = []
    _collect(soup, chunks)
    return chunks


def _collect(node: Tag, chunks: list[Chunk]) -> None:
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            if str(child):
                chunks.append(Chunk(base=str(child)))
        elif isinstance(child, Tag):
            if child.name == "ruby":
                chunks.extend(_ruby_chunks(child))
            elif child.name == "br":
                chunks.append(Chunk(base="\n"))
            elif child.name not in ("rt", "rp"):
                _collect(child, chunks)


def _ruby_chunks(ruby: Tag) -> list[Chunk]:
    readings = ["".join(rt.strings) for rt in ruby.find_all("rt", recursive=False)]
    segments = ruby.find_all("rb", recursive=False)
    if segments:
        return [
            Chunk(
                base="".join(rb.strings),
                annotation=readings[index] if index < len(readings) else "",
            )
            for index, rb in enumerate(segments)
        ]

    parts: list[str] = []
    for child in ruby.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child))
        elif isinstance(child, Tag) and child.name not in ("rt", "rp"):
            parts.append("".join(child.strings))
    return [Chunk(base="".join(parts), annotation="".join(readings))]
