"""Read-only text document model consumed by the resolution engine.

Editors hand the engine something that behaves like a text buffer: numbered
lines, a revision counter, and a way to ask for the word under the cursor
matching a regular expression. :class:`Document` captures that contract as a
protocol so any host can plug in, and :class:`TextDocument` implements it for
plain strings and files (used by the CLI and the test-suite).

Example
-------
>>> from stepdoc.document import Position, TextDocument
>>> doc = TextDocument.from_text("#10=IFCWALL($);\\n#20=IFCDOOR(#10);\\n")
>>> word = doc.get_word_range_at_position(Position(1, 13), r"#[0-9]+")
>>> doc.get_text(word)
'#10'
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from pathlib import Path

STEP_LANGUAGE_ID = "step"


@dc.dataclass(frozen=True, slots=True)
class Position:
    """Zero-based line/character location within a document."""

    line: int
    character: int


@dc.dataclass(frozen=True, slots=True)
class Range:
    """Half-open span between two positions."""

    start: Position
    end: Position


@dc.dataclass(frozen=True, slots=True)
class TextLine:
    """A single document line.

    Attributes
    ----------
    line_number : int
        Zero-based index of the line.
    text : str
        Line contents without the line terminator.
    first_non_whitespace : int
        Index of the first non-whitespace character, or ``len(text)`` when the
        line is blank.
    """

    line_number: int
    text: str
    first_non_whitespace: int


class Document(typ.Protocol):
    """Host-provided document surface (never mutated by the engine)."""

    @property
    def uri(self) -> str: ...

    @property
    def version(self) -> int: ...

    @property
    def language_id(self) -> str: ...

    @property
    def line_count(self) -> int: ...

    def line_at(self, index: int) -> TextLine: ...

    def get_text(self, text_range: Range | None = None) -> str: ...

    def get_word_range_at_position(
        self, position: Position, pattern: str | re.Pattern[str]
    ) -> Range | None: ...


def _first_non_whitespace(text: str) -> int:
    return len(text) - len(text.lstrip())


class TextDocument:
    """In-memory :class:`Document` built from a string."""

    def __init__(
        self,
        text: str,
        *,
        uri: str = "untitled:step",
        version: int = 1,
        language_id: str = STEP_LANGUAGE_ID,
    ) -> None:
        self._uri = uri
        self._version = version
        self._language_id = language_id
        self._lines = text.splitlines() or [""]

    @classmethod
    def from_text(cls, text: str, **kwargs: typ.Any) -> TextDocument:
        """Build a document from ``text``; keyword arguments pass through."""
        return cls(text, **kwargs)

    @classmethod
    def from_path(cls, path: Path) -> TextDocument:
        """Read ``path`` as UTF-8 (undecodable bytes replaced) into a document."""
        text = path.read_text(encoding="utf-8", errors="replace")
        return cls(text, uri=path.resolve().as_uri())

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def version(self) -> int:
        return self._version

    @property
    def language_id(self) -> str:
        return self._language_id

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, index: int) -> TextLine:
        """Return line ``index``; negative or past-the-end indices raise."""
        if index < 0 or index >= len(self._lines):
            msg = f"Line {index} is outside the document (0..{len(self._lines) - 1})"
            raise IndexError(msg)
        text = self._lines[index]
        return TextLine(index, text, _first_non_whitespace(text))

    def get_text(self, text_range: Range | None = None) -> str:
        """Return the whole document, or the text covered by ``text_range``."""
        if text_range is None:
            return "\n".join(self._lines)
        start, end = text_range.start, text_range.end
        if start.line == end.line:
            return self._lines[start.line][start.character : end.character]
        parts = [self._lines[start.line][start.character :]]
        parts.extend(self._lines[start.line + 1 : end.line])
        parts.append(self._lines[end.line][: end.character])
        return "\n".join(parts)

    def get_word_range_at_position(
        self, position: Position, pattern: str | re.Pattern[str]
    ) -> Range | None:
        """Return the span of the ``pattern`` match touching ``position``.

        The cursor may sit on any character of the match or directly after
        its last character. Empty matches never count.
        """
        if position.line < 0 or position.line >= len(self._lines):
            return None
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        text = self._lines[position.line]
        for match in regex.finditer(text):
            if match.start() == match.end():
                continue
            if match.start() > position.character:
                break
            if match.start() <= position.character <= match.end():
                return Range(
                    Position(position.line, match.start()),
                    Position(position.line, match.end()),
                )
        return None

    def edit(self, text: str) -> None:
        """Replace the contents and bump the revision counter."""
        self._lines = text.splitlines() or [""]
        self._version += 1


class LineIndex:
    """Read-only line adapter shared by the header and data-section scanners."""

    def __init__(self, document: Document) -> None:
        self.document = document

    def line_count(self) -> int:
        return self.document.line_count

    def line_at(self, index: int) -> TextLine:
        return self.document.line_at(index)

    def lines(self) -> typ.Iterator[TextLine]:
        """Yield every line from the top of the document."""
        for index in range(self.document.line_count):
            yield self.document.line_at(index)

    def range_text(self, to_line: int) -> str:
        """Return the text from the document start to the end of ``to_line``."""
        end_line = self.document.line_at(to_line)
        span = Range(Position(0, 0), Position(to_line, len(end_line.text)))
        return self.document.get_text(span)


__all__ = [
    "STEP_LANGUAGE_ID",
    "Document",
    "LineIndex",
    "Position",
    "Range",
    "TextDocument",
    "TextLine",
]
