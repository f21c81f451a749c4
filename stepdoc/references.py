r"""Locate instance references and type names in STEP data sections.

A STEP data section is a list of ``#<n>=TYPE(...);`` statements that refer to
each other by instance number. Two cursor-level lookups live here:

* :func:`extract_reference_at` / :func:`find_definition` answer "which line
  defines the ``#n`` under the cursor?".
* :func:`extract_type_name_at` answers "which constructor name is under the
  cursor?", the starting point for documentation lookups.

:class:`ReferenceResolver` memoizes a :class:`ReferenceIndex` per document
revision so repeated hovers over a large file do not rescan it.

Example
-------
>>> from stepdoc.document import Position, TextDocument
>>> from stepdoc.references import find_definition
>>> doc = TextDocument.from_text("#1=IFCWALL($);\n#12=IFCDOOR(#1);\n")
>>> find_definition(doc, "#1").line_number
0
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from .document import LineIndex

if typ.TYPE_CHECKING:
    from .document import Document, Position

logger = logging.getLogger(__name__)

REFERENCE_PATTERN = re.compile(r"#[0-9]+")
TYPE_NAME_PATTERN = re.compile(r"[0-9a-zA-Z_]+\s*\(")
_TYPE_NAME_SUFFIX = re.compile(r"\s*\($")


class ReferenceNotDefined(LookupError):
    """Raised when a reference has no defining line in the document."""


@dc.dataclass(frozen=True, slots=True)
class DefinitionLine:
    """The line defining an instance reference."""

    line_text: str
    line_number: int


def extract_reference_at(document: Document, position: Position) -> str:
    """Return the ``#<digits>`` token at ``position`` or ``""``."""
    word = document.get_word_range_at_position(position, REFERENCE_PATTERN)
    if word is None:
        return ""
    text = document.get_text(word)
    if len(text) > 1 and text.startswith("#"):
        return text
    return ""


def extract_type_name_at(document: Document, position: Position) -> str:
    """Return the constructor name (``IFCWALL`` in ``IFCWALL(``) at ``position``.

    Single-character names are treated as noise and yield ``""``.
    """
    word = document.get_word_range_at_position(position, TYPE_NAME_PATTERN)
    if word is None:
        return ""
    name = _TYPE_NAME_SUFFIX.sub("", document.get_text(word))
    if len(name) <= 1:
        return ""
    return name


def _defined_reference(text: str, start: int) -> str | None:
    """Return the reference defined by a line whose token begins at ``start``.

    The digit run must be followed by another character on the same line;
    a reference that runs into the end of the line is not a definition.
    """
    match = REFERENCE_PATTERN.match(text, start)
    if match is None or match.end() >= len(text):
        return None
    return match.group(0)


def find_definition(document: Document, reference: str) -> DefinitionLine | None:
    """Scan ``document`` top to bottom for the line defining ``reference``.

    Parameters
    ----------
    document : Document
        Document to scan.
    reference : str
        Instance reference such as ``"#12"``.

    Returns
    -------
    DefinitionLine | None
        The first line whose leading token is exactly ``reference``, or
        ``None`` when no line defines it. ``#1`` never matches ``#12=...``.
    """
    for line in LineIndex(document).lines():
        text = line.text
        start = line.first_non_whitespace
        if not text.startswith(reference, start):
            continue
        after = start + len(reference)
        if after < len(text) and not text[after].isdigit():
            return DefinitionLine(text, line.line_number)
    return None


class ReferenceIndex:
    """Mapping of instance reference to its defining line number."""

    def __init__(self, document: Document) -> None:
        self.document = document
        self.version = document.version
        self._lines: dict[str, int] = {}
        for line in LineIndex(document).lines():
            reference = _defined_reference(line.text, line.first_non_whitespace)
            if reference:
                self._lines.setdefault(reference, line.line_number)

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, reference: object) -> bool:
        return reference in self._lines

    def lookup(self, reference: str) -> DefinitionLine:
        """Return the definition of ``reference``.

        Raises
        ------
        ReferenceNotDefined
            If no line in the indexed revision defines ``reference``.
        """
        try:
            line_number = self._lines[reference]
        except KeyError as exc:
            msg = f"{reference} is not defined in {self.document.uri}"
            raise ReferenceNotDefined(msg) from exc
        return DefinitionLine(self.document.line_at(line_number).text, line_number)


class ReferenceResolver:
    """Resolve references through an index rebuilt once per document revision."""

    def __init__(self) -> None:
        self._indexes: dict[str, ReferenceIndex] = {}

    def index_for(self, document: Document) -> ReferenceIndex:
        index = self._indexes.get(document.uri)
        if index is None or index.version != document.version:
            index = ReferenceIndex(document)
            self._indexes[document.uri] = index
            logger.debug(
                "Indexed %d definitions in %s (revision %s)",
                len(index),
                document.uri,
                document.version,
            )
        return index

    def resolve(self, document: Document, reference: str) -> DefinitionLine:
        """Return the definition line; raises :class:`ReferenceNotDefined`."""
        return self.index_for(document).lookup(reference)

    def forget(self, document: Document) -> None:
        self._indexes.pop(document.uri, None)


__all__ = [
    "REFERENCE_PATTERN",
    "TYPE_NAME_PATTERN",
    "DefinitionLine",
    "ReferenceIndex",
    "ReferenceNotDefined",
    "ReferenceResolver",
    "extract_reference_at",
    "extract_type_name_at",
    "find_definition",
]
