r"""Detect the IFC schema a STEP file declares and map it to documentation.

STEP physical files open with a ``HEADER;`` section whose ``FILE_SCHEMA``
statement names the schema the data section conforms to. This module reads
that declaration (:func:`detect_schema`), classifies it into a small closed
set (:class:`SchemaVersion`) and looks up the documentation strategy for it in
:class:`SchemaCatalog`: which index pages list the schema's types, and whether
its type pages carry attribute-inheritance tables worth extracting.

Example
-------
>>> from stepdoc.document import TextDocument
>>> from stepdoc.schema import SchemaCatalog, detect_schema
>>> doc = TextDocument.from_text(
...     "ISO-10303-21;\nHEADER;\nFILE_SCHEMA(('IFC2X3'));\nENDSEC;\n"
... )
>>> detect_schema(doc)
'IFC2X3'
>>> len(SchemaCatalog().urls_for("IFC2X3"))
4
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import re
import typing as typ

from .document import LineIndex

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .document import Document

logger = logging.getLogger(__name__)

HEADER_END_TOKEN = "ENDSEC;"
FILE_SCHEMA_TOKEN = "FILE_SCHEMA"
FILE_SCHEMA_PATTERN = re.compile(r"(\s*\(\s*){2}'(.*)'(\s*\)\s*){2}")
_LINE_BREAK_PATTERN = re.compile(r"\r?\n")

_IFC2X3_PAGES = "http://www.buildingsmart-tech.org/ifc/IFC2x3/TC1/html"


class SchemaVersion(enum.Enum):
    """Schema generations with known documentation layouts."""

    IFC2X3 = "IFC2X3"
    IFC4 = "IFC4"
    IFC4X1 = "IFC4X1"
    UNKNOWN = ""

    @classmethod
    def parse(cls, raw: str | None) -> SchemaVersion:
        """Classify a raw ``FILE_SCHEMA`` value.

        ``IFC2X3`` matches by prefix so revision suffixes (``IFC2X3_TC1``)
        still land in the family; the newer generations match exactly.
        """
        normalized = (raw or "").strip().upper()
        if not normalized:
            return cls.UNKNOWN
        if normalized.startswith(cls.IFC2X3.value):
            return cls.IFC2X3
        for member in (cls.IFC4X1, cls.IFC4):
            if normalized == member.value:
                return member
        return cls.UNKNOWN


NEWEST_SCHEMA = SchemaVersion.IFC4X1


@dc.dataclass(frozen=True, slots=True)
class SchemaStrategy:
    """How documentation is looked up for one schema generation.

    Attributes
    ----------
    version : SchemaVersion
        Generation this strategy applies to.
    index_urls : tuple[str, ...]
        Index pages to search for the type's page, most specific first.
    attribute_tables : bool
        Whether the type pages publish an "Attribute inheritance" table.
    """

    version: SchemaVersion
    index_urls: tuple[str, ...]
    attribute_tables: bool = False


DEFAULT_STRATEGIES: dict[SchemaVersion, SchemaStrategy] = {
    SchemaVersion.IFC2X3: SchemaStrategy(
        SchemaVersion.IFC2X3,
        (
            f"{_IFC2X3_PAGES}/alphabeticalorder_selecttype.htm",
            f"{_IFC2X3_PAGES}/alphabeticalorder_enumtype.htm",
            f"{_IFC2X3_PAGES}/alphabeticalorder_definedtype.htm",
            f"{_IFC2X3_PAGES}/alphabeticalorder_entities.htm",
        ),
    ),
    SchemaVersion.IFC4: SchemaStrategy(
        SchemaVersion.IFC4,
        ("http://www.buildingsmart-tech.org/ifc/IFC4/final/html/toc.htm",),
    ),
    SchemaVersion.IFC4X1: SchemaStrategy(
        SchemaVersion.IFC4X1,
        ("http://www.buildingsmart-tech.org/ifc/IFC4x1/final/html/toc.htm",),
        attribute_tables=True,
    ),
}


class SchemaCatalog:
    """Map schema versions to their documentation strategy."""

    def __init__(
        self,
        strategies: cabc.Mapping[SchemaVersion, SchemaStrategy] | None = None,
    ) -> None:
        merged = dict(DEFAULT_STRATEGIES)
        if strategies:
            merged.update(strategies)
        self._strategies = merged

    def strategy_for(self, schema: SchemaVersion | str | None) -> SchemaStrategy:
        """Return the strategy for ``schema``, defaulting to the newest one."""
        version = (
            schema if isinstance(schema, SchemaVersion) else SchemaVersion.parse(schema)
        )
        if version is SchemaVersion.UNKNOWN:
            version = NEWEST_SCHEMA
        return self._strategies[version]

    def urls_for(self, schema: SchemaVersion | str | None) -> list[str]:
        """Return the ordered index-page URLs to search for ``schema``."""
        return list(self.strategy_for(schema).index_urls)


def _header_end_line(index: LineIndex) -> int | None:
    for line in index.lines():
        if HEADER_END_TOKEN in line.text:
            return line.line_number
    return None


def detect_schema(document: Document) -> str:
    """Return the schema name declared by the header's ``FILE_SCHEMA``.

    Parameters
    ----------
    document : Document
        STEP document to inspect; only the header section is read.

    Returns
    -------
    str
        The quoted schema name, for example ``"IFC4"``, or ``""`` when the
        header section or a well-formed ``FILE_SCHEMA`` statement is missing.

    Notes
    -----
    The header ends at the first line containing ``ENDSEC;``. Statements are
    split on ``;`` and the schema name is expected two parentheses deep,
    ``FILE_SCHEMA(('IFC4'))``. Line breaks inside the statement are ignored.
    """
    index = LineIndex(document)
    end_line = _header_end_line(index)
    if not end_line:
        logger.debug("No header section found in %s", document.uri)
        return ""

    header_text = index.range_text(end_line - 1)
    for statement in header_text.split(";"):
        if FILE_SCHEMA_TOKEN not in statement:
            continue
        flattened = _LINE_BREAK_PATTERN.sub("", statement)
        match = FILE_SCHEMA_PATTERN.search(flattened)
        if match:
            return match.group(2)
        logger.debug("Malformed FILE_SCHEMA statement: %r", flattened.strip())
    return ""


@dc.dataclass(frozen=True, slots=True)
class DetectedSchema:
    """Detection result kept per document."""

    raw: str
    version: SchemaVersion

    @property
    def status_text(self) -> str:
        """Label for a status indicator; ``STEP`` when nothing was declared."""
        return self.raw or "STEP"


class SchemaCache:
    """Per-document schema memo, keyed by document URI.

    Detection runs lazily on first use and is only repeated after
    :meth:`invalidate` (or :meth:`activate`) for that document.
    """

    def __init__(self) -> None:
        self._entries: dict[str, DetectedSchema] = {}

    def get(self, document: Document) -> DetectedSchema:
        """Return the cached schema for ``document``, detecting it if needed."""
        cached = self._entries.get(document.uri)
        if cached is None:
            raw = detect_schema(document)
            cached = DetectedSchema(raw, SchemaVersion.parse(raw))
            self._entries[document.uri] = cached
            logger.debug("Detected schema %r for %s", raw, document.uri)
        return cached

    def invalidate(self, document: Document) -> None:
        self._entries.pop(document.uri, None)

    def activate(self, document: Document) -> DetectedSchema:
        """Re-derive the schema for a document that just became active."""
        self.invalidate(document)
        return self.get(document)


__all__ = [
    "DEFAULT_STRATEGIES",
    "NEWEST_SCHEMA",
    "DetectedSchema",
    "SchemaCache",
    "SchemaCatalog",
    "SchemaStrategy",
    "SchemaVersion",
    "detect_schema",
]
