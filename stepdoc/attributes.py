"""Extract attribute-inheritance tables from IFC type documentation pages.

Newer IFC documentation pages list every attribute of an entity, including
those inherited from its ancestors, in a ``<table class="attributes">``
introduced by an "Attribute inheritance" caption. Ancestor types appear as
section rows (``IfcRoot``, ``IfcObjectDefinition``, ...) followed by their
numbered attributes. Pages may hold other ``attributes`` tables, so only the
captioned one is read.

Extraction is best effort: a page without the expected structure yields an
empty row list, which callers render as a plain link.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import typing as typ

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .http_client import NetworkError

if typ.TYPE_CHECKING:
    from .http_client import Deadline, HttpClient

logger = logging.getLogger(__name__)

INHERITANCE_CAPTION = "Attribute inheritance"
EXPECTED_HEADER = ["#", "Attribute", "Type"]
TYPE_HEADER_PREFIX = "Ifc"


class TableShapeMismatch(ValueError):
    """Raised when an attribute table's header row has unexpected columns."""


class RowKind(enum.Enum):
    """Kinds of rows found in an attribute-inheritance table."""

    TYPE_HEADER = "type_header"
    INDEXED = "indexed"
    DANGLING = "dangling"


@dc.dataclass(frozen=True, slots=True)
class AttributeRow:
    """One row of an attribute-inheritance table.

    Attributes
    ----------
    kind : RowKind
        Row classification.
    name : str
        Attribute name, or the ancestor type name for type-header rows.
    data_type : str
        Attribute type; empty for type-header rows.
    index : str
        Positional index as printed in the ``#`` column; empty unless the row
        is ``INDEXED``.
    """

    kind: RowKind
    name: str
    data_type: str = ""
    index: str = ""


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text(" ").split())


def _row_cells(row: Tag) -> list[str]:
    return [_cell_text(cell) for cell in row.find_all(["th", "td"], recursive=False)]


def _preceding_text(table: Tag) -> str | None:
    """Return the text of the node directly before ``table``.

    Whitespace-only text nodes between the caption and the table are skipped.
    """
    for sibling in table.previous_siblings:
        if isinstance(sibling, Comment):
            continue
        if isinstance(sibling, Tag):
            return sibling.get_text(strip=True)
        if isinstance(sibling, NavigableString):
            text = str(sibling).strip()
            if text:
                return text
    return None


def inheritance_tables(soup: BeautifulSoup) -> list[Tag]:
    """Return every ``table.attributes`` captioned "Attribute inheritance"."""
    return [
        table
        for table in soup.select("table.attributes")
        if _preceding_text(table) == INHERITANCE_CAPTION
    ]


def _classify(cells: list[str]) -> AttributeRow:
    number, attribute, data_type = (cells + ["", "", ""])[:3]
    if number.startswith(TYPE_HEADER_PREFIX):
        return AttributeRow(RowKind.TYPE_HEADER, number)
    if not number:
        return AttributeRow(RowKind.DANGLING, attribute, data_type)
    return AttributeRow(RowKind.INDEXED, attribute, data_type, index=number)


def table_rows(table: Tag) -> list[AttributeRow]:
    """Convert an attribute-inheritance table into ordered rows.

    Raises
    ------
    TableShapeMismatch
        If the header row is not exactly ``#``, ``Attribute``, ``Type``.
    """
    rows = table.find_all("tr")
    if not rows:
        msg = "Attribute table has no rows"
        raise TableShapeMismatch(msg)
    header = _row_cells(rows[0])
    if header != EXPECTED_HEADER:
        msg = f"Unexpected attribute table header: {header!r}"
        raise TableShapeMismatch(msg)

    parsed: list[AttributeRow] = []
    for row in rows[1:]:
        cells = _row_cells(row)
        if not any(cells):
            continue
        parsed.append(_classify(cells))
    return parsed


def parse_inherited_attributes(html: str) -> list[AttributeRow]:
    """Return the rows of the first well-formed inheritance table in ``html``.

    Tables with a mismatching header are skipped; ``[]`` is returned when the
    page has no usable table.
    """
    soup = BeautifulSoup(html, "html.parser")
    for table in inheritance_tables(soup):
        try:
            return table_rows(table)
        except TableShapeMismatch as exc:
            logger.warning("Skipping attribute table: %s", exc)
    return []


class AttributeTableExtractor:
    """Fetch a type page and extract its inherited attributes."""

    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def extract(
        self, page_url: str, *, deadline: Deadline | None = None
    ) -> list[AttributeRow]:
        """Return the attribute rows for ``page_url``; never raises on misses."""
        try:
            page = self.client.fetch_text(page_url, deadline=deadline)
        except NetworkError as exc:
            logger.warning("Attribute table unavailable for %s: %s", page_url, exc)
            return []
        rows = parse_inherited_attributes(page.body)
        if not rows:
            logger.debug("No attribute inheritance table on %s", page_url)
        return rows


__all__ = [
    "EXPECTED_HEADER",
    "INHERITANCE_CAPTION",
    "AttributeRow",
    "AttributeTableExtractor",
    "RowKind",
    "TableShapeMismatch",
    "inheritance_tables",
    "parse_inherited_attributes",
    "table_rows",
]
