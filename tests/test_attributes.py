"""Unit tests for attribute-inheritance table extraction."""

from __future__ import annotations

import typing as typ

from conftest import IFC4X1_WALL, WALL_PAGE, FakeClient
from stepdoc.attributes import (
    AttributeRow,
    AttributeTableExtractor,
    RowKind,
    parse_inherited_attributes,
)
from stepdoc.http_client import NetworkError

Factory = typ.Callable[[typ.Mapping[str, str | Exception]], FakeClient]

EXPECTED_ROWS = [
    AttributeRow(RowKind.TYPE_HEADER, "IfcRoot"),
    AttributeRow(RowKind.INDEXED, "GlobalId", "IfcGloballyUniqueId", index="1"),
    AttributeRow(RowKind.INDEXED, "OwnerHistory", "IfcOwnerHistory", index="2"),
    AttributeRow(RowKind.TYPE_HEADER, "IfcObject"),
    AttributeRow(
        RowKind.DANGLING, "IsDeclaredBy", "SET [0:1] OF IfcRelDefinesByObject"
    ),
]


def test_only_captioned_table_is_read() -> None:
    assert parse_inherited_attributes(WALL_PAGE) == EXPECTED_ROWS


def test_page_without_attribute_tables_yields_nothing() -> None:
    assert parse_inherited_attributes("<html><body><p>IfcWall</p></body></html>") == []


def test_uncaptioned_tables_are_excluded() -> None:
    html = (
        "<h2>Attributes</h2>"
        '<table class="attributes"><tr><th>#</th><th>Attribute</th><th>Type</th></tr>'
        "<tr><td>1</td><td>Name</td><td>IfcLabel</td></tr></table>"
    )
    assert parse_inherited_attributes(html) == []


def test_mismatched_header_skips_to_next_table() -> None:
    html = (
        "<summary>Attribute inheritance</summary>"
        '<table class="attributes"><tr><th>#</th><th>Name</th></tr>'
        "<tr><td>1</td><td>Broken</td></tr></table>"
        "<p>Attribute inheritance</p>"
        '<table class="attributes"><tr><th>#</th><th>Attribute</th><th>Type</th></tr>'
        "<tr><td>1</td><td>Name</td><td>IfcLabel</td></tr></table>"
    )
    assert parse_inherited_attributes(html) == [
        AttributeRow(RowKind.INDEXED, "Name", "IfcLabel", index="1")
    ]


def test_only_first_qualifying_table_is_used() -> None:
    table = (
        "<b>Attribute inheritance</b>"
        '<table class="attributes"><tr><th>#</th><th>Attribute</th><th>Type</th></tr>'
        "<tr><td>{n}</td><td>Attr{n}</td><td>IfcLabel</td></tr></table>"
    )
    html = table.format(n=1) + table.format(n=2)
    rows = parse_inherited_attributes(html)
    assert [row.name for row in rows] == ["Attr1"]


def test_caption_must_match_exactly() -> None:
    html = (
        "<summary>Attribute inheritance (all)</summary>"
        '<table class="attributes"><tr><th>#</th><th>Attribute</th><th>Type</th></tr>'
        "<tr><td>1</td><td>Name</td><td>IfcLabel</td></tr></table>"
    )
    assert parse_inherited_attributes(html) == []


def test_extractor_fetches_page(fake_client: Factory) -> None:
    client = fake_client({IFC4X1_WALL: WALL_PAGE})
    rows = AttributeTableExtractor(client).extract(IFC4X1_WALL)
    assert rows == EXPECTED_ROWS
    assert client.calls == [IFC4X1_WALL]


def test_extractor_swallows_network_errors(fake_client: Factory) -> None:
    client = fake_client({IFC4X1_WALL: NetworkError("reset", url=IFC4X1_WALL)})
    assert AttributeTableExtractor(client).extract(IFC4X1_WALL) == []
