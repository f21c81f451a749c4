"""Render resolution results as hover markdown (and HTML on request)."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markdown import markdown

from .attributes import AttributeRow, RowKind


@dc.dataclass(slots=True)
class AttributeGroup:
    """Attributes listed under one ancestor type (``title`` may be empty)."""

    title: str
    lines: list[str] = dc.field(default_factory=list)


def format_row(row: AttributeRow) -> str:
    """Return the markdown for a single attribute row."""
    if row.kind is RowKind.DANGLING:
        return f"*{row.name}* `{row.data_type}`"
    return f"{row.index}.{row.name} : {row.data_type}"


def group_rows(rows: typ.Iterable[AttributeRow]) -> list[AttributeGroup]:
    """Group rows under their type headers, preserving source order."""
    groups: list[AttributeGroup] = []
    for row in rows:
        if row.kind is RowKind.TYPE_HEADER:
            groups.append(AttributeGroup(row.name))
            continue
        if not groups:
            groups.append(AttributeGroup(""))
        groups[-1].lines.append(format_row(row))
    return groups


class HoverRenderer:
    """Render hover content with the packaged Jinja templates."""

    def __init__(self, *, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._markdown_extensions = ["sane_lists", "tables", "fenced_code"]

    def documentation(
        self, type_name: str, rows: typ.Iterable[AttributeRow], url: str
    ) -> str:
        """Render an attribute table followed by the documentation link.

        With no rows only the link is rendered.
        """
        template = self.env.get_template("hover.md.jinja")
        return template.render(type_name=type_name, groups=group_rows(rows), url=url)

    def link(self, type_name: str, url: str) -> str:
        return self.documentation(type_name, [], url)

    def definition(self, line_text: str, line_number: int) -> str:
        template = self.env.get_template("definition.md.jinja")
        return template.render(line_text=line_text, line_number=line_number)

    def to_html(self, text: str) -> str:
        """Convert rendered markdown into HTML5 for HTML-only surfaces."""
        normalized = (text or "").strip()
        if not normalized:
            return ""
        return markdown(
            normalized,
            extensions=self._markdown_extensions,
            output_format="html5",
        )


__all__ = ["AttributeGroup", "HoverRenderer", "format_row", "group_rows"]
