"""Resolve references and type documentation in STEP/IFC files.

This package backs editor integrations for ISO-10303-21 physical files: it
jumps from an instance reference (``#123``) to the line defining it, detects
the schema a file declares, and turns IFC type names into documentation links
or rendered attribute-inheritance tables.

Exports
-------
- ``ResolutionService``: entry point for cursor queries.
- ``TextDocument`` / ``Position``: in-memory document model.
- ``app`` / ``main``: the ``stepdoc`` Cyclopts CLI.

Examples
--------
>>> from stepdoc import Position, ResolutionService, TextDocument
>>> doc = TextDocument.from_text("#1=IFCWALL($);\\n#2=IFCDOOR(#1);\\n")
>>> ResolutionService().definition(doc, Position(1, 12)).line_number
0
"""

from __future__ import annotations

from .cli import app, main
from .document import Position, TextDocument
from .resolution import (
    DefinitionFound,
    DocumentationFound,
    LinkOnly,
    NotFound,
    ResolutionService,
)

__all__ = [
    "DefinitionFound",
    "DocumentationFound",
    "LinkOnly",
    "NotFound",
    "Position",
    "ResolutionService",
    "TextDocument",
    "app",
    "main",
]
