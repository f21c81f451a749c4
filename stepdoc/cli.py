"""Cyclopts CLI entrypoint for resolving references in STEP files.

The ``stepdoc`` console script is a thin host around
:class:`~stepdoc.resolution.ResolutionService`: it loads a STEP file, places a
cursor at the requested line and column (both 1-based), and prints what an
editor would show in a hover, a go-to-definition jump or a status bar.

Examples
--------
Show the schema a file declares:

>>> from stepdoc.cli import app
>>> app.run(["schema", "model.ifc"])  # doctest: +SKIP
IFC4

Render the documentation hover for the type at line 12, column 8:

>>> app.run(["hover", "model.ifc", "--line", "12", "--column", "8"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import load_lookup_config
from .document import Position, TextDocument
from .resolution import DefinitionFound, DocumentationFound, LinkOnly, ResolutionService
from .schema import SchemaCache

app = App(name="stepdoc", config=cyclopts.config.Env("STEPDOC_", command=False))  # type: ignore[unknown-argument]

ConfigOption = typ.Annotated[
    Path | None,
    Parameter(help="Path to a lookup config YAML file", env_var="STEPDOC_CONFIG"),
]
LineOption = typ.Annotated[int, Parameter(help="1-based line of the cursor")]
ColumnOption = typ.Annotated[int, Parameter(help="1-based column of the cursor")]
VerboseOption = typ.Annotated[bool, Parameter(help="Log lookup details to stderr")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _cursor(line: int, column: int) -> Position | None:
    """Convert a 1-based CLI cursor into a 0-based Position.

    Prints an error to stderr and returns ``None`` for non-positive values.
    """
    if line < 1 or column < 1:
        print("--line and --column are 1-based and must be positive.", file=sys.stderr)
        return None
    return Position(line - 1, column - 1)


def _service(config: Path | None) -> ResolutionService:
    return ResolutionService.from_config(load_lookup_config(config))


@app.command(help="Print the schema declared by the file's FILE_SCHEMA header.")
def schema(file: Path, *, verbose: VerboseOption = False) -> int:
    """Print the detected schema name, or ``STEP`` when none is declared."""
    _configure_logging(verbose)
    document = TextDocument.from_path(file)
    print(SchemaCache().get(document).status_text)
    return 0


@app.command(help="Print the line defining the instance reference at the cursor.")
def definition(
    file: Path,
    *,
    line: LineOption,
    column: ColumnOption,
    verbose: VerboseOption = False,
) -> int:
    """Print ``<line>: <text>`` for the defining line; exit 1 when missing.

    Parameters
    ----------
    file : Path
        STEP file to read.
    line : int
        1-based cursor line.
    column : int
        1-based cursor column.
    verbose : bool, optional
        Enable debug logging.

    Returns
    -------
    int
        ``0`` when a definition was found, ``1`` when none was, ``2`` for
        an invalid cursor.
    """
    _configure_logging(verbose)
    position = _cursor(line, column)
    if position is None:
        return 2
    document = TextDocument.from_path(file)
    result = ResolutionService().definition(document, position)
    if isinstance(result, DefinitionFound):
        print(f"{result.line_number + 1}: {result.line_text}")
        return 0
    print("not found")
    return 1


@app.command(help="Print hover content for the reference or type at the cursor.")
def hover(
    file: Path,
    *,
    line: LineOption,
    column: ColumnOption,
    html: typ.Annotated[bool, Parameter(help="Render HTML instead of markdown")] = False,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> int:
    """Print the hover markdown (or HTML); exit 1 when there is nothing to show."""
    _configure_logging(verbose)
    position = _cursor(line, column)
    if position is None:
        return 2
    document = TextDocument.from_path(file)
    service = _service(config)
    result = service.resolve(document, position)
    match result:
        case DefinitionFound():
            text = service.renderer.definition(result.line_text, result.line_number)
        case DocumentationFound() | LinkOnly():
            text = result.markdown
        case _:
            print("not found")
            return 1
    print(service.renderer.to_html(text) if html else text)
    return 0


@app.command(name="open", help="Print the documentation URL for the type at the cursor.")
def open_docs(
    file: Path,
    *,
    line: LineOption,
    column: ColumnOption,
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> int:
    """Print the documentation URL a browser command would open."""
    _configure_logging(verbose)
    position = _cursor(line, column)
    if position is None:
        return 2
    document = TextDocument.from_path(file)
    url = _service(config).documentation_url(document, position)
    if url is None:
        print("not found")
        return 1
    print(url)
    return 0


def main() -> None:
    """Invoke the Cyclopts application behind the ``stepdoc`` console command."""
    result = app()
    if isinstance(result, int):
        raise SystemExit(result)


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
