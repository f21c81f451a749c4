"""Answer cursor queries over STEP documents.

:class:`ResolutionService` is what an editor integration talks to. For a
(document, position) query it first looks for an instance reference under the
cursor and, if there is one, returns its defining line without touching the
network. Otherwise it looks for a type name and resolves it to the schema
documentation: a rendered attribute table when the document's schema
publishes one, or a plain link otherwise.

No query raises into the host. Lookup and transport failures become
:class:`NotFound`, and a cancelled query discards whatever it had computed.

Example
-------
>>> from stepdoc.document import Position, TextDocument
>>> from stepdoc.resolution import ResolutionService
>>> doc = TextDocument.from_text("#10=IFCWALL($);\\n#20=IFCDOOR(#10);\\n")
>>> ResolutionService().definition(doc, Position(1, 13))
DefinitionFound(line_text='#10=IFCWALL($);', line_number=0)
"""

from __future__ import annotations

import dataclasses as dc
import logging
import threading
import typing as typ

from .attributes import AttributeRow, AttributeTableExtractor
from .config import DEFAULT_QUERY_BUDGET, LookupConfig
from .doc_links import DocLinkResolver, DocLookupError, LookupCancelled
from .http_client import Deadline, HttpClient, NetworkError
from .references import (
    ReferenceNotDefined,
    ReferenceResolver,
    extract_reference_at,
    extract_type_name_at,
)
from .rendering import HoverRenderer
from .schema import SchemaCache

if typ.TYPE_CHECKING:
    import requests

    from .document import Document, Position
    from .schema import SchemaCatalog

logger = logging.getLogger(__name__)

NO_TOKEN = "no-token"
REFERENCE_NOT_DEFINED = "reference-not-defined"
LOOKUP_FAILED = "lookup-failed"
NETWORK_ERROR = "network-error"
CANCELLED = "cancelled"


@dc.dataclass(frozen=True, slots=True)
class DefinitionFound:
    """The cursor's instance reference is defined on ``line_number``."""

    line_text: str
    line_number: int


@dc.dataclass(frozen=True, slots=True)
class DocumentationFound:
    """Rendered attribute documentation for the type under the cursor."""

    markdown: str
    url: str
    rows: tuple[AttributeRow, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class LinkOnly:
    """Only a documentation link is available for the type under the cursor."""

    url: str
    markdown: str = ""


@dc.dataclass(frozen=True, slots=True)
class NotFound:
    """Nothing to show; ``reason`` says which step came up empty."""

    reason: str = NO_TOKEN


ResolutionResult = DefinitionFound | DocumentationFound | LinkOnly | NotFound


class CancellationToken:
    """Cancellation flag a host may set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


def _cancelled(token: CancellationToken | None) -> bool:
    return token is not None and token.is_cancelled


class ResolutionService:
    """Orchestrate reference, schema and documentation lookups."""

    def __init__(
        self,
        *,
        client: HttpClient | None = None,
        catalog: SchemaCatalog | None = None,
        renderer: HoverRenderer | None = None,
        schema_cache: SchemaCache | None = None,
        references: ReferenceResolver | None = None,
        query_budget: float = DEFAULT_QUERY_BUDGET,
    ) -> None:
        """Initialise the service.

        Parameters
        ----------
        client : HttpClient, optional
            Transport for documentation fetches; a default client is built
            when omitted.
        catalog : SchemaCatalog, optional
            Schema to documentation mapping; defaults to the built-in one.
        renderer : HoverRenderer, optional
            Markdown renderer for hover content.
        schema_cache : SchemaCache, optional
            Per-document schema memo, shareable with a status indicator.
        references : ReferenceResolver, optional
            Per-document reference index memo.
        query_budget : float, optional
            Seconds all documentation fetches of one query may take together.
        """
        self.client = client or HttpClient()
        self.catalog = catalog or LookupConfig().catalog()
        self.renderer = renderer or HoverRenderer()
        self.schemas = schema_cache or SchemaCache()
        self.references = references or ReferenceResolver()
        self.query_budget = query_budget
        self.links = DocLinkResolver(self.client, self.catalog)
        self.attributes = AttributeTableExtractor(self.client)

    @classmethod
    def from_config(
        cls, config: LookupConfig, *, session: requests.Session | None = None
    ) -> ResolutionService:
        """Build a service wired to ``config``'s HTTP settings and catalog."""
        client = HttpClient.from_settings(config.http, session=session)
        return cls(
            client=client,
            catalog=config.catalog(),
            query_budget=config.http.query_budget,
        )

    def activate(self, document: Document) -> str:
        """Re-detect the schema of a newly active document.

        Returns
        -------
        str
            Status-indicator text: the declared schema, or ``"STEP"``.
        """
        self.references.forget(document)
        return self.schemas.activate(document).status_text

    def close(self, document: Document) -> None:
        """Drop the cached schema and reference index of a closed document."""
        self.references.forget(document)
        self.schemas.invalidate(document)

    def definition(self, document: Document, position: Position) -> ResolutionResult:
        """Resolve the instance reference at ``position``; never fetches."""
        return self._resolve_reference(document, position) or NotFound(NO_TOKEN)

    def resolve(
        self,
        document: Document,
        position: Position,
        *,
        cancellation: CancellationToken | None = None,
    ) -> ResolutionResult:
        """Answer a hover query at ``position``.

        Parameters
        ----------
        document : Document
            Document the cursor is in.
        position : Position
            Cursor position.
        cancellation : CancellationToken, optional
            Checked before every fetch and after the last one; a cancelled
            query returns ``NotFound("cancelled")``.

        Returns
        -------
        ResolutionResult
            ``DefinitionFound`` for instance references; for type names
            ``DocumentationFound`` or ``LinkOnly``; ``NotFound`` otherwise.
        """
        found = self._resolve_reference(document, position)
        if found is not None:
            return found

        type_name = extract_type_name_at(document, position)
        if not type_name:
            return NotFound(NO_TOKEN)

        detected = self.schemas.get(document)
        strategy = self.catalog.strategy_for(detected.version)
        deadline = Deadline(self.query_budget)
        url = self._lookup_url(type_name, detected.raw, cancellation, deadline)
        if isinstance(url, NotFound):
            return url

        if not strategy.attribute_tables:
            return LinkOnly(url, self.renderer.link(type_name, url))

        rows = self.attributes.extract(url, deadline=deadline)
        if _cancelled(cancellation):
            return NotFound(CANCELLED)
        markdown = self.renderer.documentation(type_name, rows, url)
        return DocumentationFound(markdown, url, tuple(rows))

    def documentation_url(
        self,
        document: Document,
        position: Position,
        *,
        cancellation: CancellationToken | None = None,
    ) -> str | None:
        """Return the documentation URL for the type at ``position``, if any."""
        type_name = extract_type_name_at(document, position)
        if not type_name:
            return None
        detected = self.schemas.get(document)
        url = self._lookup_url(
            type_name, detected.raw, cancellation, Deadline(self.query_budget)
        )
        if isinstance(url, NotFound):
            return None
        return url

    def _resolve_reference(
        self, document: Document, position: Position
    ) -> DefinitionFound | NotFound | None:
        """Return the reference outcome, or ``None`` when no reference is there."""
        reference = extract_reference_at(document, position)
        if not reference:
            return None
        try:
            definition = self.references.resolve(document, reference)
        except ReferenceNotDefined as exc:
            logger.debug("%s", exc)
            return NotFound(REFERENCE_NOT_DEFINED)
        return DefinitionFound(definition.line_text, definition.line_number)

    def _lookup_url(
        self,
        type_name: str,
        schema: str,
        cancellation: CancellationToken | None,
        deadline: Deadline,
    ) -> str | NotFound:
        try:
            url = self.links.resolve(
                type_name, schema, cancellation=cancellation, deadline=deadline
            )
        except LookupCancelled as exc:
            logger.debug("%s", exc)
            return NotFound(CANCELLED)
        except DocLookupError as exc:
            logger.debug("%s", exc)
            return NotFound(LOOKUP_FAILED)
        except NetworkError as exc:
            logger.warning("Documentation lookup for %s failed: %s", type_name, exc)
            return NotFound(NETWORK_ERROR)
        if _cancelled(cancellation):
            return NotFound(CANCELLED)
        return url


__all__ = [
    "CANCELLED",
    "LOOKUP_FAILED",
    "NETWORK_ERROR",
    "NO_TOKEN",
    "REFERENCE_NOT_DEFINED",
    "CancellationToken",
    "DefinitionFound",
    "DocumentationFound",
    "LinkOnly",
    "NotFound",
    "ResolutionResult",
    "ResolutionService",
]
