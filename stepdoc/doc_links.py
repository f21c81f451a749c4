"""Find the documentation page for an IFC type name.

Each schema generation publishes one or more index pages that link to every
type's documentation page (``.../lexical/ifcwall.htm`` and the like). The
resolver fetches the candidate index pages in catalog order and returns the
first anchor whose ``href`` names the requested type, made absolute against
the index page it was found on.
"""

from __future__ import annotations

import logging
import typing as typ
from urllib.parse import urljoin

from bs4 import BeautifulSoup, SoupStrainer

from .http_client import NetworkError

if typ.TYPE_CHECKING:
    from .http_client import Deadline, HttpClient
    from .resolution import CancellationToken
    from .schema import SchemaCatalog, SchemaVersion

logger = logging.getLogger(__name__)

_ANCHORS_ONLY = SoupStrainer("a", href=True)


class DocLookupError(LookupError):
    """Raised when no candidate index page links to the requested type."""


class LookupCancelled(RuntimeError):
    """Raised when a lookup is cancelled between index page fetches."""


def find_type_href(html: str, type_name: str) -> str | None:
    """Return the first anchor ``href`` ending in ``<type_name>.htm``.

    Parameters
    ----------
    html : str
        Index page markup.
    type_name : str
        Type name as written in the STEP file; matched lower-cased.

    Returns
    -------
    str | None
        The raw ``href`` value, or ``None`` when no anchor matches.
    """
    suffix = f"{type_name.lower()}.htm"
    soup = BeautifulSoup(html, "html.parser", parse_only=_ANCHORS_ONLY)
    for anchor in soup.find_all("a"):
        href = anchor.get("href")
        if isinstance(href, str) and href.strip().endswith(suffix):
            return href.strip()
    return None


class DocLinkResolver:
    """Resolve type names to absolute documentation URLs."""

    def __init__(self, client: HttpClient, catalog: SchemaCatalog) -> None:
        self.client = client
        self.catalog = catalog

    def resolve(
        self,
        type_name: str,
        schema: SchemaVersion | str | None,
        *,
        cancellation: CancellationToken | None = None,
        deadline: Deadline | None = None,
    ) -> str:
        """Return the documentation URL for ``type_name`` under ``schema``.

        Candidates are searched sequentially in catalog order and the first
        match wins. A transport failure on one candidate does not stop the
        search. ``cancellation`` is checked before every fetch and
        ``deadline`` bounds them all.

        Raises
        ------
        LookupCancelled
            If ``cancellation`` is set before a candidate is fetched.
        NetworkError
            If nothing matched and at least one candidate could not be
            fetched.
        DocLookupError
            If every candidate was fetched and none links to the type.
        """
        failure: NetworkError | None = None
        for index_url in self.catalog.urls_for(schema):
            if cancellation is not None and cancellation.is_cancelled:
                msg = f"Lookup for '{type_name}' cancelled before {index_url}"
                raise LookupCancelled(msg)
            try:
                page = self.client.fetch_text(index_url, deadline=deadline)
            except NetworkError as exc:
                logger.warning("Skipping index page %s: %s", index_url, exc)
                failure = exc
                continue
            href = find_type_href(page.body, type_name)
            if href is not None:
                resolved = urljoin(page.url, href)
                logger.debug("Resolved %s to %s", type_name, resolved)
                return resolved

        if failure is not None:
            raise failure
        msg = f"No documentation page found for '{type_name}'"
        raise DocLookupError(msg)


__all__ = ["DocLinkResolver", "DocLookupError", "LookupCancelled", "find_type_href"]
