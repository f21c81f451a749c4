"""Load lookup configuration YAML into typed dataclasses.

Configuration is optional: without a file, :func:`load_lookup_config` returns
the built-in defaults: the buildingSMART documentation URLs, an 8 second
request timeout and a 10 second budget shared by all fetches of one query. A
file may tune the HTTP settings and override the index pages or
attribute-table flag of any known schema generation::

    http:
      timeout: 5
      retries: 1
      query_budget: 8
    schemas:
      IFC4X1:
        index_urls:
          - https://standards.example.org/IFC4x1/html/toc.htm
        attribute_tables: true

Examples
--------
>>> from stepdoc.config import load_lookup_config
>>> config = load_lookup_config(None)
>>> config.http.timeout
8.0
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ruamel.yaml import YAML

from .schema import DEFAULT_STRATEGIES, SchemaCatalog, SchemaStrategy, SchemaVersion

if typ.TYPE_CHECKING:
    from pathlib import Path

DEFAULT_TIMEOUT = 8.0
DEFAULT_RETRIES = 2
DEFAULT_QUERY_BUDGET = 10.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class LookupConfigError(ValueError):
    """Raised when the lookup configuration is invalid."""


@dc.dataclass(slots=True)
class HttpSettings:
    """Transport settings for documentation fetches."""

    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    query_budget: float = DEFAULT_QUERY_BUDGET
    user_agent: str = DEFAULT_USER_AGENT


@dc.dataclass(slots=True)
class LookupConfig:
    """Resolved configuration for the documentation lookup pipeline."""

    http: HttpSettings = dc.field(default_factory=HttpSettings)
    strategies: dict[SchemaVersion, SchemaStrategy] = dc.field(
        default_factory=lambda: dict(DEFAULT_STRATEGIES)
    )

    def catalog(self) -> SchemaCatalog:
        """Return a :class:`SchemaCatalog` over the configured strategies."""
        return SchemaCatalog(self.strategies)


def load_lookup_config(path: Path | None) -> LookupConfig:
    """Load the lookup configuration, or defaults when ``path`` is ``None``.

    Parameters
    ----------
    path : Path or None
        YAML file to read.

    Returns
    -------
    LookupConfig
        Defaults merged with the file's overrides.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    TypeError
        If the top-level YAML structure is not a mapping.
    LookupConfigError
        If a section holds invalid values (unknown schema names, empty URL
        lists, non-mapping schema entries, non-positive timeouts or budgets,
        negative retry counts).
    """
    if path is None:
        return LookupConfig()
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)

    http = _build_http_settings(loaded.get("http") or {})
    strategies = dict(DEFAULT_STRATEGIES)
    schemas_raw = loaded.get("schemas") or {}
    if not isinstance(schemas_raw, dict):
        msg = "'schemas' must be a mapping of schema name to settings."
        raise LookupConfigError(msg)
    for name, payload in schemas_raw.items():
        version = _parse_schema_key(name)
        payload = payload or {}
        if not isinstance(payload, dict):
            msg = f"schemas.{name} must be a mapping of settings."
            raise LookupConfigError(msg)
        strategies[version] = _merge_strategy(strategies[version], payload)
    return LookupConfig(http=http, strategies=strategies)


def _build_http_settings(payload: typ.Mapping[str, typ.Any]) -> HttpSettings:
    """Build HttpSettings from the ``http`` section."""
    base = HttpSettings()
    try:
        timeout = float(payload.get("timeout", base.timeout))
        retries = int(payload.get("retries", base.retries))
        query_budget = float(payload.get("query_budget", base.query_budget))
    except (TypeError, ValueError) as exc:
        msg = f"Invalid http settings: {exc}"
        raise LookupConfigError(msg) from exc
    if timeout <= 0:
        msg = "http.timeout must be positive."
        raise LookupConfigError(msg)
    if retries < 0:
        msg = "http.retries cannot be negative."
        raise LookupConfigError(msg)
    if query_budget <= 0:
        msg = "http.query_budget must be positive."
        raise LookupConfigError(msg)
    user_agent = str(payload.get("user_agent") or base.user_agent).strip()
    return HttpSettings(
        timeout=timeout,
        retries=retries,
        query_budget=query_budget,
        user_agent=user_agent,
    )


def _parse_schema_key(name: object) -> SchemaVersion:
    """Return the SchemaVersion named by a ``schemas`` key."""
    version = SchemaVersion.parse(str(name))
    if version is SchemaVersion.UNKNOWN:
        known = ", ".join(v.value for v in SchemaVersion if v.value)
        msg = f"Unknown schema '{name}'. Known schemas: {known}"
        raise LookupConfigError(msg)
    return version


def _merge_strategy(
    base: SchemaStrategy, override: typ.Mapping[str, typ.Any]
) -> SchemaStrategy:
    """Merge a schema override mapping into the base strategy."""
    urls = override.get("index_urls", base.index_urls)
    if isinstance(urls, str):
        urls = [urls]
    if not isinstance(urls, list | tuple):
        msg = f"schemas.{base.version.value}.index_urls must be a URL or a list of URLs."
        raise LookupConfigError(msg)
    normalized = tuple(str(url).strip() for url in urls if str(url).strip())
    if not normalized:
        msg = f"{base.version.value}: index_urls cannot be empty."
        raise LookupConfigError(msg)
    return SchemaStrategy(
        version=base.version,
        index_urls=normalized,
        attribute_tables=bool(override.get("attribute_tables", base.attribute_tables)),
    )


__all__ = [
    "DEFAULT_QUERY_BUDGET",
    "DEFAULT_RETRIES",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "HttpSettings",
    "LookupConfig",
    "LookupConfigError",
    "load_lookup_config",
]
