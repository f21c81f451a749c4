"""Unit tests for the lookup configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from stepdoc.config import (
    DEFAULT_TIMEOUT,
    LookupConfigError,
    load_lookup_config,
)
from stepdoc.schema import SchemaVersion


def _write(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "stepdoc.yaml"
    path.write_text(body.strip() + "\n", encoding="utf-8")
    return path


def test_defaults_without_file() -> None:
    config = load_lookup_config(None)
    assert config.http.timeout == DEFAULT_TIMEOUT
    assert len(config.catalog().urls_for("IFC2X3")) == 4


def test_overrides_merge_into_defaults(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
http:
  timeout: 5
  retries: 0
  query_budget: 6
schemas:
  IFC4:
    index_urls: https://mirror.example/ifc4/toc.htm
    attribute_tables: true
""",
    )
    config = load_lookup_config(path)
    assert config.http.timeout == 5.0
    assert config.http.retries == 0
    assert config.http.query_budget == 6.0
    assert config.http.user_agent.startswith("Mozilla/5.0")
    strategy = config.catalog().strategy_for("IFC4")
    assert strategy.index_urls == ("https://mirror.example/ifc4/toc.htm",)
    assert strategy.attribute_tables is True
    assert config.strategies[SchemaVersion.IFC2X3].attribute_tables is False


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_lookup_config(tmp_path / "absent.yaml")


def test_non_mapping_top_level_raises(tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        load_lookup_config(_write(tmp_path, "- one\n- two"))


@pytest.mark.parametrize(
    "body",
    [
        "http:\n  timeout: 0",
        "http:\n  retries: -1",
        "http:\n  timeout: soon",
        "schemas:\n  IFC9:\n    attribute_tables: true",
        "schemas:\n  IFC4X1:\n    index_urls: []",
        "schemas:\n  - IFC4",
        "schemas:\n  IFC4:\n    - https://mirror.example/ifc4/toc.htm",
        "schemas:\n  IFC4:\n    index_urls: 42",
        "http:\n  query_budget: 0",
    ],
)
def test_invalid_values_raise(tmp_path: Path, body: str) -> None:
    with pytest.raises(LookupConfigError):
        load_lookup_config(_write(tmp_path, body))


def test_schema_entry_errors_name_the_key(tmp_path: Path) -> None:
    path = _write(tmp_path, "schemas:\n  IFC4:\n    - https://mirror.example/ifc4/toc.htm")
    with pytest.raises(LookupConfigError, match=r"schemas\.IFC4 must be a mapping"):
        load_lookup_config(path)
