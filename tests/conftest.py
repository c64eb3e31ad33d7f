"""Shared test fixtures and configuration."""

from collections.abc import Callable, Iterator
from datetime import datetime, timezone
import logging
import os
from pathlib import Path
from typing import Any

import pytest


# Complete test environment that overrides every configurable value
TEST_ENV = {
    "DOCS_INDEX_INDEX_PATH": "search.db",
    # Search settings
    "DOCS_INDEX_DEFAULT_SEARCH_LIMIT": "20",
    "DOCS_INDEX_MAX_SEARCH_LIMIT": "100",
    "DOCS_INDEX_OVERFETCH_FACTOR": "20",
    "DOCS_INDEX_OVERFETCH_CEILING": "1000",
    "DOCS_INDEX_SUMMARY_MAX_LENGTH": "1500",
    # Build settings
    "DOCS_INDEX_PROGRESS_INTERVAL": "100",
    "DOCS_INDEX_PACKAGE_PROGRESS_INTERVAL": "500",
    "DOCS_INDEX_CLEAR_BEFORE_BUILD": "true",
    # Logging
    "DOCS_INDEX_LOG_LEVEL": "info",
    "DOCS_INDEX_LOG_JSON": "true",
}

# Source locations must come from each test, never from the developer's shell
SOURCE_ENV_KEYS = (
    "DOCS_INDEX_DOCS_DIR",
    "DOCS_INDEX_ARCHIVE_DIR",
    "DOCS_INDEX_HIG_DIR",
    "DOCS_INDEX_EVOLUTION_DIR",
    "DOCS_INDEX_SWIFT_ORG_DIR",
    "DOCS_INDEX_SAMPLE_CODE_CATALOG",
    "DOCS_INDEX_PACKAGES_CATALOG",
)


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value
for key in SOURCE_ENV_KEYS:
    os.environ.pop(key, None)

from docs_index.config import Settings
from docs_index.domain.model import (
    CanonicalDocument,
    Declaration,
    DocumentKind,
    PlatformAvailability,
    Source,
)
from docs_index.search.store import DocumentStore


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Clean environment variables before each test and set test defaults."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    for key in SOURCE_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Undo handler and level changes made by service factories."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(index_path=tmp_path / "search.db")


@pytest.fixture
def store(settings: Settings) -> Iterator[DocumentStore]:
    """Open store on a temporary file, closed after the test."""
    document_store = DocumentStore(settings.index_path, settings=settings)
    document_store.open()
    try:
        yield document_store
    finally:
        document_store.close()


@pytest.fixture
def make_document() -> Callable[..., CanonicalDocument]:
    """Factory for API reference documents with sensible defaults."""

    def _make(
        name: str,
        *,
        framework: str = "swiftui",
        kind: DocumentKind = DocumentKind.STRUCT,
        content: str | None = None,
        declaration: str | None = None,
        source: Source = Source.API_DOCS,
        availability: PlatformAvailability | None = None,
        **fields: Any,
    ) -> CanonicalDocument:
        slug = name.lower().replace(" ", "-")
        return CanonicalDocument(
            uri=fields.pop("uri", source.uri(f"{framework}/{slug}" if framework else slug)),
            source=source,
            title=name,
            content=content if content is not None else f"# {name}\n\n{name} documentation.",
            framework=framework,
            kind=kind,
            declaration=Declaration(code=declaration) if declaration else None,
            file_path=fields.pop("file_path", f"/docs/{framework}/{slug}.json"),
            content_hash=fields.pop("content_hash", f"hash-{slug}"),
            last_indexed=fields.pop("last_indexed", datetime(2025, 1, 1, tzinfo=timezone.utc)),
            availability=availability or PlatformAvailability(),
            **fields,
        )

    return _make
