"""Async facade over :class:`DocumentStore`.

Store calls block on SQLite, so every call runs in a worker thread with
``anyio.to_thread.run_sync``. The store lock still serializes them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from functools import partial
import logging
from typing import TypeVar

import anyio

from docs_index.config import Settings
from docs_index.domain.model import DocumentKind, Platform, PlatformAvailability, Source
from docs_index.domain.search import (
    CodeExampleResult,
    FrameworkInfo,
    IndexStatistics,
    PackageResult,
    SampleCodeResult,
    SearchResult,
)
from docs_index.ingestion.builder import IndexBuilder, IndexBuildResult, ProgressCallback
from docs_index.observability.logging import configure_logging
from docs_index.search.store import DocumentFormat, DocumentStore


logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchService:
    """High-level search API for tool-calling frontends."""

    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    async def _run(func: Callable[[], T]) -> T:
        return await anyio.to_thread.run_sync(func)

    async def open(self) -> None:
        await self._run(self.store.open)

    async def close(self) -> None:
        await self._run(self.store.close)

    async def __aenter__(self) -> SearchService:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def search(
        self,
        query: str,
        *,
        source: Source | str | None = None,
        framework: str | None = None,
        language: str | None = None,
        limit: int | None = None,
        include_archive: bool = False,
        min_versions: Mapping[Platform | str, str] | None = None,
    ) -> list[SearchResult]:
        """Ranked search; see :meth:`DocumentStore.search` for the filters."""
        return await self._run(
            partial(
                self.store.search,
                query,
                source=source,
                framework=framework,
                language=language,
                limit=limit,
                include_archive=include_archive,
                min_versions=min_versions,
            )
        )

    async def get_document_content(self, uri: str, format: DocumentFormat = "json") -> str | None:  # noqa: A002
        return await self._run(partial(self.store.get_document_content, uri, format))

    async def list_frameworks(self) -> dict[str, int]:
        return await self._run(self.store.list_frameworks)

    async def list_frameworks_with_aliases(self) -> list[FrameworkInfo]:
        return await self._run(self.store.list_frameworks_with_aliases)

    async def resolve_framework_identifier(self, value: str) -> str:
        return await self._run(partial(self.store.resolve_framework_identifier, value))

    async def search_by_kind(self, kind: DocumentKind | str, framework: str | None = None) -> list[SearchResult]:
        return await self._run(partial(self.store.search_by_kind, kind, framework))

    async def search_by_module(self, module: str, kind: DocumentKind | str | None = None) -> list[SearchResult]:
        return await self._run(partial(self.store.search_by_module, module, kind))

    async def search_by_declaration(
        self, pattern: str, kind: DocumentKind | str | None = None
    ) -> list[SearchResult]:
        return await self._run(partial(self.store.search_by_declaration, pattern, kind))

    async def search_by_platform(self, platform: str, kind: DocumentKind | str | None = None) -> list[SearchResult]:
        return await self._run(partial(self.store.search_by_platform, platform, kind))

    async def search_conforms_to(self, protocol: str) -> list[SearchResult]:
        return await self._run(partial(self.store.search_conforms_to, protocol))

    async def search_inherited_by(self, type_name: str) -> list[SearchResult]:
        return await self._run(partial(self.store.search_inherited_by, type_name))

    async def search_conforming_types(self, protocol: str) -> list[SearchResult]:
        return await self._run(partial(self.store.search_conforming_types, protocol))

    async def search_sample_code(
        self,
        query: str,
        framework: str | None = None,
        limit: int | None = None,
        min_versions: Mapping[Platform | str, str] | None = None,
    ) -> list[SampleCodeResult]:
        return await self._run(partial(self.store.search_sample_code, query, framework, limit, min_versions))

    async def search_packages(self, query: str, limit: int | None = None) -> list[PackageResult]:
        return await self._run(partial(self.store.search_packages, query, limit))

    async def search_code_examples(
        self, query: str, language: str | None = None, limit: int | None = None
    ) -> list[CodeExampleResult]:
        return await self._run(partial(self.store.search_code_examples, query, language, limit))

    async def statistics(self) -> IndexStatistics:
        return await self._run(self.store.statistics)

    async def framework_availability(self, framework: str) -> PlatformAvailability:
        return await self._run(partial(self.store.framework_availability, framework))

    async def rebuild_index(
        self,
        *,
        clear_existing: bool | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> IndexBuildResult:
        """Run a bulk build in a worker thread; it cannot be cancelled once started.

        ``clear_existing`` defaults to ``Settings.clear_before_build``.
        """
        builder = IndexBuilder(self.store)
        return await self._run(partial(builder.build, clear_existing=clear_existing, on_progress=on_progress))


def create_search_service(settings: Settings | None = None) -> SearchService:
    """Configure logging and build an unopened service for the configured index file."""
    resolved = settings or Settings()
    configure_logging(level=resolved.log_level, json_output=resolved.log_json)
    logger.debug("Creating search service for %s", resolved.index_path)
    return SearchService(DocumentStore(resolved.index_path, settings=resolved))
