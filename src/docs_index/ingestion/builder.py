"""Bulk index builds from crawled corpora and catalogs.

The builder walks one source category at a time and one item at a time. A
failing item is logged, counted as skipped and recorded in the result; it
never aborts the build. A failure outside per-item processing (the store not
being open, for instance) propagates.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import partial
import logging
from pathlib import Path
from typing import Any, TypeVar

from docs_index.config import Settings
from docs_index.domain.model import CanonicalDocument
from docs_index.errors import DocsIndexError, StoreNotReadyError
from docs_index.ingestion.adapters import (
    discover_files,
    load_api_doc_json,
    load_api_doc_markdown,
    load_archive_page,
    load_hig_page,
    load_swift_org_page,
)
from docs_index.ingestion.catalogs import PACKAGES_KEY, SAMPLE_CODE_KEY, package_record, read_catalog, sample_code_entry
from docs_index.ingestion.proposals import discover_proposal_files, load_proposal
from docs_index.observability.tracing import create_span
from docs_index.search.store import DocumentStore


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

T = TypeVar("T")

API_DOCS = "api-docs"
ARCHIVE = "archive"
HIG = "hig"
EVOLUTION = "evolution"
SWIFT_ORG = "swift-org"
SAMPLE_CODE = "sample-code"
PACKAGES = "packages"

BUILD_ORDER = (API_DOCS, ARCHIVE, HIG, EVOLUTION, SWIFT_ORG, SAMPLE_CODE, PACKAGES)


@dataclass(frozen=True)
class CategoryBuildResult:
    """Outcome for one source category."""

    category: str
    indexed: int
    skipped: int
    errors: tuple[str, ...] = ()

    @property
    def processed(self) -> int:
        return self.indexed + self.skipped


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of a full build, one entry per category that was configured."""

    categories: tuple[CategoryBuildResult, ...] = ()
    document_count: int = 0

    @property
    def documents_indexed(self) -> int:
        return sum(category.indexed for category in self.categories)

    @property
    def documents_skipped(self) -> int:
        return sum(category.skipped for category in self.categories)

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(error for category in self.categories for error in category.errors)

    def category(self, name: str) -> CategoryBuildResult | None:
        return next((category for category in self.categories if category.category == name), None)


@dataclass
class _Tally:
    indexed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


class IndexBuilder:
    """Populate a :class:`DocumentStore` from the locations in :class:`Settings`."""

    def __init__(self, store: DocumentStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or store.settings

    def build(
        self, clear_existing: bool | None = None, on_progress: ProgressCallback | None = None
    ) -> IndexBuildResult:
        """Index every configured source in a fixed order.

        Args:
            clear_existing: Delete all document rows first. Defaults to
                ``Settings.clear_before_build``.
            on_progress: Called with ``(processed, total)`` every
                ``progress_interval`` items (``package_progress_interval`` for
                packages) and once when a category finishes.
        """
        if not self.store.is_open:
            raise StoreNotReadyError

        if clear_existing is None:
            clear_existing = self.settings.clear_before_build
        with create_span("index.build", attributes={"build.clear_existing": clear_existing}) as span:
            if clear_existing:
                self.store.clear_index()

            categories: list[CategoryBuildResult] = []
            for name in BUILD_ORDER:
                result = self._build_category(name, on_progress)
                if result is not None:
                    categories.append(result)

            document_count = self.store.document_count()
            build_result = IndexBuildResult(categories=tuple(categories), document_count=document_count)
            span.set_attribute("build.documents_indexed", build_result.documents_indexed)
            span.set_attribute("build.documents_skipped", build_result.documents_skipped)

        logger.info(
            "Search index built: %d documents (%d indexed, %d skipped)",
            document_count,
            build_result.documents_indexed,
            build_result.documents_skipped,
        )
        return build_result

    # --- categories ---------------------------------------------------------

    def _build_category(self, name: str, on_progress: ProgressCallback | None) -> CategoryBuildResult | None:
        settings = self.settings
        if name == API_DOCS:
            return self._index_documents(name, settings.docs_dir, self._api_doc_items, on_progress)
        if name == ARCHIVE:
            return self._index_documents(
                name, settings.archive_dir, self._markdown_items(load_archive_page), on_progress
            )
        if name == HIG:
            return self._index_documents(name, settings.hig_dir, self._markdown_items(load_hig_page), on_progress)
        if name == EVOLUTION:
            return self._index_documents(name, settings.evolution_dir, self._proposal_items, on_progress)
        if name == SWIFT_ORG:
            return self._index_documents(
                name, settings.swift_org_dir, self._markdown_items(load_swift_org_page), on_progress
            )
        if name == SAMPLE_CODE:
            return self._index_catalog(
                name,
                settings.sample_code_catalog,
                SAMPLE_CODE_KEY,
                lambda raw: self.store.index_sample_code(sample_code_entry(raw)),
                settings.progress_interval,
                on_progress,
            )
        if name == PACKAGES:
            return self._index_catalog(
                name,
                settings.packages_catalog,
                PACKAGES_KEY,
                lambda raw: self.store.index_package(package_record(raw)),
                settings.package_progress_interval,
                on_progress,
            )
        msg = f"Unknown build category: {name}"
        raise ValueError(msg)

    def _index_documents(
        self,
        name: str,
        root: Path | None,
        discover: Callable[[Path], list[tuple[Path, Callable[[], CanonicalDocument | None]]]],
        on_progress: ProgressCallback | None,
    ) -> CategoryBuildResult | None:
        if root is None:
            return None
        if not root.exists():
            logger.warning("Source directory for %s not found: %s", name, root)
            return CategoryBuildResult(category=name, indexed=0, skipped=0)

        items = discover(root)
        logger.info("Indexing %d %s documents from %s", len(items), name, root)

        def process(item: tuple[Path, Callable[[], CanonicalDocument | None]]) -> bool:
            _, load = item
            document = load()
            if document is None:
                return False
            self.store.index_document(document)
            return True

        return self._run(name, items, process, lambda item: str(item[0]), self.settings.progress_interval, on_progress)

    def _index_catalog(
        self,
        name: str,
        path: Path | None,
        key: str,
        index_entry: Callable[[Any], object],
        interval: int,
        on_progress: ProgressCallback | None,
    ) -> CategoryBuildResult | None:
        if path is None:
            return None
        if not path.exists():
            logger.warning("Catalog for %s not found: %s", name, path)
            return CategoryBuildResult(category=name, indexed=0, skipped=0)

        try:
            entries = read_catalog(path, key)
        except DocsIndexError as exc:
            logger.error("Skipping %s catalog: %s", name, exc)
            return CategoryBuildResult(category=name, indexed=0, skipped=0, errors=(str(exc),))

        logger.info("Indexing %d %s entries from %s", len(entries), name, path)

        def process(raw: Any) -> bool:
            index_entry(raw)
            return True

        return self._run(name, entries, process, _describe_entry, interval, on_progress)

    # --- discovery ----------------------------------------------------------

    @staticmethod
    def _api_doc_items(root: Path) -> list[tuple[Path, Callable[[], CanonicalDocument | None]]]:
        """JSON pages first; a markdown page with the same stem as a JSON page is a duplicate."""
        items: list[tuple[Path, Callable[[], CanonicalDocument | None]]] = []
        seen: set[Path] = set()
        for path in discover_files(root, "*.json", min_depth=2):
            seen.add(path.with_suffix(""))
            items.append((path, partial(load_api_doc_json, path, root)))
        for path in discover_files(root, "*.md", min_depth=2):
            if path.with_suffix("") in seen:
                continue
            items.append((path, partial(load_api_doc_markdown, path, root)))
        return items

    @staticmethod
    def _markdown_items(
        loader: Callable[[Path, Path], CanonicalDocument | None],
    ) -> Callable[[Path], list[tuple[Path, Callable[[], CanonicalDocument | None]]]]:
        def discover(root: Path) -> list[tuple[Path, Callable[[], CanonicalDocument | None]]]:
            return [(path, partial(loader, path, root)) for path in discover_files(root, "*.md")]

        return discover

    @staticmethod
    def _proposal_items(root: Path) -> list[tuple[Path, Callable[[], CanonicalDocument | None]]]:
        return [(path, partial(load_proposal, path)) for path in discover_proposal_files(root)]

    # --- shared loop --------------------------------------------------------

    @staticmethod
    def _run(
        name: str,
        items: Sequence[T],
        process: Callable[[T], bool],
        describe: Callable[[T], str],
        interval: int,
        on_progress: ProgressCallback | None,
    ) -> CategoryBuildResult:
        total = len(items)
        tally = _Tally()
        processed = 0

        with create_span(f"index.build.{name}", attributes={"build.category": name, "build.total": total}):
            for item in items:
                try:
                    if process(item):
                        tally.indexed += 1
                    else:
                        tally.skipped += 1
                except (DocsIndexError, OSError, ValueError) as exc:
                    label = describe(item)
                    logger.error("Failed to index %s: %s", label, exc)
                    tally.errors.append(f"{label}: {exc}")
                    tally.skipped += 1

                processed += 1
                if on_progress is not None and processed % interval == 0:
                    on_progress(processed, total)

            if on_progress is not None and total and processed % interval != 0:
                on_progress(processed, total)

        logger.info("%s: %d indexed, %d skipped", name, tally.indexed, tally.skipped)
        return CategoryBuildResult(
            category=name,
            indexed=tally.indexed,
            skipped=tally.skipped,
            errors=tuple(tally.errors),
        )


def _describe_entry(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get("url") or raw.get("title") or raw.get("repo") or raw.get("name") or "<entry>")
    return "<entry>"
