"""Unit tests for the bulk index builder."""

from pathlib import Path

import orjson
import pytest

from docs_index.config import Settings
from docs_index.errors import StoreNotReadyError
from docs_index.ingestion.builder import (
    API_DOCS,
    ARCHIVE,
    EVOLUTION,
    HIG,
    PACKAGES,
    SAMPLE_CODE,
    SWIFT_ORG,
    IndexBuilder,
)
from docs_index.search.store import DocumentStore


pytestmark = pytest.mark.unit


def _write(path: Path, text: str | bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(text, bytes):
        path.write_bytes(text)
    else:
        path.write_text(text, encoding="utf-8")


def _proposal(title: str, status: str) -> str:
    return f"# {title}\n\n* Status: **{status}**\n\n## Introduction\n\n{title} proposal text.\n"


@pytest.fixture
def corpus(tmp_path: Path) -> Settings:
    docs = tmp_path / "docs"
    _write(docs / "swiftui" / "view.json", orjson.dumps({"title": "View", "kind": "protocol", "abstract": "A view."}))
    _write(docs / "swiftui" / "view.md", "# View\n\nMarkdown capture of the same page.")
    _write(docs / "swiftui" / "text.md", "---\ntitle: Text\nkind: struct\n---\nDisplays text.")
    _write(docs / "swiftui" / "broken.json", b"{not json")
    _write(docs / "readme.json", orjson.dumps({"title": "Readme"}))

    evolution = tmp_path / "evolution"
    _write(evolution / "0296-async-await.md", _proposal("Async/await", "Implemented (Swift 5.5)"))
    _write(evolution / "0500-rejected.md", _proposal("Rejected idea", "Rejected"))

    _write(tmp_path / "hig" / "foundations" / "color.md", "# Color\n\nUse color judiciously.")
    _write(tmp_path / "swift-org" / "book" / "the-basics.md", "# The Basics\n\nConstants and variables.")

    samples = [
        {
            "url": "https://developer.apple.com/documentation/swiftui/food-truck",
            "framework": "swiftui",
            "title": "Food Truck",
            "description": "Build a multiplatform app.",
            "zipFilename": "food-truck.zip",
        },
        {"url": "https://developer.apple.com/documentation/uikit/incomplete", "framework": "uikit"},
    ]
    _write(tmp_path / "samples.json", orjson.dumps({"entries": samples}))
    packages = [{"owner": "apple", "repo": "swift-nio", "url": "https://github.com/apple/swift-nio", "stars": 7900}]
    _write(tmp_path / "packages.json", orjson.dumps(packages))

    return Settings(
        index_path=tmp_path / "search.db",
        docs_dir=docs,
        archive_dir=tmp_path / "archive-missing",
        hig_dir=tmp_path / "hig",
        evolution_dir=evolution,
        swift_org_dir=tmp_path / "swift-org",
        sample_code_catalog=tmp_path / "samples.json",
        packages_catalog=tmp_path / "packages.json",
    )


def test_full_build_counts_per_category(store: DocumentStore, corpus: Settings) -> None:
    result = IndexBuilder(store, corpus).build()

    api_docs = result.category(API_DOCS)
    assert (api_docs.indexed, api_docs.skipped) == (2, 1)
    assert "broken.json" in api_docs.errors[0]

    archive = result.category(ARCHIVE)
    assert (archive.indexed, archive.skipped, archive.errors) == (0, 0, ())

    evolution = result.category(EVOLUTION)
    assert (evolution.indexed, evolution.skipped, evolution.errors) == (1, 1, ())

    assert result.category(HIG).indexed == 1
    assert result.category(SWIFT_ORG).indexed == 1

    samples = result.category(SAMPLE_CODE)
    assert (samples.indexed, samples.skipped, len(samples.errors)) == (1, 1, 1)
    assert result.category(PACKAGES).indexed == 1

    assert result.document_count == 5
    assert result.documents_indexed == 7
    assert result.documents_skipped == 3
    assert len(result.errors) == 2
    assert store.document_count() == 5
    assert store.sample_code_count() == 1
    assert store.package_count() == 1


def test_json_page_wins_over_markdown_duplicate(store: DocumentStore, corpus: Settings) -> None:
    IndexBuilder(store, corpus).build()

    content = store.get_document_content("apple-docs://swiftui/view", format="json")

    assert orjson.loads(content)["kind"] == "protocol"
    assert store.search("readme") == []


def test_built_index_is_searchable(store: DocumentStore, corpus: Settings) -> None:
    IndexBuilder(store, corpus).build()

    assert [result.uri for result in store.search("swift-evolution async")] == ["swift-evolution://SE-0296"]
    assert [result.uri for result in store.search("color", source="hig")] == ["hig://foundations/color"]
    assert store.search("constants")[0].source == "swift-book"


def test_unconfigured_sources_are_omitted(store: DocumentStore, tmp_path: Path) -> None:
    _write(tmp_path / "hig" / "foundations" / "color.md", "# Color")
    settings = Settings(index_path=tmp_path / "search.db", hig_dir=tmp_path / "hig")

    result = IndexBuilder(store, settings).build()

    assert [category.category for category in result.categories] == [HIG]


def test_progress_cadence(store: DocumentStore, tmp_path: Path) -> None:
    for index in range(5):
        _write(tmp_path / "hig" / "patterns" / f"page-{index}.md", f"# Page {index}")
    packages = [{"owner": f"owner{index}", "repo": "kit", "url": f"https://example.com/{index}"} for index in range(3)]
    _write(tmp_path / "packages.json", orjson.dumps({"packages": packages}))
    settings = Settings(
        index_path=tmp_path / "search.db",
        hig_dir=tmp_path / "hig",
        packages_catalog=tmp_path / "packages.json",
        progress_interval=2,
        package_progress_interval=2,
    )
    calls: list[tuple[int, int]] = []

    IndexBuilder(store, settings).build(on_progress=lambda processed, total: calls.append((processed, total)))

    assert calls == [(2, 5), (4, 5), (5, 5), (2, 3), (3, 3)]


def test_empty_category_reports_no_progress(store: DocumentStore, tmp_path: Path) -> None:
    (tmp_path / "hig").mkdir()
    settings = Settings(index_path=tmp_path / "search.db", hig_dir=tmp_path / "hig")
    calls: list[tuple[int, int]] = []

    IndexBuilder(store, settings).build(on_progress=lambda processed, total: calls.append((processed, total)))

    assert calls == []


def test_unreadable_catalog_is_recorded(store: DocumentStore, tmp_path: Path) -> None:
    _write(tmp_path / "packages.json", orjson.dumps({"unexpected": True}))
    settings = Settings(index_path=tmp_path / "search.db", packages_catalog=tmp_path / "packages.json")

    result = IndexBuilder(store, settings).build()

    packages = result.category(PACKAGES)
    assert (packages.indexed, packages.skipped, len(packages.errors)) == (0, 0, 1)


def test_clear_existing(store: DocumentStore, tmp_path: Path, make_document) -> None:
    settings = Settings(index_path=tmp_path / "search.db")
    store.index_document(make_document("List"))

    IndexBuilder(store, settings).build(clear_existing=False)
    assert store.document_count() == 1

    result = IndexBuilder(store, settings).build(clear_existing=True)
    assert result.document_count == 0


def test_clear_existing_defaults_to_settings(store: DocumentStore, tmp_path: Path, make_document) -> None:
    store.index_document(make_document("List"))

    IndexBuilder(store, Settings(index_path=tmp_path / "search.db", clear_before_build=False)).build()
    assert store.document_count() == 1

    IndexBuilder(store, Settings(index_path=tmp_path / "search.db")).build()
    assert store.document_count() == 0


def test_build_requires_open_store(tmp_path: Path) -> None:
    store = DocumentStore(tmp_path / "search.db")
    with pytest.raises(StoreNotReadyError):
        IndexBuilder(store).build()
