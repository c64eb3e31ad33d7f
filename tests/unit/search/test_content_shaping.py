"""Unit tests for indexed text, summaries, language detection and markdown rendering."""

import pytest

from docs_index.domain.model import CanonicalDocument, CodeExample, Declaration, DocumentKind, Source
from docs_index.search.content import (
    detect_code_language,
    document_payload_view,
    extract_attributes,
    extract_optimized_content,
    extract_summary,
    is_title_only,
    render_markdown,
    with_attributes,
)


pytestmark = pytest.mark.unit


def _document(kind: DocumentKind, **fields) -> CanonicalDocument:
    defaults = {
        "uri": "apple-docs://swiftui/list",
        "source": Source.API_DOCS,
        "title": "List",
        "content": "# List\n\nFull body with every member listed.",
        "framework": "swiftui",
        "kind": kind,
    }
    defaults.update(fields)
    return CanonicalDocument(**defaults)


class TestOptimizedContent:
    def test_core_type_keeps_high_signal_fields(self):
        document = _document(
            DocumentKind.STRUCT,
            abstract="A container that presents rows.",
            declaration=Declaration(code="struct List<SelectionValue, Content>"),
            overview="o" * 3000,
        )

        content = extract_optimized_content(document)
        parts = content.split("\n\n")

        assert parts[:3] == ["List", "List", "List"]
        assert "A container that presents rows." in parts
        assert "struct List<SelectionValue, Content>" in parts
        assert parts[-1] == "o" * 2000
        assert "Full body" not in content

    def test_member_keeps_identity_and_signature(self):
        document = _document(
            DocumentKind.METHOD,
            title="onDelete(perform:)",
            declaration=Declaration(code="func onDelete(perform action: ((IndexSet) -> Void)?) -> some View"),
        )

        parts = extract_optimized_content(document).split("\n\n")

        assert parts == [
            "onDelete(perform:)",
            "onDelete(perform:)",
            "func onDelete(perform action: ((IndexSet) -> Void)?) -> some View",
        ]

    def test_article_prefers_raw_markdown(self):
        document = _document(DocumentKind.ARTICLE, raw_markdown="# Guide\n\nRaw text.")
        assert extract_optimized_content(document) == "# Guide\n\nRaw text."

    def test_article_falls_back_to_content(self):
        assert extract_optimized_content(_document(DocumentKind.ARTICLE)).startswith("# List")

    def test_empty_article_renders_payload_view(self):
        document = _document(DocumentKind.ARTICLE, content="", abstract="Short abstract.")
        assert extract_optimized_content(document).startswith("# List\n\nShort abstract.")

    def test_with_attributes_appends_names(self):
        assert with_attributes("body", ["@MainActor", "@Sendable"]) == "body\n\n@MainActor @Sendable"
        assert with_attributes("body", []) == "body"


class TestSummary:
    def test_front_matter_and_headings_are_skipped(self):
        content = "---\ntitle: Layout\n---\n# Layout\n\n## Overview\n\nArrange views on screen."
        assert extract_summary(content) == "Arrange views on screen."

    def test_unparseable_front_matter_is_skipped(self):
        assert extract_summary("---\ntitle: [broken\n---\nBody text.") == "Body text."

    def test_long_text_cuts_at_sentence_boundary(self):
        sentence = "Views describe the user interface of an app. "
        summary = extract_summary(sentence * 10, max_length=200)

        assert summary.endswith(".")
        assert len(summary) <= 200

    def test_long_text_without_sentence_gets_ellipsis(self):
        summary = extract_summary("word " * 100, max_length=200)

        assert summary.endswith("...")
        assert len(summary) <= 203
        assert not summary.endswith(" ...")

    def test_short_text_is_unchanged(self):
        assert extract_summary("Short.") == "Short."


class TestLanguageAndAttributes:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("@interface UIView : UIResponder", "objc"),
            ("- (void)layoutSubviews;", "objc"),
            ("struct ContentView: View {}", "swift"),
        ],
    )
    def test_detect_code_language(self, content, expected):
        assert detect_code_language(content) == expected

    def test_extract_attributes_in_declaration_order(self):
        declaration = "@MainActor @preconcurrency @available(iOS 15, *) public protocol View"
        assert extract_attributes(declaration) == ["@MainActor", "@preconcurrency", "@available(iOS 15, *)"]

    def test_extract_attributes_deduplicates(self):
        assert extract_attributes("@Sendable @Sendable func run()") == ["@Sendable"]
        assert extract_attributes(None) == []


class TestMarkdown:
    def test_render_markdown_sections(self):
        payload = {
            "title": "List",
            "kind": "struct",
            "abstract": "A container.",
            "declaration": {"code": "struct List", "language": "swift"},
            "overview": "Use lists for rows.",
            "codeExamples": [{"code": "List {}", "language": "swift", "caption": "A basic list"}],
            "sections": [{"title": "Topics", "items": [{"name": "init()", "description": "Creates a list."}]}],
            "conformsTo": ["View"],
        }

        markdown = render_markdown(payload)

        assert markdown.startswith("# List\n\n**Struct**\n\nA container.\n\n")
        assert "## Declaration\n\n```swift\nstruct List\n```" in markdown
        assert "## Overview\n\nUse lists for rows." in markdown
        assert "A basic list\n\n```swift\nList {}\n```" in markdown
        assert "- **init()**: Creates a list." in markdown
        assert "## Conforms To\n\n- View" in markdown

    def test_article_has_no_kind_badge(self):
        assert render_markdown({"title": "Guide", "kind": "article"}) == "# Guide\n\n"

    def test_is_title_only(self):
        assert is_title_only("# Guide\n\n", "Guide")
        assert not is_title_only("# Guide\n\nBody", "Guide")

    def test_payload_view_includes_examples(self):
        document = _document(
            DocumentKind.STRUCT,
            code_examples=(CodeExample(code="List {}"),),
            conforms_to=("View",),
        )

        payload = document_payload_view(document)

        assert payload["url"] == "apple-docs://swiftui/list"
        assert payload["codeExamples"] == [{"code": "List {}", "language": "swift", "caption": None}]
        assert payload["conformsTo"] == ["View"]
