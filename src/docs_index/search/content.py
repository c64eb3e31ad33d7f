"""Text shaping for the full-text index.

Decides what text a document contributes to ``docs_fts`` (by kind), derives
the bounded summary shown in results, detects the code language of a page,
extracts declaration attributes and renders markdown from a stored payload.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import re
from typing import Any

from docs_index.domain.model import CanonicalDocument, DocumentKind
from docs_index.domain.search import SUMMARY_MAX_LENGTH
from docs_index.utils.front_matter import strip_front_matter


OVERVIEW_PREFIX_LENGTH = 2000
_MIN_SENTENCE_OFFSET = 100

_OBJC_MARKERS = (
    "#import",
    "@interface",
    "@implementation",
    "@property",
    "@synthesize",
    "@selector",
    "NSObject",
    "- (void)",
    "- (id)",
    "+ (void)",
    "+ (id)",
    "[[",
    "]]",
)

ATTRIBUTE_PATTERN = re.compile(r"@[A-Z][a-zA-Z0-9]*(?:\([^)]*\))?")
# Lowercase attributes are valid Swift but the capitalized pattern above misses them.
_LOWERCASE_ATTRIBUTE_PATTERN = re.compile(
    r"@(?:preconcurrency|frozen|objc|objcMembers|nonobjc|discardableResult|warn_unqualified_access|"
    r"inlinable|usableFromInline|dynamicMemberLookup|dynamicCallable|propertyWrapper|resultBuilder|"
    r"freestanding|attached|backDeployed|available|escaping|autoclosure|unknown|testable|main)"
    r"(?:\([^)]*\))?"
)


def extract_optimized_content(document: CanonicalDocument) -> str:
    """Return the text indexed for ``document``.

    Core types keep only high-signal fields so their own members do not drown
    them; members keep identity and signature; everything else is indexed as
    the full body.
    """
    kind = document.kind
    declaration = document.declaration.code if document.declaration else None

    if kind.is_core_type:
        parts = [document.title, document.title, document.title]
        parts.extend(_present(document.abstract, declaration))
        if document.overview:
            parts.append(document.overview[:OVERVIEW_PREFIX_LENGTH])
        return "\n\n".join(parts)

    if kind.is_member:
        parts = [document.title, document.title]
        parts.extend(_present(document.abstract, declaration))
        return "\n\n".join(parts)

    if document.raw_markdown:
        return document.raw_markdown
    if document.content:
        return document.content
    return render_markdown(document_payload_view(document))


def with_attributes(content: str, attributes: Iterable[str]) -> str:
    """Append attribute names so a search for them matches the document."""
    names = list(attributes)
    if not names:
        return content
    return content + "\n\n" + " ".join(names)


def extract_summary(content: str, max_length: int = SUMMARY_MAX_LENGTH) -> str:
    """Derive a bounded plain summary from markdown content."""
    text = strip_front_matter(content.lstrip())
    text = _strip_leading_delimited_block(text)

    lines = text.splitlines()
    while lines and (not lines[0].strip() or lines[0].lstrip().startswith("#")):
        lines.pop(0)
    text = "\n".join(lines).strip()

    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_period = truncated.rfind(".")
    if last_period > _MIN_SENTENCE_OFFSET:
        return truncated[: last_period + 1]

    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + "..."


def _strip_leading_delimited_block(text: str) -> str:
    # Front matter that is not valid YAML still has to go.
    if not text.startswith("---"):
        return text
    closing = text.find("---", 3)
    if closing == -1:
        return text
    return text[closing + 3 :]


def detect_code_language(content: str) -> str:
    """Return ``objc`` when Objective-C markers are present, otherwise ``swift``."""
    if any(marker in content for marker in _OBJC_MARKERS):
        return "objc"
    return "swift"


def extract_attributes(declaration: str | None) -> list[str]:
    """Return attribute annotations (``@MainActor``, ``@available(iOS 15, *)``) in order."""
    if not declaration:
        return []
    found: list[tuple[int, str]] = []
    for pattern in (ATTRIBUTE_PATTERN, _LOWERCASE_ATTRIBUTE_PATTERN):
        found.extend((match.start(), match.group(0)) for match in pattern.finditer(declaration))

    attributes: list[str] = []
    for _, attribute in sorted(found):
        if attribute not in attributes:
            attributes.append(attribute)
    return attributes


def document_payload_view(document: CanonicalDocument) -> dict[str, Any]:
    """Structured payload in the crawler's JSON shape, used when none was supplied."""
    payload: dict[str, Any] = {
        "title": document.title,
        "url": document.url or document.uri,
        "kind": document.kind.value,
        "source": document.source.value,
        "framework": document.framework,
        "rawMarkdown": document.raw_markdown,
    }
    if document.abstract:
        payload["abstract"] = document.abstract
    if document.declaration:
        payload["declaration"] = {"code": document.declaration.code, "language": document.declaration.language}
    if document.overview:
        payload["overview"] = document.overview
    if document.module:
        payload["module"] = document.module
    if document.conforms_to:
        payload["conformsTo"] = list(document.conforms_to)
    if document.inherited_by:
        payload["inheritedBy"] = list(document.inherited_by)
    if document.conforming_types:
        payload["conformingTypes"] = list(document.conforming_types)
    if document.code_examples:
        payload["codeExamples"] = [
            {"code": example.code, "language": example.language, "caption": example.caption}
            for example in document.code_examples
        ]
    return payload


def render_markdown(payload: Mapping[str, Any]) -> str:
    """Render a structured page payload as markdown (title, declaration, sections)."""
    title = str(payload.get("title") or "")
    kind = DocumentKind.from_token(payload.get("kind"))
    out: list[str] = [f"# {title}\n\n"]

    if kind not in (DocumentKind.ARTICLE, DocumentKind.TUTORIAL, DocumentKind.COLLECTION, DocumentKind.UNKNOWN):
        out.append(f"**{kind.value.capitalize()}**\n\n")

    abstract = payload.get("abstract")
    if abstract:
        out.append(f"{abstract}\n\n")

    declaration = payload.get("declaration")
    if isinstance(declaration, Mapping) and declaration.get("code"):
        out.append("## Declaration\n\n")
        out.append(f"```{declaration.get('language') or ''}\n{declaration['code']}\n```\n\n")

    overview = payload.get("overview")
    if overview:
        out.append(f"## Overview\n\n{overview}\n\n")

    for example in payload.get("codeExamples") or []:
        if not isinstance(example, Mapping) or not example.get("code"):
            continue
        if example.get("caption"):
            out.append(f"{example['caption']}\n\n")
        out.append(f"```{example.get('language') or ''}\n{example['code']}\n```\n\n")

    for section in payload.get("sections") or []:
        if not isinstance(section, Mapping):
            continue
        out.append(f"## {section.get('title', '')}\n\n")
        if section.get("content"):
            out.append(f"{section['content']}\n\n")
        items = section.get("items") or []
        for item in items:
            if not isinstance(item, Mapping):
                continue
            line = f"- **{item.get('name', '')}**"
            if item.get("description"):
                line += f": {item['description']}"
            out.append(line + "\n")
        if items:
            out.append("\n")

    for heading, key in (
        ("Conforms To", "conformsTo"),
        ("Inherited By", "inheritedBy"),
        ("Conforming Types", "conformingTypes"),
    ):
        names = payload.get(key) or []
        if names:
            out.append(f"## {heading}\n\n")
            out.extend(f"- {name}\n" for name in names)
            out.append("\n")

    return "".join(out)


def is_title_only(markdown: str, title: str) -> bool:
    """True when rendered markdown carries nothing beyond the title heading."""
    return markdown.strip() == f"# {title}".strip()


def _present(*values: str | None) -> list[str]:
    return [value for value in values if value]
