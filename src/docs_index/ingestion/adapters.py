"""Per-source adapters turning crawled artifacts into canonical documents.

Every loader returns ``None`` for pages that should not be indexed (error and
placeholder pages) and raises :class:`DocumentLoadError` for artifacts that
cannot be read at all. The builder counts both as skipped.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
import hashlib
import logging
from pathlib import Path
import re
from typing import Any

import orjson

from docs_index.domain.model import CanonicalDocument, CodeExample, Declaration, DocumentKind, Source
from docs_index.errors import DocumentLoadError
from docs_index.ingestion.kind_inference import resolve_kind
from docs_index.search.availability import availability_from_payload
from docs_index.search.content import render_markdown
from docs_index.utils.front_matter import parse_front_matter


logger = logging.getLogger(__name__)

NOT_FOUND_TITLE = "not found"
NOT_FOUND_MARKERS = (
    "The page you're looking for can't be found",
    "404 Not Found",
    "Page Not Found",
)

_HEADING_PATTERN = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)


def is_not_found_page(title: str | None, body: str | None) -> bool:
    """True for crawler captures of error pages."""
    if title is not None and title.strip().lower() == NOT_FOUND_TITLE:
        return True
    return bool(body) and any(marker in body for marker in NOT_FOUND_MARKERS)


def first_heading(markdown: str) -> str | None:
    match = _HEADING_PATTERN.search(markdown)
    return match.group(1).strip() if match else None


def content_hash(data: str | bytes) -> str:
    raw = data.encode("utf-8") if isinstance(data, str) else data
    return hashlib.sha256(raw).hexdigest()


def relative_parts(path: Path, root: Path) -> tuple[str, ...]:
    try:
        return path.relative_to(root).parts
    except ValueError:
        return path.resolve().relative_to(root.resolve()).parts


def first_segment(path: Path, root: Path) -> str | None:
    """First directory under ``root`` (the framework or category), ``None`` at the top level."""
    parts = relative_parts(path, root)
    return parts[0] if len(parts) > 1 else None


def discover_files(root: Path, pattern: str, *, min_depth: int = 1) -> Iterator[Path]:
    """Yield files under ``root`` matching ``pattern`` in sorted order, skipping hidden entries."""
    if not root.exists():
        return
    for path in sorted(root.rglob(pattern)):
        parts = relative_parts(path, root)
        if len(parts) < min_depth or any(part.startswith(".") for part in parts):
            continue
        if path.is_file():
            yield path


def modified_at(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def _parse_timestamp(value: Any, fallback: datetime) -> datetime:
    if not isinstance(value, str) or not value.strip():
        return fallback
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return fallback
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _string_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value if item)


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Unable to read {path}: {exc}"
        raise DocumentLoadError(msg) from exc


def _markdown_title(front_matter: Mapping[str, Any], body: str, path: Path) -> str:
    title = front_matter.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return first_heading(body) or path.stem


# --- API reference ---------------------------------------------------------


def load_api_doc_json(path: Path, root: Path) -> CanonicalDocument | None:
    """Structured API page written by the crawler as JSON."""
    framework = first_segment(path, root)
    if framework is None:
        msg = f"API page is not inside a framework folder: {path}"
        raise DocumentLoadError(msg)

    try:
        raw = path.read_bytes()
        payload = orjson.loads(raw)
    except (OSError, orjson.JSONDecodeError) as exc:
        msg = f"Unable to parse {path}: {exc}"
        raise DocumentLoadError(msg) from exc
    if not isinstance(payload, dict):
        msg = f"Expected a JSON object in {path}"
        raise DocumentLoadError(msg)

    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        msg = f"API page has no title: {path}"
        raise DocumentLoadError(msg)

    raw_markdown = payload.get("rawMarkdown") if isinstance(payload.get("rawMarkdown"), str) else None
    if is_not_found_page(title, raw_markdown or payload.get("overview") or payload.get("abstract")):
        logger.debug("Skipping not-found page %s", path)
        return None

    declaration = None
    raw_declaration = payload.get("declaration")
    if isinstance(raw_declaration, Mapping) and raw_declaration.get("code"):
        declaration = Declaration(
            code=str(raw_declaration["code"]),
            language=raw_declaration.get("language") or "swift",
        )

    examples = tuple(
        CodeExample(code=str(item["code"]), language=item.get("language") or "swift", caption=item.get("caption"))
        for item in payload.get("codeExamples") or []
        if isinstance(item, Mapping) and item.get("code")
    )

    kind = resolve_kind(DocumentKind.from_token(payload.get("kind")), declaration.code if declaration else None)
    return CanonicalDocument(
        uri=Source.API_DOCS.uri(f"{framework}/{path.stem}"),
        source=Source.API_DOCS,
        title=title.strip(),
        content=raw_markdown or render_markdown(payload),
        framework=framework,
        kind=kind,
        language=payload.get("language") or None,
        abstract=payload.get("abstract") or None,
        declaration=declaration,
        overview=payload.get("overview") or None,
        module=payload.get("module") or None,
        platforms=_string_list(payload.get("platforms")),
        conforms_to=_string_list(payload.get("conformsTo")),
        inherited_by=_string_list(payload.get("inheritedBy")),
        conforming_types=_string_list(payload.get("conformingTypes")),
        raw_markdown=raw_markdown,
        file_path=str(path),
        content_hash=payload.get("contentHash") or content_hash(raw),
        last_indexed=_parse_timestamp(payload.get("crawledAt"), modified_at(path)),
        availability=availability_from_payload(payload),
        code_examples=examples,
        payload=raw.decode("utf-8"),
        url=payload.get("url") or None,
    )


def load_api_doc_markdown(path: Path, root: Path) -> CanonicalDocument | None:
    """API page captured as markdown, title from front matter, first heading or file name."""
    framework = first_segment(path, root)
    if framework is None:
        msg = f"API page is not inside a framework folder: {path}"
        raise DocumentLoadError(msg)

    text = read_text(path)
    front_matter, body = parse_front_matter(text)
    title = _markdown_title(front_matter, body, path)
    if is_not_found_page(title, body):
        logger.debug("Skipping not-found page %s", path)
        return None

    return CanonicalDocument(
        uri=Source.API_DOCS.uri(f"{framework}/{path.stem}"),
        source=Source.API_DOCS,
        title=title,
        content=body,
        framework=framework,
        kind=resolve_kind(DocumentKind.from_token(front_matter.get("kind")), None),
        raw_markdown=body,
        file_path=str(path),
        content_hash=content_hash(text),
        last_indexed=modified_at(path),
        url=front_matter.get("url") or None,
    )


# --- markdown corpora ------------------------------------------------------


def load_swift_org_page(path: Path, root: Path) -> CanonicalDocument | None:
    """Language reference page; the ``book`` category is the language guide."""
    category = first_segment(path, root) or Source.SWIFT_ORG.value
    text = read_text(path)
    front_matter, body = parse_front_matter(text)
    title = _markdown_title(front_matter, body, path)
    if is_not_found_page(title, body):
        return None

    source = Source.SWIFT_BOOK if category == "book" else Source.SWIFT_ORG
    return CanonicalDocument(
        uri=Source.SWIFT_ORG.uri(f"{category}/{path.stem}"),
        source=source,
        title=title,
        content=body,
        kind=DocumentKind.ARTICLE,
        raw_markdown=body,
        file_path=str(path),
        content_hash=content_hash(text),
        last_indexed=modified_at(path),
    )


def load_archive_page(path: Path, root: Path) -> CanonicalDocument | None:
    """Legacy programming guide; front matter names the book and framework."""
    text = read_text(path)
    front_matter, body = parse_front_matter(text)
    book = str(front_matter.get("book") or first_segment(path, root) or "").strip()
    if not book:
        msg = f"Archive page has no book: {path}"
        raise DocumentLoadError(msg)

    title = _markdown_title(front_matter, body, path)
    if is_not_found_page(title, body):
        return None

    return CanonicalDocument(
        uri=Source.ARCHIVE.uri(f"{book}/{path.stem}"),
        source=Source.ARCHIVE,
        title=title,
        content=body,
        framework=str(front_matter.get("framework") or "").strip().lower(),
        kind=DocumentKind.ARTICLE,
        raw_markdown=body,
        file_path=str(path),
        content_hash=content_hash(text),
        last_indexed=modified_at(path),
        url=front_matter.get("url") or None,
    )


def load_hig_page(path: Path, root: Path) -> CanonicalDocument | None:
    """Design guideline page, grouped by category."""
    text = read_text(path)
    front_matter, body = parse_front_matter(text)
    category = str(front_matter.get("category") or first_segment(path, root) or "").strip()
    if not category:
        msg = f"Guideline page has no category: {path}"
        raise DocumentLoadError(msg)

    title = _markdown_title(front_matter, body, path)
    if is_not_found_page(title, body):
        return None

    return CanonicalDocument(
        uri=Source.HIG.uri(f"{category}/{path.stem}"),
        source=Source.HIG,
        title=title,
        content=body,
        kind=DocumentKind.ARTICLE,
        raw_markdown=body,
        file_path=str(path),
        content_hash=content_hash(text),
        last_indexed=modified_at(path),
        url=front_matter.get("url") or None,
    )
