"""Language evolution proposals.

Only proposals that were accepted or implemented are indexed. A proposal that
names the compiler release it shipped in gets platform availability derived
from that release.
"""

from __future__ import annotations

from collections.abc import Iterator
import logging
from pathlib import Path
import re

from docs_index.domain.model import CanonicalDocument, DocumentKind, PlatformAvailability, Source
from docs_index.ingestion.adapters import (
    content_hash,
    first_heading,
    is_not_found_page,
    modified_at,
    read_text,
)
from docs_index.utils.front_matter import parse_front_matter


logger = logging.getLogger(__name__)

PROPOSAL_FILE_PATTERN = re.compile(r"^\d{4}-.*\.md$")
_PROPOSAL_ID_PATTERN = re.compile(r"^(?:SE-)?(\d{4})")
_STATUS_PATTERN = re.compile(r"\* Status: \*\*([^\*]+)\*\*")
_IMPLEMENTED_PATTERN = re.compile(r"Implemented \(Swift (\d+(?:\.\d+)*)\)")

# Compiler release -> (iOS, macOS) first shipping it.
SWIFT_VERSION_AVAILABILITY: dict[str, tuple[str, str]] = {
    "5.0": ("12.2", "10.14.4"),
    "5.1": ("13.0", "10.15"),
    "5.2": ("13.4", "10.15.4"),
    "5.3": ("14.0", "11.0"),
    "5.4": ("14.5", "11.3"),
    "5.5": ("15.0", "12.0"),
    "5.6": ("15.4", "12.3"),
    "5.7": ("16.0", "13.0"),
    "5.8": ("16.4", "13.3"),
    "5.9": ("17.0", "14.0"),
    "5.10": ("17.4", "14.4"),
    "6.0": ("18.0", "15.0"),
    "6.1": ("18.4", "15.4"),
    "6.2": ("26.0", "26.0"),
}


def discover_proposal_files(directory: Path) -> Iterator[Path]:
    if not directory.exists():
        return
    for path in sorted(directory.iterdir()):
        if path.is_file() and PROPOSAL_FILE_PATTERN.match(path.name):
            yield path


def proposal_id(filename: str) -> str:
    """``0296-async-await`` -> ``SE-0296``; unrecognized names are returned unchanged."""
    match = _PROPOSAL_ID_PATTERN.match(filename)
    return f"SE-{match.group(1)}" if match else filename


def proposal_status(markdown: str) -> str | None:
    match = _STATUS_PATTERN.search(markdown)
    return match.group(1).strip() if match else None


def is_accepted(status: str | None) -> bool:
    if not status:
        return False
    lowered = status.lower()
    return "implemented" in lowered or "accepted" in lowered


def availability_for_status(status: str | None) -> PlatformAvailability:
    """Map ``Implemented (Swift 5.5)`` to the first OS releases shipping that compiler."""
    if not status:
        return PlatformAvailability()
    match = _IMPLEMENTED_PATTERN.search(status)
    if match is None:
        return PlatformAvailability()
    versions = SWIFT_VERSION_AVAILABILITY.get(match.group(1))
    if versions is None:
        logger.debug("No platform mapping for Swift %s", match.group(1))
        return PlatformAvailability()
    ios, macos = versions
    return PlatformAvailability(ios=ios, macos=macos, source="derived")


def load_proposal(path: Path) -> CanonicalDocument | None:
    text = read_text(path)
    _, body = parse_front_matter(text)
    identifier = proposal_id(path.stem)
    title = first_heading(body) or identifier
    if is_not_found_page(title, body):
        return None

    status = proposal_status(body)
    if not is_accepted(status):
        logger.debug("Skipping %s with status %r", identifier, status)
        return None

    return CanonicalDocument(
        uri=Source.EVOLUTION.uri(identifier),
        source=Source.EVOLUTION,
        title=title,
        content=body,
        kind=DocumentKind.ARTICLE,
        raw_markdown=body,
        file_path=str(path),
        content_hash=content_hash(text),
        last_indexed=modified_at(path),
        availability=availability_for_status(status),
    )
