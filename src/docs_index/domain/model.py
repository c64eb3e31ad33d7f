"""Core domain types for indexed documentation.

Kinds, sources and platforms are closed enums; their string values are only
used when reading from or writing to SQLite.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class DocumentKind(str, Enum):
    """Structural classification of a documented entity."""

    PROTOCOL = "protocol"
    CLASS = "class"
    STRUCT = "struct"
    ENUM = "enum"
    FUNCTION = "function"
    PROPERTY = "property"
    METHOD = "method"
    OPERATOR = "operator"
    TYPE_ALIAS = "typealias"
    MACRO = "macro"
    ARTICLE = "article"
    TUTORIAL = "tutorial"
    COLLECTION = "collection"
    FRAMEWORK = "framework"
    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, value: str | None) -> DocumentKind:
        if not value:
            return cls.UNKNOWN
        token = value.strip().lower()
        if token == "type_alias":
            token = "typealias"
        try:
            return cls(token)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_core_type(self) -> bool:
        return self in _CORE_TYPES

    @property
    def is_member(self) -> bool:
        return self in _MEMBERS


_CORE_TYPES = frozenset(
    {DocumentKind.PROTOCOL, DocumentKind.CLASS, DocumentKind.STRUCT, DocumentKind.ENUM, DocumentKind.TYPE_ALIAS}
)
_MEMBERS = frozenset({DocumentKind.METHOD, DocumentKind.PROPERTY, DocumentKind.OPERATOR, DocumentKind.MACRO})


class Source(str, Enum):
    """Coarse provenance category; the value doubles as the uri scheme."""

    API_DOCS = "apple-docs"
    ARCHIVE = "apple-archive"
    EVOLUTION = "swift-evolution"
    SWIFT_ORG = "swift-org"
    SWIFT_BOOK = "swift-book"
    HIG = "hig"
    PACKAGES = "packages"

    @classmethod
    def from_token(cls, value: str | None) -> Source | None:
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    def uri(self, path: str) -> str:
        return f"{self.value}://{path}"


class Platform(str, Enum):
    """Platforms with a tracked minimum version."""

    IOS = "ios"
    MACOS = "macos"
    TVOS = "tvos"
    WATCHOS = "watchos"
    VISIONOS = "visionos"

    @property
    def column(self) -> str:
        return f"min_{self.value}"

    @classmethod
    def from_token(cls, value: str) -> Platform:
        token = value.strip().lower().replace(" ", "")
        if token == "ipados":
            token = "ios"
        try:
            return cls(token)
        except ValueError:
            msg = f"Unknown platform: {value}"
            raise ValueError(msg) from None


@dataclass(frozen=True)
class PlatformAvailability:
    """Minimum versions per platform; ``None`` means unknown."""

    ios: str | None = None
    macos: str | None = None
    tvos: str | None = None
    watchos: str | None = None
    visionos: str | None = None
    source: str | None = None

    def get(self, platform: Platform) -> str | None:
        return getattr(self, platform.value)

    def as_mapping(self) -> dict[Platform, str | None]:
        return {platform: self.get(platform) for platform in Platform}

    @property
    def is_empty(self) -> bool:
        return all(self.get(platform) is None for platform in Platform)

    def merged_over(self, fallback: PlatformAvailability) -> PlatformAvailability:
        """Return availability preferring our values, filling gaps from ``fallback``."""
        if self.is_empty:
            return fallback
        values = {platform.value: self.get(platform) or fallback.get(platform) for platform in Platform}
        return PlatformAvailability(**values, source=self.source or fallback.source)

    @classmethod
    def from_mapping(
        cls, versions: Mapping[Platform, str | None], *, source: str | None = None
    ) -> PlatformAvailability:
        return cls(**{platform.value: versions.get(platform) for platform in Platform}, source=source)


@dataclass(frozen=True)
class Declaration:
    code: str
    language: str | None = "swift"


@dataclass(frozen=True)
class CodeExample:
    code: str
    language: str | None = "swift"
    caption: str | None = None


@dataclass(frozen=True)
class CanonicalDocument:
    """Normalized document produced by an ingestion adapter, ready for the store."""

    uri: str
    source: Source
    title: str
    content: str
    framework: str = ""
    kind: DocumentKind = DocumentKind.UNKNOWN
    language: str | None = None
    abstract: str | None = None
    declaration: Declaration | None = None
    overview: str | None = None
    module: str | None = None
    platforms: tuple[str, ...] = ()
    conforms_to: tuple[str, ...] = ()
    inherited_by: tuple[str, ...] = ()
    conforming_types: tuple[str, ...] = ()
    raw_markdown: str | None = None
    file_path: str = ""
    content_hash: str = ""
    last_indexed: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    availability: PlatformAvailability = field(default_factory=PlatformAvailability)
    code_examples: tuple[CodeExample, ...] = ()
    payload: str | None = None
    package_id: int | None = None
    url: str | None = None


@dataclass(frozen=True)
class SampleCodeEntry:
    url: str
    framework: str
    title: str
    description: str
    zip_filename: str
    web_url: str
    availability: PlatformAvailability = field(default_factory=PlatformAvailability)


@dataclass(frozen=True)
class PackageRecord:
    owner: str
    name: str
    repository_url: str
    description: str | None = None
    stars: int = 0
    is_official: bool = False
    documentation_url: str | None = None
    last_updated: str | None = None
