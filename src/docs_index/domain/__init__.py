"""Domain layer - pure types with no infrastructure dependencies.

- model: closed enums and the canonical document records handed to the store
- search: immutable result value objects returned by queries
"""

from docs_index.domain.model import (
    CanonicalDocument,
    CodeExample,
    Declaration,
    DocumentKind,
    PackageRecord,
    Platform,
    PlatformAvailability,
    SampleCodeEntry,
    Source,
)
from docs_index.domain.search import (
    CodeExampleResult,
    FrameworkInfo,
    IndexStatistics,
    PackageResult,
    SampleCodeResult,
    SearchResult,
)


__all__ = [
    "CanonicalDocument",
    "CodeExample",
    "CodeExampleResult",
    "Declaration",
    "DocumentKind",
    "FrameworkInfo",
    "IndexStatistics",
    "PackageRecord",
    "PackageResult",
    "Platform",
    "PlatformAvailability",
    "SampleCodeEntry",
    "SampleCodeResult",
    "SearchResult",
    "Source",
]
