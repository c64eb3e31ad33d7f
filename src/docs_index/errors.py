"""Exception hierarchy for the documentation index.

Store operations raise these so callers (the async facade, the bulk builder)
can tell a malformed query apart from a broken database file.
"""

from __future__ import annotations


class DocsIndexError(RuntimeError):
    """Base class for every error raised by the index."""


class StoreNotReadyError(DocsIndexError):
    """Raised when the store is used before ``open()`` or after ``close()``."""

    def __init__(
        self, message: str = "Search index has not been opened. Call open() or build the index first."
    ) -> None:
        super().__init__(message)


class StorageEngineError(DocsIndexError):
    """Low-level SQLite failure, wrapped with the operation that triggered it."""


class StatementPreparationError(StorageEngineError):
    """A SQL statement could not be compiled."""


class WriteFailureError(StorageEngineError):
    """An insert, update or delete failed."""


class QueryFailureError(StorageEngineError):
    """A read query failed while executing."""


class InvalidQueryError(DocsIndexError, ValueError):
    """The caller supplied a query the index cannot run."""


class SchemaTooNewError(DocsIndexError):
    """The stored schema version is newer than this code understands."""

    def __init__(self, stored_version: int, supported_version: int) -> None:
        self.stored_version = stored_version
        self.supported_version = supported_version
        super().__init__(
            f"Index schema version {stored_version} is newer than supported version {supported_version}. "
            "Upgrade docs-index or delete the index file and rebuild it."
        )


class SchemaRebuildRequiredError(DocsIndexError):
    """A breaking migration has no automatic path and needs a full rebuild."""

    def __init__(self, stored_version: int, target_version: int, description: str) -> None:
        self.stored_version = stored_version
        self.target_version = target_version
        super().__init__(
            f"Index schema version {stored_version} requires migration to version {target_version} "
            f"({description}). Delete the index file and rebuild it with "
            "IndexBuilder.build(clear_existing=True)."
        )


class DocumentLoadError(DocsIndexError):
    """Raised when a crawled artifact cannot be converted into a document."""
