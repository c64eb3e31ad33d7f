"""SQLite schema definition and versioned migrations for the search index.

The schema version lives in ``PRAGMA user_version``. Opening a store folds over
the migrations newer than the stored version, then creates any missing tables
with ``IF NOT EXISTS`` and stamps the current version.

Two migration variants exist because FTS5 virtual tables cannot gain columns
through ``ALTER TABLE``:

* :class:`AdditiveMigration` adds plain columns or tables in place.
* :class:`BreakingMigration` changes a full-text table. It either rebuilds the
  table from rows already on disk or, with no rebuild function, refuses to open
  the store until it is deleted and rebuilt.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
import logging
import sqlite3

from docs_index.errors import SchemaRebuildRequiredError, SchemaTooNewError, StorageEngineError


logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 8

MigrationStep = Callable[[sqlite3.Connection], None]

DOCS_FTS_COLUMNS = ("uri", "source", "framework", "language", "title", "content", "summary")
PLATFORM_COLUMNS = ("min_ios", "min_macos", "min_tvos", "min_watchos", "min_visionos")

SCHEMA_SQL = """
CREATE VIRTUAL TABLE IF NOT EXISTS docs_fts USING fts5(
    uri,
    source,
    framework,
    language,
    title,
    content,
    summary,
    tokenize='porter unicode61'
);

CREATE TABLE IF NOT EXISTS docs_metadata (
    uri TEXT PRIMARY KEY,
    source TEXT NOT NULL DEFAULT 'apple-docs',
    framework TEXT NOT NULL,
    language TEXT NOT NULL DEFAULT 'swift',
    file_path TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    last_crawled INTEGER NOT NULL,
    word_count INTEGER NOT NULL,
    source_type TEXT DEFAULT 'apple',
    package_id INTEGER,
    json_data TEXT,
    min_ios TEXT,
    min_macos TEXT,
    min_tvos TEXT,
    min_watchos TEXT,
    min_visionos TEXT,
    availability_source TEXT,
    FOREIGN KEY (package_id) REFERENCES packages(id)
);

CREATE INDEX IF NOT EXISTS idx_source ON docs_metadata(source);
CREATE INDEX IF NOT EXISTS idx_framework ON docs_metadata(framework);
CREATE INDEX IF NOT EXISTS idx_language ON docs_metadata(language);
CREATE INDEX IF NOT EXISTS idx_source_type ON docs_metadata(source_type);
CREATE INDEX IF NOT EXISTS idx_min_ios ON docs_metadata(min_ios);
CREATE INDEX IF NOT EXISTS idx_min_macos ON docs_metadata(min_macos);
CREATE INDEX IF NOT EXISTS idx_min_tvos ON docs_metadata(min_tvos);
CREATE INDEX IF NOT EXISTS idx_min_watchos ON docs_metadata(min_watchos);
CREATE INDEX IF NOT EXISTS idx_min_visionos ON docs_metadata(min_visionos);

CREATE TABLE IF NOT EXISTS docs_structured (
    uri TEXT PRIMARY KEY,
    url TEXT NOT NULL,
    title TEXT NOT NULL,
    kind TEXT,
    abstract TEXT,
    declaration TEXT,
    overview TEXT,
    module TEXT,
    platforms TEXT,
    conforms_to TEXT,
    inherited_by TEXT,
    conforming_types TEXT,
    attributes TEXT,
    FOREIGN KEY (uri) REFERENCES docs_metadata(uri) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_docs_kind ON docs_structured(kind);
CREATE INDEX IF NOT EXISTS idx_docs_module ON docs_structured(module);
CREATE INDEX IF NOT EXISTS idx_docs_attributes ON docs_structured(attributes);

CREATE TABLE IF NOT EXISTS framework_aliases (
    identifier TEXT PRIMARY KEY,
    import_name TEXT NOT NULL,
    display_name TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_alias_import ON framework_aliases(import_name);
CREATE INDEX IF NOT EXISTS idx_alias_display ON framework_aliases(display_name);

CREATE TABLE IF NOT EXISTS packages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    owner TEXT NOT NULL,
    repository_url TEXT NOT NULL,
    documentation_url TEXT,
    stars INTEGER,
    last_updated INTEGER,
    is_apple_official INTEGER DEFAULT 0,
    description TEXT,
    UNIQUE(owner, name)
);

CREATE INDEX IF NOT EXISTS idx_package_owner ON packages(owner);
CREATE INDEX IF NOT EXISTS idx_package_official ON packages(is_apple_official);

CREATE TABLE IF NOT EXISTS package_dependencies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    package_id INTEGER NOT NULL,
    depends_on_package_id INTEGER NOT NULL,
    version_requirement TEXT,
    FOREIGN KEY (package_id) REFERENCES packages(id),
    FOREIGN KEY (depends_on_package_id) REFERENCES packages(id),
    UNIQUE(package_id, depends_on_package_id)
);

CREATE INDEX IF NOT EXISTS idx_pkg_dep_package ON package_dependencies(package_id);
CREATE INDEX IF NOT EXISTS idx_pkg_dep_depends ON package_dependencies(depends_on_package_id);

CREATE VIRTUAL TABLE IF NOT EXISTS sample_code_fts USING fts5(
    url,
    framework,
    title,
    description,
    tokenize='porter unicode61'
);

CREATE TABLE IF NOT EXISTS sample_code_metadata (
    url TEXT PRIMARY KEY,
    framework TEXT NOT NULL,
    zip_filename TEXT NOT NULL,
    web_url TEXT NOT NULL,
    last_indexed INTEGER,
    min_ios TEXT,
    min_macos TEXT,
    min_tvos TEXT,
    min_watchos TEXT,
    min_visionos TEXT
);

CREATE INDEX IF NOT EXISTS idx_sample_framework ON sample_code_metadata(framework);
CREATE INDEX IF NOT EXISTS idx_sample_min_ios ON sample_code_metadata(min_ios);
CREATE INDEX IF NOT EXISTS idx_sample_min_macos ON sample_code_metadata(min_macos);
CREATE INDEX IF NOT EXISTS idx_sample_min_tvos ON sample_code_metadata(min_tvos);
CREATE INDEX IF NOT EXISTS idx_sample_min_watchos ON sample_code_metadata(min_watchos);
CREATE INDEX IF NOT EXISTS idx_sample_min_visionos ON sample_code_metadata(min_visionos);

CREATE TABLE IF NOT EXISTS doc_code_examples (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    doc_uri TEXT NOT NULL,
    code TEXT NOT NULL,
    language TEXT DEFAULT 'swift',
    position INTEGER DEFAULT 0,
    FOREIGN KEY (doc_uri) REFERENCES docs_metadata(uri)
);

CREATE INDEX IF NOT EXISTS idx_code_doc_uri ON doc_code_examples(doc_uri);
CREATE INDEX IF NOT EXISTS idx_code_language ON doc_code_examples(language);

CREATE VIRTUAL TABLE IF NOT EXISTS doc_code_fts USING fts5(
    code,
    tokenize='unicode61'
);
"""

_CODE_EXAMPLES_SQL = """
CREATE TABLE IF NOT EXISTS doc_code_examples (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    doc_uri TEXT NOT NULL,
    code TEXT NOT NULL,
    language TEXT DEFAULT 'swift',
    position INTEGER DEFAULT 0
);
CREATE VIRTUAL TABLE IF NOT EXISTS doc_code_fts USING fts5(code, tokenize='unicode61');
"""


@dataclass(frozen=True)
class AdditiveMigration:
    """In-place change: new plain columns, tables or indexes."""

    version: int
    description: str
    apply: MigrationStep

    @property
    def breaking(self) -> bool:
        return False


@dataclass(frozen=True)
class BreakingMigration:
    """Full-text change that needs the FTS table rebuilt.

    ``rebuild`` repopulates the table from rows already stored. Without one the
    migration cannot run and the store must be deleted and rebuilt.
    """

    version: int
    description: str
    rebuild: MigrationStep | None = None

    @property
    def breaking(self) -> bool:
        return True

    def apply(self, conn: sqlite3.Connection) -> None:
        if self.rebuild is None:
            msg = f"Migration to version {self.version} has no automatic rebuild"
            raise RuntimeError(msg)
        self.rebuild(conn)


Migration = AdditiveMigration | BreakingMigration


# --- helpers used by migration steps ---------------------------------------


def table_columns(conn: sqlite3.Connection, table: str) -> tuple[str, ...]:
    """Return column names for a table (virtual tables included), empty if missing."""
    try:
        cursor = conn.execute(f"SELECT * FROM {table} LIMIT 0")
    except sqlite3.OperationalError as exc:
        if "no such table" in str(exc).lower():
            return ()
        raise
    return tuple(description[0] for description in cursor.description)


def add_columns(conn: sqlite3.Connection, table: str, columns: Sequence[tuple[str, str]]) -> None:
    """``ALTER TABLE ... ADD COLUMN`` for each column, skipping ones already present.

    A missing table is skipped as well; table creation after the migrations
    produces it with the full current column set.
    """
    for name, declaration in columns:
        try:
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {name} {declaration}")
        except sqlite3.OperationalError as exc:
            message = str(exc).lower()
            if "duplicate column name" in message or "no such table" in message:
                logger.debug("Skipping %s.%s: %s", table, name, exc)
                continue
            raise


def rebuild_docs_fts(conn: sqlite3.Connection, columns: Sequence[str], fill: Mapping[str, str]) -> None:
    """Recreate ``docs_fts`` with ``columns``, copying rows already indexed.

    Columns the old table lacks are populated from ``fill`` SQL expressions,
    evaluated against the old row ``f`` joined to ``docs_metadata m``.
    """
    existing = table_columns(conn, "docs_fts")
    if not existing:
        return
    if all(column in existing for column in columns):
        logger.debug("docs_fts already has columns %s", ", ".join(columns))
        return

    select_list = ", ".join(f"f.{column}" if column in existing else fill[column] for column in columns)
    column_list = ", ".join(columns)
    conn.execute("DROP TABLE IF EXISTS docs_fts_rebuild")
    conn.execute(f"CREATE VIRTUAL TABLE docs_fts_rebuild USING fts5({column_list}, tokenize='porter unicode61')")
    conn.execute(
        f"INSERT INTO docs_fts_rebuild ({column_list}) "
        f"SELECT {select_list} FROM docs_fts f LEFT JOIN docs_metadata m ON m.uri = f.uri"
    )
    copied = conn.execute("SELECT count(*) FROM docs_fts_rebuild").fetchone()[0]
    conn.execute("DROP TABLE docs_fts")
    conn.execute("ALTER TABLE docs_fts_rebuild RENAME TO docs_fts")
    logger.info("Rebuilt docs_fts with columns (%s): %d rows copied", column_list, copied)


# --- migration steps -------------------------------------------------------


def _add_code_example_tables(conn: sqlite3.Connection) -> None:
    for statement in _CODE_EXAMPLES_SQL.split(";"):
        if statement.strip():
            conn.execute(statement)


def _add_json_payload(conn: sqlite3.Connection) -> None:
    add_columns(conn, "docs_metadata", [("json_data", "TEXT")])


def _add_source_field(conn: sqlite3.Connection) -> None:
    add_columns(conn, "docs_metadata", [("source", "TEXT NOT NULL DEFAULT 'apple-docs'")])
    rebuild_docs_fts(
        conn,
        ("uri", "source", "framework", "title", "content", "summary"),
        {"source": "COALESCE(m.source, 'apple-docs')"},
    )


def _add_language_field(conn: sqlite3.Connection) -> None:
    add_columns(conn, "docs_metadata", [("language", "TEXT NOT NULL DEFAULT 'swift'")])
    rebuild_docs_fts(
        conn,
        DOCS_FTS_COLUMNS,
        {
            "source": "COALESCE(m.source, 'apple-docs')",
            "language": "COALESCE(m.language, 'swift')",
        },
    )


def _add_document_availability(conn: sqlite3.Connection) -> None:
    add_columns(
        conn,
        "docs_metadata",
        [(column, "TEXT") for column in PLATFORM_COLUMNS] + [("availability_source", "TEXT")],
    )


def _add_sample_code_availability(conn: sqlite3.Connection) -> None:
    add_columns(conn, "sample_code_metadata", [(column, "TEXT") for column in PLATFORM_COLUMNS])


def _add_structured_attributes(conn: sqlite3.Connection) -> None:
    add_columns(conn, "docs_structured", [("attributes", "TEXT")])


MIGRATIONS: tuple[Migration, ...] = (
    AdditiveMigration(2, "code example tables", _add_code_example_tables),
    AdditiveMigration(3, "json payload column", _add_json_payload),
    BreakingMigration(4, "source field on documents", _add_source_field),
    BreakingMigration(5, "language field on documents", _add_language_field),
    AdditiveMigration(6, "document availability columns", _add_document_availability),
    AdditiveMigration(7, "sample code availability columns", _add_sample_code_availability),
    AdditiveMigration(8, "structured attributes column", _add_structured_attributes),
)


def create_tables(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA_SQL)


@contextmanager
def transaction(conn: sqlite3.Connection):
    """Explicit BEGIN/COMMIT for an autocommit connection; rolls back on error."""
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


class SchemaManager:
    """Owns the schema version and applies pending migrations at open time."""

    def __init__(
        self,
        migrations: Sequence[Migration] = MIGRATIONS,
        *,
        current_version: int = CURRENT_SCHEMA_VERSION,
        create: MigrationStep = create_tables,
    ) -> None:
        versions = [migration.version for migration in migrations]
        if versions != sorted(versions) or len(set(versions)) != len(versions):
            msg = f"Migrations must have strictly ascending versions: {versions}"
            raise ValueError(msg)
        if versions and versions[-1] > current_version:
            msg = f"Migration version {versions[-1]} exceeds current schema version {current_version}"
            raise ValueError(msg)
        self.migrations = tuple(migrations)
        self.current_version = current_version
        self._create = create

    @staticmethod
    def read_version(conn: sqlite3.Connection) -> int:
        return int(conn.execute("PRAGMA user_version").fetchone()[0])

    @staticmethod
    def write_version(conn: sqlite3.Connection, version: int) -> None:
        conn.execute(f"PRAGMA user_version = {int(version)}")

    def pending(self, stored_version: int) -> list[Migration]:
        if stored_version == 0:
            return []
        return [migration for migration in self.migrations if migration.version > stored_version]

    def ensure_schema(self, conn: sqlite3.Connection) -> int:
        """Bring ``conn`` to the current version and return the version found on disk.

        Raises:
            SchemaTooNewError: the store was written by newer code.
            SchemaRebuildRequiredError: a pending breaking migration has no rebuild path.
            StorageEngineError: SQLite failed while migrating.
        """
        stored_version = self.read_version(conn)
        if stored_version > self.current_version:
            raise SchemaTooNewError(stored_version, self.current_version)

        pending = self.pending(stored_version)
        for migration in pending:
            if isinstance(migration, BreakingMigration) and migration.rebuild is None:
                raise SchemaRebuildRequiredError(stored_version, migration.version, migration.description)

        try:
            for migration in pending:
                logger.info(
                    "Migrating index schema to version %d (%s)",
                    migration.version,
                    migration.description,
                    extra={"breaking": migration.breaking},
                )
                with transaction(conn):
                    migration.apply(conn)
                    self.write_version(conn, migration.version)

            self._create(conn)
            self.write_version(conn, self.current_version)
        except sqlite3.Error as exc:
            msg = f"Failed to migrate index schema from version {stored_version}: {exc}"
            raise StorageEngineError(msg) from exc

        if pending:
            logger.info("Index schema migrated from version %d to %d", stored_version, self.current_version)
        return stored_version
