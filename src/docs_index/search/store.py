"""SQLite-backed document store with FTS5 search.

One :class:`DocumentStore` owns one connection. Every public method takes the
store lock for its whole duration, so exactly one logical operation touches the
connection at a time; callers on other threads simply wait.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
import logging
from pathlib import Path
import re
import sqlite3
import threading
from typing import Any, Literal

import orjson

from docs_index.config import Settings
from docs_index.domain.model import (
    CanonicalDocument,
    CodeExample,
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
from docs_index.errors import (
    InvalidQueryError,
    QueryFailureError,
    StatementPreparationError,
    StorageEngineError,
    StoreNotReadyError,
    WriteFailureError,
)
from docs_index.observability.tracing import create_span
from docs_index.search import aliases
from docs_index.search.availability import availability_from_payload, filter_by_availability, normalize_requirements
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
from docs_index.search.query import parse_query, sanitize_fts_query
from docs_index.search.ranking import QueryContext, RankingCandidate, infer_unknown_kind, rank_candidates
from docs_index.search.schema import PLATFORM_COLUMNS, SchemaManager, transaction
from docs_index.search.sqlite_pragmas import apply_write_pragmas


logger = logging.getLogger(__name__)

DocumentFormat = Literal["json", "markdown"]

STRUCTURED_LOOKUP_LIMIT = 50

_PREPARE_ERROR_MARKERS = ("syntax error", "no such table", "no such column", "no such function")
_WORD_CHAR = re.compile(r"\w")

_STRUCTURED_SELECT = """
SELECT s.uri, s.title, s.kind, f.framework, f.summary, m.word_count, m.file_path, m.source
FROM docs_structured s
JOIN docs_fts f ON s.uri = f.uri
JOIN docs_metadata m ON s.uri = m.uri
"""

_PLATFORM_SELECT = ", ".join(f"m.{column}" for column in PLATFORM_COLUMNS)


def _storage_error(exc: sqlite3.Error, operation: str, default: type[StorageEngineError]) -> StorageEngineError:
    message = str(exc)
    lowered = message.lower()
    error_type: type[StorageEngineError] = default
    if isinstance(exc, sqlite3.OperationalError) and any(marker in lowered for marker in _PREPARE_ERROR_MARKERS):
        error_type = StatementPreparationError
    return error_type(f"{operation} failed: {message}")


def _join_list(values: Sequence[str]) -> str | None:
    return ",".join(values) if values else None


def _recorded_availability(row: sqlite3.Row) -> dict[Platform, str | None]:
    return {platform: row[platform.column] for platform in Platform}


def _timestamp_from_iso(value: str | None) -> int | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable package timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _iso_from_timestamp(value: int | None) -> str | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


def _decode_payload(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError:
        logger.debug("Stored payload is not valid JSON")
        return None
    return payload if isinstance(payload, dict) else None


class DocumentStore:
    """Full-text index over normalized documents, sample code and packages.

    Example:
        >>> with DocumentStore(tmp_path / "search.db") as store:
        ...     store.index_document(document)
        ...     results = store.search("View", framework="swiftui")
    """

    def __init__(
        self,
        db_path: Path | str,
        *,
        settings: Settings | None = None,
        schema: SchemaManager | None = None,
    ) -> None:
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.settings = settings or Settings()
        self._schema = schema or SchemaManager()
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None

    # -- lifecycle -----------------------------------------------------------

    def open(self) -> None:
        """Open the database, apply pragmas and migrate the schema."""
        with self._lock:
            if self._conn is not None:
                return
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(str(self.db_path), check_same_thread=False, isolation_level=None)
                conn.row_factory = sqlite3.Row
                apply_write_pragmas(
                    conn,
                    cache_size_kb=self.settings.sqlite_cache_size_kb,
                    busy_timeout_ms=self.settings.sqlite_busy_timeout_ms,
                )
            except sqlite3.Error as exc:
                msg = f"Failed to open search index at {self.db_path}: {exc}"
                raise StorageEngineError(msg) from exc

            try:
                stored_version = self._schema.ensure_schema(conn)
            except BaseException:
                conn.close()
                raise

            self._conn = conn
            logger.info(
                "Opened search index",
                extra={"path": str(self.db_path), "stored_schema_version": stored_version},
            )

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> DocumentStore:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _session(
        self,
        operation: str,
        failure: type[StorageEngineError] = QueryFailureError,
    ) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._conn is None:
                raise StoreNotReadyError
            try:
                yield self._conn
            except sqlite3.Error as exc:
                raise _storage_error(exc, operation, failure) from exc

    # -- write path ----------------------------------------------------------

    def index_document(self, document: CanonicalDocument) -> None:
        """Insert or replace ``document`` and everything derived from it."""
        declaration = document.declaration.code if document.declaration else None
        attributes = extract_attributes(declaration)
        content = with_attributes(extract_optimized_content(document), attributes)
        summary = extract_summary(content, self.settings.summary_max_length)
        word_count = len(content.split())
        language = document.language or detect_code_language(content)

        payload_json = document.payload or orjson.dumps(document_payload_view(document)).decode()
        payload = _decode_payload(document.payload) or {}
        availability = document.availability.merged_over(availability_from_payload(payload))
        kind = document.kind.value
        source = document.source.value

        with self._session(f"Indexing {document.uri}", WriteFailureError) as conn, transaction(conn):
            if document.module and document.framework:
                aliases.register_alias(conn, document.framework, document.module)

            self._delete_fts_row(conn, document.uri)
            conn.execute(
                "INSERT INTO docs_fts (uri, source, framework, language, title, content, summary) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (document.uri, source, document.framework, language, document.title, content, summary),
            )
            conn.execute(
                f"""
                INSERT OR REPLACE INTO docs_metadata
                (uri, source, framework, language, file_path, content_hash, last_crawled, word_count,
                 source_type, package_id, json_data, {", ".join(PLATFORM_COLUMNS)}, availability_source)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    document.uri,
                    source,
                    document.framework,
                    language,
                    document.file_path,
                    document.content_hash,
                    int(document.last_indexed.timestamp()),
                    word_count,
                    "package" if document.package_id is not None else "apple",
                    document.package_id,
                    payload_json,
                    *(availability.get(platform) for platform in Platform),
                    availability.source,
                ),
            )
            conn.execute(
                """
                INSERT OR REPLACE INTO docs_structured
                (uri, url, title, kind, abstract, declaration, overview, module, platforms,
                 conforms_to, inherited_by, conforming_types, attributes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    document.uri,
                    document.url or document.uri,
                    document.title,
                    kind,
                    document.abstract,
                    declaration,
                    document.overview,
                    document.module,
                    _join_list(document.platforms),
                    _join_list(document.conforms_to),
                    _join_list(document.inherited_by),
                    _join_list(document.conforming_types),
                    _join_list(attributes),
                ),
            )
            self._replace_code_examples(conn, document.uri, document.code_examples)

    def index_code_examples(self, uri: str, examples: Sequence[CodeExample]) -> None:
        """Replace every code example stored for ``uri``."""
        with self._session(f"Indexing code examples for {uri}", WriteFailureError) as conn, transaction(conn):
            self._replace_code_examples(conn, uri, examples)

    def index_sample_code(self, entry: SampleCodeEntry) -> None:
        with self._session(f"Indexing sample code {entry.url}", WriteFailureError) as conn, transaction(conn):
            conn.execute(
                "DELETE FROM sample_code_fts WHERE rowid IN "
                "(SELECT rowid FROM sample_code_fts WHERE url = ?)",
                (entry.url,),
            )
            conn.execute(
                "INSERT INTO sample_code_fts (url, framework, title, description) VALUES (?, ?, ?, ?)",
                (entry.url, entry.framework, entry.title, entry.description),
            )
            conn.execute(
                f"""
                INSERT OR REPLACE INTO sample_code_metadata
                (url, framework, zip_filename, web_url, last_indexed, {", ".join(PLATFORM_COLUMNS)})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.url,
                    entry.framework,
                    entry.zip_filename,
                    entry.web_url,
                    int(datetime.now(timezone.utc).timestamp()),
                    *(entry.availability.get(platform) for platform in Platform),
                ),
            )

    def index_package(self, record: PackageRecord) -> int:
        """Upsert a package keyed by ``(owner, name)`` and return its id."""
        with self._session(f"Indexing package {record.owner}/{record.name}", WriteFailureError) as conn:
            with transaction(conn):
                conn.execute(
                    """
                    INSERT INTO packages
                    (name, owner, repository_url, documentation_url, stars,
                     is_apple_official, description, last_updated)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(owner, name) DO UPDATE SET
                        repository_url = excluded.repository_url,
                        documentation_url = excluded.documentation_url,
                        stars = excluded.stars,
                        is_apple_official = excluded.is_apple_official,
                        description = excluded.description,
                        last_updated = excluded.last_updated
                    """,
                    (
                        record.name,
                        record.owner,
                        record.repository_url,
                        record.documentation_url,
                        record.stars,
                        int(record.is_official),
                        record.description,
                        _timestamp_from_iso(record.last_updated),
                    ),
                )
                row = conn.execute(
                    "SELECT id FROM packages WHERE owner = ? AND name = ?",
                    (record.owner, record.name),
                ).fetchone()
            return int(row["id"])

    def add_package_dependency(
        self,
        package_id: int,
        depends_on_id: int,
        version_requirement: str | None = None,
    ) -> None:
        with self._session(f"Recording dependency {package_id} -> {depends_on_id}", WriteFailureError) as conn:
            conn.execute(
                """
                INSERT INTO package_dependencies (package_id, depends_on_package_id, version_requirement)
                VALUES (?, ?, ?)
                ON CONFLICT(package_id, depends_on_package_id) DO UPDATE SET
                    version_requirement = excluded.version_requirement
                """,
                (package_id, depends_on_id, version_requirement),
            )

    def register_framework_alias(self, identifier: str, display_name: str) -> None:
        with self._session(f"Registering alias {identifier}", WriteFailureError) as conn:
            aliases.register_alias(conn, identifier, display_name)

    def clear_index(self) -> None:
        """Delete every document row; sample code and packages are kept."""
        with self._session("Clearing index", WriteFailureError) as conn, transaction(conn):
            for table in ("docs_fts", "docs_metadata", "docs_structured", "doc_code_fts", "doc_code_examples"):
                conn.execute(f"DELETE FROM {table}")
        logger.info("Cleared document index")

    @staticmethod
    def _delete_fts_row(conn: sqlite3.Connection, uri: str) -> None:
        if _WORD_CHAR.search(uri):
            # Phrase match narrows the scan to candidate rows; the equality check keeps it exact.
            phrase = '"' + uri.replace('"', '""') + '"'
            conn.execute(
                "DELETE FROM docs_fts WHERE rowid IN "
                "(SELECT rowid FROM docs_fts WHERE docs_fts MATCH ? AND uri = ?)",
                (f"uri : {phrase}", uri),
            )
        else:
            conn.execute("DELETE FROM docs_fts WHERE uri = ?", (uri,))

    @staticmethod
    def _replace_code_examples(conn: sqlite3.Connection, uri: str, examples: Sequence[CodeExample]) -> None:
        conn.execute(
            "DELETE FROM doc_code_fts WHERE rowid IN (SELECT id FROM doc_code_examples WHERE doc_uri = ?)",
            (uri,),
        )
        conn.execute("DELETE FROM doc_code_examples WHERE doc_uri = ?", (uri,))
        for position, example in enumerate(examples):
            cursor = conn.execute(
                "INSERT INTO doc_code_examples (doc_uri, code, language, position) VALUES (?, ?, ?, ?)",
                (uri, example.code, example.language or "swift", position),
            )
            conn.execute("INSERT INTO doc_code_fts (rowid, code) VALUES (?, ?)", (cursor.lastrowid, example.code))

    # -- search --------------------------------------------------------------

    def search(
        self,
        query: str,
        *,
        source: Source | str | None = None,
        framework: str | None = None,
        language: str | None = None,
        limit: int | None = None,
        include_archive: bool = False,
        min_versions: Mapping[Platform | str, str] | None = None,
    ) -> list[SearchResult]:
        """Ranked full-text search.

        Args:
            query: Free text. A leading source token (``swift-evolution actors``)
                acts as a source filter when ``source`` is not given.
            source: Restrict results to one source.
            framework: Any spelling of a framework (``appintents``, ``App Intents``).
            language: ``swift`` or ``objc``.
            limit: Maximum results, clamped to the configured bounds.
            include_archive: Include legacy guides when no source is given.
            min_versions: Platform to version; documents introduced later are dropped.

        Raises:
            InvalidQueryError: blank query, unknown source or unknown platform.
        """
        parsed = parse_query(query, source=source)
        resolved_limit = self.settings.clamp_limit(limit)
        try:
            required = normalize_requirements(min_versions)
        except ValueError as exc:
            raise InvalidQueryError(str(exc)) from exc

        span_attributes = {
            "search.query": parsed.text,
            "search.source": parsed.source.value if parsed.source else None,
            "search.limit": resolved_limit,
        }
        with create_span("index.search", attributes=span_attributes) as span, self._session("Search") as conn:
            framework_id = aliases.resolve_identifier(conn, framework) if framework else None

            sql = f"""
                SELECT f.uri, f.source, f.framework, f.title, f.summary, m.file_path, m.word_count, s.kind,
                       {_PLATFORM_SELECT}, bm25(docs_fts) AS rank
                FROM docs_fts f
                JOIN docs_metadata m ON f.uri = m.uri
                LEFT JOIN docs_structured s ON f.uri = s.uri
                WHERE docs_fts MATCH ?
            """
            params: list[Any] = [parsed.fts_query]
            if parsed.source is not None:
                sql += " AND f.source = ?"
                params.append(parsed.source.value)
            elif not include_archive:
                sql += " AND f.source != ?"
                params.append(Source.ARCHIVE.value)
            if framework_id:
                sql += " AND f.framework = ?"
                params.append(framework_id)
            if language:
                sql += " AND f.language = ?"
                params.append(language)
            for attribute in parsed.attributes:
                sql += " AND s.attributes LIKE ?"
                params.append(f"%{attribute}%")
            sql += " ORDER BY rank LIMIT ?"
            params.append(self.settings.fetch_limit(resolved_limit))

            rows = conn.execute(sql, params).fetchall()

            by_uri = {row["uri"]: row for row in rows}
            candidates = [
                RankingCandidate(
                    uri=row["uri"],
                    title=row["title"],
                    kind=infer_unknown_kind(
                        row["title"],
                        DocumentKind.from_token(row["kind"]),
                        uri=row["uri"],
                        word_count=row["word_count"] or 0,
                    ),
                    source=row["source"],
                    framework=row["framework"] or "",
                    base_score=float(row["rank"]),
                )
                for row in rows
            ]
            context = QueryContext.from_parsed(parsed, framework=framework_id)
            ranked = rank_candidates(candidates, context)
            kept = filter_by_availability(
                ((pair, _recorded_availability(by_uri[pair[0].uri])) for pair in ranked),
                required,
            )[:resolved_limit]

            results = [
                SearchResult(
                    uri=candidate.uri,
                    source=candidate.source,
                    framework=candidate.framework,
                    title=candidate.title,
                    summary=by_uri[candidate.uri]["summary"] or "",
                    file_path=by_uri[candidate.uri]["file_path"] or "",
                    word_count=by_uri[candidate.uri]["word_count"] or 0,
                    kind=candidate.kind,
                    rank=score,
                    summary_max_length=self.settings.summary_max_length,
                )
                for candidate, score in kept
            ]
            span.set_attribute("search.candidates", len(rows))
            span.set_attribute("search.results", len(results))

        logger.debug("Search %r returned %d of %d candidates", parsed.text, len(results), len(rows))
        return results

    def get_document_content(self, uri: str, format: DocumentFormat = "json") -> str | None:  # noqa: A002
        """Return the stored page as JSON or markdown; ``None`` for an unknown uri."""
        if format not in ("json", "markdown"):
            msg = f"Unsupported document format: {format!r}"
            raise InvalidQueryError(msg)

        with self._session(f"Reading {uri}") as conn:
            row = conn.execute("SELECT json_data FROM docs_metadata WHERE uri = ? LIMIT 1", (uri,)).fetchone()
            raw = row["json_data"] if row is not None else None
            if raw is None:
                return self._content_from_fts(conn, uri, format)
            if format == "json":
                return raw

            payload = _decode_payload(raw)
            if payload is not None:
                if payload.get("rawMarkdown"):
                    return str(payload["rawMarkdown"])
                generated = render_markdown(payload)
                if generated.strip() and not is_title_only(generated, str(payload.get("title") or "")):
                    return generated
            return self._content_from_fts(conn, uri, format)

    @staticmethod
    def _content_from_fts(conn: sqlite3.Connection, uri: str, format: DocumentFormat) -> str | None:  # noqa: A002
        row = conn.execute("SELECT content FROM docs_fts WHERE uri = ? LIMIT 1", (uri,)).fetchone()
        if row is None:
            return None
        if format == "json":
            return orjson.dumps({"uri": uri, "rawMarkdown": row["content"]}).decode()
        return row["content"]

    # -- structured lookups --------------------------------------------------

    def _structured_lookup(self, operation: str, where: str, params: Sequence[Any], limit: int) -> list[SearchResult]:
        with self._session(operation) as conn:
            rows = conn.execute(f"{_STRUCTURED_SELECT} WHERE {where} ORDER BY s.title LIMIT ?", (*params, limit))
            return [
                SearchResult(
                    uri=row["uri"],
                    source=row["source"] or Source.API_DOCS.value,
                    framework=row["framework"] or "",
                    title=row["title"],
                    summary=row["summary"] or "",
                    file_path=row["file_path"] or "",
                    word_count=row["word_count"] or 0,
                    kind=DocumentKind.from_token(row["kind"]),
                    rank=0.0,
                    summary_max_length=self.settings.summary_max_length,
                )
                for row in rows.fetchall()
            ]

    @staticmethod
    def _with_kind(where: str, params: list[Any], kind: DocumentKind | str | None) -> tuple[str, list[Any]]:
        if kind is None:
            return where, params
        return f"{where} AND s.kind = ?", [*params, DocumentKind.from_token(kind).value]

    def search_by_kind(
        self,
        kind: DocumentKind | str,
        framework: str | None = None,
        limit: int = STRUCTURED_LOOKUP_LIMIT,
    ) -> list[SearchResult]:
        where, params = "s.kind = ?", [DocumentKind.from_token(kind).value]
        if framework:
            where += " AND f.framework = ?"
            params.append(self.resolve_framework_identifier(framework))
        return self._structured_lookup("Kind lookup", where, params, limit)

    def search_by_module(
        self,
        module: str,
        kind: DocumentKind | str | None = None,
        limit: int = STRUCTURED_LOOKUP_LIMIT,
    ) -> list[SearchResult]:
        where, params = self._with_kind("s.module = ?", [module], kind)
        return self._structured_lookup("Module lookup", where, params, limit)

    def search_by_declaration(
        self,
        pattern: str,
        kind: DocumentKind | str | None = None,
        limit: int = STRUCTURED_LOOKUP_LIMIT,
    ) -> list[SearchResult]:
        where, params = self._with_kind("s.declaration LIKE ?", [f"%{pattern}%"], kind)
        return self._structured_lookup("Declaration lookup", where, params, limit)

    def search_by_platform(
        self,
        platform: str,
        kind: DocumentKind | str | None = None,
        limit: int = STRUCTURED_LOOKUP_LIMIT,
    ) -> list[SearchResult]:
        where, params = self._with_kind("s.platforms LIKE ?", [f"%{platform}%"], kind)
        return self._structured_lookup("Platform lookup", where, params, limit)

    def search_conforms_to(self, protocol: str, limit: int = STRUCTURED_LOOKUP_LIMIT) -> list[SearchResult]:
        return self._structured_lookup("Conformance lookup", "s.conforms_to LIKE ?", [f"%{protocol}%"], limit)

    def search_inherited_by(self, type_name: str, limit: int = STRUCTURED_LOOKUP_LIMIT) -> list[SearchResult]:
        return self._structured_lookup("Inheritance lookup", "s.inherited_by LIKE ?", [f"%{type_name}%"], limit)

    def search_conforming_types(self, protocol: str, limit: int = STRUCTURED_LOOKUP_LIMIT) -> list[SearchResult]:
        return self._structured_lookup(
            "Conforming types lookup", "s.conforming_types LIKE ?", [f"%{protocol}%"], limit
        )

    # -- sample code, packages, code examples --------------------------------

    def search_sample_code(
        self,
        query: str,
        framework: str | None = None,
        limit: int | None = None,
        min_versions: Mapping[Platform | str, str] | None = None,
    ) -> list[SampleCodeResult]:
        fts_query = sanitize_fts_query(query or "")
        if not fts_query:
            msg = "Sample code query must not be empty"
            raise InvalidQueryError(msg)
        resolved_limit = self.settings.clamp_limit(limit)
        try:
            required = normalize_requirements(min_versions)
        except ValueError as exc:
            raise InvalidQueryError(str(exc)) from exc

        with self._session("Sample code search") as conn:
            sql = f"""
                SELECT f.url, f.framework, f.title, f.description, m.zip_filename, m.web_url,
                       {_PLATFORM_SELECT}, bm25(sample_code_fts) AS rank
                FROM sample_code_fts f
                JOIN sample_code_metadata m ON f.url = m.url
                WHERE sample_code_fts MATCH ?
            """
            params: list[Any] = [fts_query]
            if framework:
                sql += " AND f.framework = ?"
                params.append(aliases.resolve_identifier(conn, framework))
            sql += " ORDER BY rank LIMIT ?"
            params.append(self.settings.fetch_limit(resolved_limit) if required else resolved_limit)
            rows = conn.execute(sql, params).fetchall()

        kept = filter_by_availability(((row, _recorded_availability(row)) for row in rows), required)
        return [
            SampleCodeResult(
                url=row["url"],
                framework=row["framework"],
                title=row["title"],
                description=row["description"],
                zip_filename=row["zip_filename"],
                web_url=row["web_url"],
                rank=float(row["rank"]),
            )
            for row in kept[:resolved_limit]
        ]

    def search_packages(self, query: str, limit: int | None = None) -> list[PackageResult]:
        """Substring match over name, description and owner; most starred first."""
        if not query or not query.strip():
            msg = "Package query must not be empty"
            raise InvalidQueryError(msg)
        pattern = "%" + "%".join(query.split()) + "%"
        with self._session("Package search") as conn:
            rows = conn.execute(
                """
                SELECT id, name, owner, repository_url, documentation_url, stars, is_apple_official,
                       description, last_updated
                FROM packages
                WHERE name LIKE ? OR description LIKE ? OR owner LIKE ?
                ORDER BY stars DESC
                LIMIT ?
                """,
                (pattern, pattern, pattern, self.settings.clamp_limit(limit)),
            ).fetchall()
        return [
            PackageResult(
                id=row["id"],
                name=row["name"],
                owner=row["owner"],
                repository_url=row["repository_url"],
                documentation_url=row["documentation_url"],
                stars=row["stars"] or 0,
                is_official=bool(row["is_apple_official"]),
                description=row["description"],
                last_updated=_iso_from_timestamp(row["last_updated"]),
            )
            for row in rows
        ]

    def search_code_examples(
        self,
        query: str,
        language: str | None = None,
        limit: int | None = None,
    ) -> list[CodeExampleResult]:
        fts_query = sanitize_fts_query(query or "")
        if not fts_query:
            msg = "Code example query must not be empty"
            raise InvalidQueryError(msg)
        with self._session("Code example search") as conn:
            sql = """
                SELECT e.doc_uri, e.code, e.language, e.position, bm25(doc_code_fts) AS rank
                FROM doc_code_fts f
                JOIN doc_code_examples e ON e.id = f.rowid
                WHERE doc_code_fts MATCH ?
            """
            params: list[Any] = [fts_query]
            if language:
                sql += " AND e.language = ?"
                params.append(language)
            sql += " ORDER BY rank LIMIT ?"
            params.append(self.settings.clamp_limit(limit))
            rows = conn.execute(sql, params).fetchall()
        return [
            CodeExampleResult(
                doc_uri=row["doc_uri"],
                code=row["code"],
                language=row["language"] or "swift",
                position=row["position"] or 0,
                rank=float(row["rank"]),
            )
            for row in rows
        ]

    # -- frameworks and counts -----------------------------------------------

    def list_frameworks(self) -> dict[str, int]:
        with self._session("Listing frameworks") as conn:
            rows = conn.execute(
                "SELECT framework, COUNT(*) AS count FROM docs_metadata GROUP BY framework ORDER BY framework"
            ).fetchall()
        return {row["framework"]: row["count"] for row in rows if row["framework"]}

    def list_frameworks_with_aliases(self) -> list[FrameworkInfo]:
        with self._session("Listing framework aliases") as conn:
            rows = conn.execute(
                """
                SELECT m.framework,
                       COALESCE(a.import_name, m.framework) AS import_name,
                       COALESCE(a.display_name, m.framework) AS display_name,
                       COUNT(*) AS count
                FROM docs_metadata m
                LEFT JOIN framework_aliases a ON m.framework = a.identifier
                GROUP BY m.framework
                ORDER BY m.framework
                """
            ).fetchall()
        return [
            FrameworkInfo(
                identifier=row["framework"],
                import_name=row["import_name"],
                display_name=row["display_name"],
                document_count=row["count"],
            )
            for row in rows
            if row["framework"]
        ]

    def resolve_framework_identifier(self, value: str) -> str:
        with self._session("Resolving framework") as conn:
            return aliases.resolve_identifier(conn, value)

    def _count(self, table: str) -> int:
        with self._session(f"Counting {table}") as conn:
            return int(conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])

    def document_count(self) -> int:
        return self._count("docs_metadata")

    def sample_code_count(self) -> int:
        return self._count("sample_code_metadata")

    def package_count(self) -> int:
        return self._count("packages")

    def code_example_count(self) -> int:
        return self._count("doc_code_examples")

    def schema_version(self) -> int:
        with self._session("Reading schema version") as conn:
            return SchemaManager.read_version(conn)

    def statistics(self) -> IndexStatistics:
        with self._lock:
            return IndexStatistics(
                schema_version=self.schema_version(),
                document_count=self.document_count(),
                sample_code_count=self.sample_code_count(),
                package_count=self.package_count(),
                code_example_count=self.code_example_count(),
                frameworks=self.list_frameworks(),
            )

    def framework_availability(self, framework: str) -> PlatformAvailability:
        """Availability of the first document in ``framework`` that records any."""
        with self._session(f"Reading availability for {framework}") as conn:
            identifier = aliases.resolve_identifier(conn, framework)
            row = conn.execute(
                f"""
                SELECT {", ".join(PLATFORM_COLUMNS)}, availability_source
                FROM docs_metadata
                WHERE framework = ? AND min_ios IS NOT NULL
                LIMIT 1
                """,
                (identifier,),
            ).fetchone()
        if row is None:
            return PlatformAvailability()
        return PlatformAvailability.from_mapping(
            {platform: row[platform.column] for platform in Platform},
            source=row["availability_source"],
        )
