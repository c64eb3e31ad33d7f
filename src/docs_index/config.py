"""Centralized configuration for docs-index using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docs_index.domain.search import SUMMARY_MAX_LENGTH


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``DOCS_INDEX_*`` environment variables.

    Source directories are optional; the index builder skips any source whose
    directory or catalog is not configured.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCS_INDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    index_path: Path = Field(default=Path("search.db"), description="SQLite file holding the search index")

    # Crawled corpora (read-only inputs)
    docs_dir: Path | None = Field(default=None, description="API documentation root, one folder per framework")
    archive_dir: Path | None = Field(default=None, description="Legacy programming guides root")
    hig_dir: Path | None = Field(default=None, description="Design guidelines root")
    evolution_dir: Path | None = Field(default=None, description="Directory of evolution proposal markdown files")
    swift_org_dir: Path | None = Field(default=None, description="Language reference root, one folder per category")
    sample_code_catalog: Path | None = Field(default=None, description="Sample code catalog JSON file")
    packages_catalog: Path | None = Field(default=None, description="Package registry catalog JSON file")

    # Search settings
    default_search_limit: int = Field(default=20, ge=1, description="Results returned when no limit is given")
    max_search_limit: int = Field(default=100, ge=1, description="Upper bound accepted for a caller limit")
    overfetch_factor: int = Field(default=20, ge=1, description="Candidates fetched per requested result")
    overfetch_ceiling: int = Field(default=1000, ge=1, description="Maximum candidates fetched for re-ranking")
    summary_max_length: int = Field(default=SUMMARY_MAX_LENGTH, ge=200, description="Maximum stored summary length")

    # Build settings
    progress_interval: int = Field(default=100, ge=1, description="Documents between progress callbacks")
    package_progress_interval: int = Field(default=500, ge=1, description="Packages between progress callbacks")
    clear_before_build: bool = Field(default=True, description="Clear document rows before a full build")

    # SQLite tuning
    sqlite_cache_size_kb: int = Field(default=-65536, description="PRAGMA cache_size (negative means KiB)")
    sqlite_busy_timeout_ms: int = Field(default=30000, ge=0, description="PRAGMA busy_timeout")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_limits(self) -> "Settings":
        if self.default_search_limit > self.max_search_limit:
            raise ValueError(
                "DOCS_INDEX_DEFAULT_SEARCH_LIMIT must not exceed DOCS_INDEX_MAX_SEARCH_LIMIT "
                f"({self.default_search_limit} > {self.max_search_limit})."
            )
        if self.overfetch_ceiling < self.max_search_limit:
            raise ValueError(
                "DOCS_INDEX_OVERFETCH_CEILING must be at least DOCS_INDEX_MAX_SEARCH_LIMIT "
                "so every allowed limit can be satisfied."
            )
        return self

    def clamp_limit(self, limit: int | None) -> int:
        """Resolve a caller supplied limit against the configured bounds."""
        if limit is None or limit <= 0:
            return self.default_search_limit
        return min(limit, self.max_search_limit)

    def fetch_limit(self, limit: int) -> int:
        """Number of candidates to pull before in-memory re-ranking."""
        return min(limit * self.overfetch_factor, self.overfetch_ceiling)
