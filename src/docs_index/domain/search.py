"""Value objects returned by index queries.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- No infrastructure dependencies

Ranks follow the full-text engine convention: lower (more negative) is better.
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field

from docs_index.domain.model import DocumentKind


SUMMARY_MAX_LENGTH = 1500


class SearchResult(BaseModel):
    """A single ranked documentation hit."""

    model_config = ConfigDict(frozen=True)

    uri: str
    source: str
    framework: str = ""
    title: str
    summary: str = ""
    file_path: str = ""
    word_count: int = 0
    kind: DocumentKind = DocumentKind.UNKNOWN
    rank: float = Field(default=0.0, description="Adjusted BM25 score, lower is better")
    summary_max_length: int = Field(default=SUMMARY_MAX_LENGTH, exclude=True, repr=False)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score(self) -> float:
        """Inverted rank so that higher means a better match."""
        return -self.rank

    @computed_field  # type: ignore[prop-decorator]
    @property
    def summary_truncated(self) -> bool:
        return self.summary.endswith("...") or len(self.summary) >= self.summary_max_length - 50


class SampleCodeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    framework: str
    title: str
    description: str
    zip_filename: str
    web_url: str
    rank: float = 0.0


class PackageResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    owner: str
    repository_url: str
    documentation_url: str | None = None
    stars: int = 0
    is_official: bool = False
    description: str | None = None
    last_updated: str | None = None


class CodeExampleResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    doc_uri: str
    code: str
    language: str = "swift"
    position: int = 0
    rank: float = 0.0


class FrameworkInfo(BaseModel):
    """Framework grouping with its registered spellings."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    import_name: str | None = None
    display_name: str | None = None
    document_count: int = 0


class IndexStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    schema_version: int
    document_count: int = 0
    sample_code_count: int = 0
    package_count: int = 0
    code_example_count: int = 0
    frameworks: dict[str, int] = Field(default_factory=dict)
