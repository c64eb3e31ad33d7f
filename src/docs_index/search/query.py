"""Free-text query parsing: source prefix, attribute filters and FTS5 sanitizing."""

from __future__ import annotations

from dataclasses import dataclass
import re

from docs_index.domain.model import Source
from docs_index.errors import InvalidQueryError


KNOWN_ATTRIBUTES = frozenset(
    {
        # Concurrency
        "MainActor",
        "Sendable",
        "preconcurrency",
        # Memory/copying
        "NSCopying",
        "frozen",
        # Objective-C interop
        "objc",
        "objcMembers",
        "nonobjc",
        "IBAction",
        "IBOutlet",
        # Compiler hints
        "discardableResult",
        "warn_unqualified_access",
        "inlinable",
        "usableFromInline",
        # Type features
        "dynamicMemberLookup",
        "dynamicCallable",
        "propertyWrapper",
        "resultBuilder",
        # Result builders
        "ViewBuilder",
        "ToolbarContentBuilder",
        "CommandsBuilder",
        "SceneBuilder",
        # Macros and availability
        "freestanding",
        "attached",
        "backDeployed",
        "available",
        # Property wrappers
        "State",
        "Binding",
        "Environment",
        "Published",
        "ObservedObject",
        "StateObject",
        "EnvironmentObject",
        "AppStorage",
        "SceneStorage",
        "FocusState",
        # Persistence macros
        "Model",
        "Query",
        "Attribute",
        "Relationship",
    }
)

_EXPLICIT_ATTRIBUTE = re.compile(r"@[A-Z][a-zA-Z0-9]*(?:\([^)]*\))?")
_TOKEN_SPLIT = re.compile(r"[\s\-]+")
_WORD_CHAR = re.compile(r"\w")
_PUNCTUATION = "!\"#$%&'()*+,./:;<=>?@[\\]^_`{|}~"


@dataclass(frozen=True)
class ParsedQuery:
    """Outcome of query parsing.

    ``text`` is the user's query after removing a detected source prefix and
    the ``@`` of attribute annotations. It drives title-match ranking, while
    ``fts_query`` is the quoted expression handed to FTS5.
    """

    original: str
    text: str
    source: Source | None
    source_detected: bool
    attributes: tuple[str, ...]
    fts_query: str

    @property
    def words(self) -> tuple[str, ...]:
        """Lowercase words longer than one character, used by the ranking heuristics."""
        return tuple(word for word in self.text.lower().split() if len(word) > 1)


def extract_source_prefix(query: str) -> tuple[Source | None, str]:
    """Split a leading ``<source-token>`` word off the query.

    The token must be followed by whitespace or the end of the string, so
    ``"swift-evolution actors"`` matches but ``"swift-evolutionary"`` does not.
    """
    stripped = query.strip()
    lowered = stripped.lower()
    for source in sorted(Source, key=lambda item: len(item.value), reverse=True):
        prefix = source.value
        if not lowered.startswith(prefix):
            continue
        rest = stripped[len(prefix) :]
        if rest and not rest[0].isspace():
            continue
        return source, rest.strip()
    return None, query


def extract_attribute_filters(query: str) -> tuple[list[str], str]:
    """Collect attribute filters and return the query with ``@`` markers removed.

    Explicit annotations (``@MainActor``, ``@available(iOS 15, *)``) are kept
    verbatim as filters; bare known names (``MainActor``) become ``@MainActor``.
    """
    attributes = [match.group(0) for match in _EXPLICIT_ATTRIBUTE.finditer(query)]
    search_text = _EXPLICIT_ATTRIBUTE.sub(lambda match: match.group(0)[1:], query)

    for word in search_text.split():
        bare = word.strip(_PUNCTUATION)
        candidate = f"@{bare}"
        if bare in KNOWN_ATTRIBUTES and candidate not in attributes:
            attributes.append(candidate)

    return attributes, search_text


def sanitize_fts_query(text: str) -> str:
    """Quote every token so FTS5 never sees user input as query syntax."""
    terms = []
    for token in _TOKEN_SPLIT.split(text):
        if not token or not _WORD_CHAR.search(token):
            continue
        terms.append('"' + token.replace('"', '""') + '"')
    return " ".join(terms)


def parse_query(raw: str, *, source: Source | str | None = None) -> ParsedQuery:
    """Parse a raw search string.

    Args:
        raw: Free text as typed by the caller.
        source: Explicit source filter. When given, no prefix detection runs.

    Raises:
        InvalidQueryError: the query is blank or has no searchable terms.
    """
    if raw is None or not raw.strip():
        msg = "Search query must not be empty"
        raise InvalidQueryError(msg)

    explicit_source = _coerce_source(source)
    detected = False
    remaining = raw.strip()
    if explicit_source is None:
        prefix_source, rest = extract_source_prefix(remaining)
        if prefix_source is not None:
            explicit_source = prefix_source
            detected = True
            # A bare source token is still a search term.
            remaining = rest or remaining

    attributes, search_text = extract_attribute_filters(remaining)
    fts_query = sanitize_fts_query(search_text)
    if not fts_query:
        msg = f"Search query has no searchable terms: {raw!r}"
        raise InvalidQueryError(msg)

    return ParsedQuery(
        original=raw,
        text=search_text.strip(),
        source=explicit_source,
        source_detected=detected,
        attributes=tuple(attributes),
        fts_query=fts_query,
    )


def _coerce_source(source: Source | str | None) -> Source | None:
    if source is None or isinstance(source, Source):
        return source
    resolved = Source.from_token(source)
    if resolved is None:
        msg = f"Unknown source filter: {source!r}"
        raise InvalidQueryError(msg)
    return resolved
