"""Heuristic re-ranking on top of FTS5 ``bm25()``.

``bm25()`` is negative and lower is better. Each scoring function returns a
multiplier; the multipliers are combined by product and the adjusted score is
``bm25 / product``. A multiplier below 1 therefore pushes a candidate towards
the top and one above 1 pushes it down.

The constants were tuned by hand against real corpora; only their relative
ordering carries meaning.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import math

from docs_index.domain.model import DocumentKind, Source
from docs_index.search.query import ParsedQuery


@dataclass(frozen=True)
class RankingCandidate:
    uri: str
    title: str
    kind: DocumentKind
    source: str
    framework: str
    base_score: float


@dataclass(frozen=True)
class QueryContext:
    """Query facts the scoring functions need, computed once per search."""

    words: tuple[str, ...]
    text: str
    single_framework: bool = False

    @classmethod
    def from_parsed(cls, parsed: ParsedQuery, *, framework: str | None = None) -> QueryContext:
        return cls(words=parsed.words, text=parsed.text.lower(), single_framework=bool(framework))


ScoringFunction = Callable[[RankingCandidate, QueryContext], float]

_KIND_KEYWORDS = {
    "protocol": DocumentKind.PROTOCOL,
    "class": DocumentKind.CLASS,
    "struct": DocumentKind.STRUCT,
}

_SOURCE_WEIGHTS = {
    Source.API_DOCS.value: 1.0,
    Source.ARCHIVE.value: 1.5,
    Source.EVOLUTION.value: 1.3,
    Source.SWIFT_BOOK.value: 0.9,
    Source.SWIFT_ORG.value: 0.9,
}

_CORE_RANKING_KINDS = frozenset(
    {DocumentKind.PROTOCOL, DocumentKind.CLASS, DocumentKind.STRUCT, DocumentKind.FRAMEWORK}
)


def kind_multiplier(candidate: RankingCandidate, context: QueryContext) -> float:
    if candidate.kind in _CORE_RANKING_KINDS:
        return 0.5
    if candidate.kind in (DocumentKind.PROPERTY, DocumentKind.METHOD):
        return 2.0
    return 1.0


def source_multiplier(candidate: RankingCandidate, context: QueryContext) -> float:
    # Release notes mention nearly every API but are rarely the answer.
    if "release-notes" in candidate.uri:
        return 2.5
    return _SOURCE_WEIGHTS.get(candidate.source, 1.0)


def title_match_boost(candidate: RankingCandidate, context: QueryContext) -> float:
    words = context.words
    if not words:
        return 1.0
    title = candidate.title.lower()
    title_words = title.split()

    if len(words) <= 3 and title == " ".join(words):
        return 0.05
    if title_words and title_words[0] == words[0]:
        return 0.15
    if all(word in title for word in words):
        return 0.3
    if any(word in title for word in words):
        return 0.6
    return 1.0


def separator_penalty(candidate: RankingCandidate, context: QueryContext) -> float:
    """Nested titles (``View.Scale``) should not outrank their parent for ``View``."""
    if "." not in context.text and "." in candidate.title:
        return 2.0
    return 1.0


def kind_keyword_boost(candidate: RankingCandidate, context: QueryContext) -> float:
    for keyword, kind in _KIND_KEYWORDS.items():
        if keyword in context.text and candidate.kind is kind:
            return 0.4
    return 1.0


def framework_core_type_boost(candidate: RankingCandidate, context: QueryContext) -> float:
    if context.single_framework and len(context.words) == 1 and candidate.kind in _CORE_RANKING_KINDS:
        return 0.5
    return 1.0


def long_title_penalty(candidate: RankingCandidate, context: QueryContext) -> float:
    if len(context.words) <= 2 and len(candidate.title) > 50:
        return 1.3
    return 1.0


DEFAULT_SCORERS: tuple[ScoringFunction, ...] = (
    kind_multiplier,
    source_multiplier,
    title_match_boost,
    separator_penalty,
    kind_keyword_boost,
    framework_core_type_boost,
    long_title_penalty,
)


def combined_multiplier(
    candidate: RankingCandidate,
    context: QueryContext,
    scorers: Sequence[ScoringFunction] = DEFAULT_SCORERS,
) -> float:
    return math.prod(scorer(candidate, context) for scorer in scorers)


def adjusted_score(
    candidate: RankingCandidate,
    context: QueryContext,
    scorers: Sequence[ScoringFunction] = DEFAULT_SCORERS,
) -> float:
    return candidate.base_score / combined_multiplier(candidate, context, scorers)


def rank_candidates(
    candidates: Sequence[RankingCandidate],
    context: QueryContext,
    scorers: Sequence[ScoringFunction] = DEFAULT_SCORERS,
) -> list[tuple[RankingCandidate, float]]:
    """Return ``(candidate, adjusted score)`` pairs sorted best first.

    Ties keep the engine's original order.
    """
    scored = [(candidate, adjusted_score(candidate, context, scorers)) for candidate in candidates]
    scored.sort(key=lambda item: item[1])
    return scored


_OPERATOR_PREFIXES = ("+", "-", "*", "/", "==", "!=", "<", ">")


def _path_depth(uri: str) -> int:
    _, _, path = uri.partition("://")
    return len([part for part in path.split("/") if part and part != "documentation"])


def infer_unknown_kind(title: str, kind: DocumentKind, *, uri: str = "", word_count: int = 0) -> DocumentKind:
    """Guess a ranking kind for rows stored as ``unknown``.

    Title shape is checked first (call signatures, operators, lowercase
    members, ``...Delegate`` protocols). API reference uris then use path depth:
    ``apple-docs://swiftui/View`` is a type, ``apple-docs://swiftui/view/body``
    a member. Long shallow pages with a capitalized title count as types.
    """
    if kind is not DocumentKind.UNKNOWN:
        return kind

    trimmed = title.strip()
    first = trimmed[:1]
    if "(_:" in trimmed or ("(" in trimmed and (":)" in trimmed or trimmed.endswith(")"))):
        return DocumentKind.METHOD
    if trimmed.startswith(_OPERATOR_PREFIXES):
        return DocumentKind.METHOD
    if len(trimmed.split()) == 1 and first.islower():
        return DocumentKind.PROPERTY
    if trimmed.lower().endswith(("protocol", "delegate")):
        return DocumentKind.PROTOCOL

    depth = _path_depth(uri)
    if uri.startswith(f"{Source.API_DOCS.value}://"):
        if depth <= 2 and first.isupper():
            return DocumentKind.STRUCT
        if depth > 2 and first.islower():
            return DocumentKind.PROPERTY
    if word_count > 500 and depth <= 2 and first.isupper():
        return DocumentKind.STRUCT
    return kind
