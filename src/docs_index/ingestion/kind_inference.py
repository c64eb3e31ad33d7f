"""Classify documentation pages whose crawler kind is ``unknown``.

The declaration signature is the only reliable signal: a page without one is an
article, otherwise the leading keyword decides.
"""

from __future__ import annotations

import re

from docs_index.domain.model import DocumentKind


_LEADING_ATTRIBUTE = re.compile(r"^@\w+(?:\([^)]*\))?\s*")
_WHITESPACE = re.compile(r"\s+")
_OPERATOR_SYMBOLS = frozenset("+-*/%=<>!&|^~?.")

_MODIFIERS = frozenset(
    {
        "public",
        "open",
        "internal",
        "fileprivate",
        "private",
        "package",
        "final",
        "nonisolated",
        "isolated",
        "mutating",
        "nonmutating",
        "override",
        "required",
        "convenience",
        "dynamic",
        "optional",
        "indirect",
        "lazy",
        "weak",
        "unowned",
        "distributed",
        "consuming",
        "borrowing",
    }
)

_TYPE_KEYWORDS = {
    "protocol": DocumentKind.PROTOCOL,
    "struct": DocumentKind.STRUCT,
    "class": DocumentKind.CLASS,
    "actor": DocumentKind.CLASS,
    "enum": DocumentKind.ENUM,
}

# ``class`` followed by one of these is a member modifier, not a type.
_CLASS_MEMBER_KEYWORDS = frozenset({"func", "var", "let", "subscript", "override", "final"})


def normalize_declaration(declaration: str) -> str:
    """Collapse to one line and drop leading attributes and access modifiers."""
    text = _WHITESPACE.sub(" ", declaration).strip()
    while True:
        stripped = _LEADING_ATTRIBUTE.sub("", text, count=1)
        if stripped == text:
            break
        text = stripped

    words = text.split(" ")
    while words and words[0] in _MODIFIERS:
        words.pop(0)
    return " ".join(words)


def infer_kind(declaration: str | None) -> DocumentKind:
    """Infer the kind from a declaration signature.

    >>> infer_kind("struct Foo")
    <DocumentKind.STRUCT: 'struct'>
    >>> infer_kind("func bar()")
    <DocumentKind.METHOD: 'method'>
    >>> infer_kind(None)
    <DocumentKind.ARTICLE: 'article'>
    """
    if declaration is None or not declaration.strip():
        return DocumentKind.ARTICLE

    raw = declaration.strip()
    text = normalize_declaration(raw)
    first, _, rest = text.partition(" ")
    second = rest.split(" ", 1)[0] if rest else ""

    if first == "macro" or "#externalMacro" in raw or raw.startswith(("@freestanding", "@attached")):
        return DocumentKind.MACRO

    if first in _TYPE_KEYWORDS and not (first == "class" and second in _CLASS_MEMBER_KEYWORDS):
        return _TYPE_KEYWORDS[first]

    if first in ("static", "class"):
        first = second

    if first == "case":
        return DocumentKind.PROPERTY
    if first == "associatedtype":
        return DocumentKind.TYPE_ALIAS
    if first in ("var", "let") or " var " in f" {text} " or " let " in f" {text} ":
        return DocumentKind.PROPERTY
    if first == "subscript" or first.startswith("subscript("):
        return DocumentKind.METHOD
    if first == "func" or first == "deinit" or _is_initializer(first):
        return DocumentKind.METHOD
    if first == "typealias":
        return DocumentKind.TYPE_ALIAS
    if first in ("prefix", "postfix", "infix", "operator") or text[:1] in _OPERATOR_SYMBOLS:
        return DocumentKind.OPERATOR
    return DocumentKind.UNKNOWN


def resolve_kind(upstream: DocumentKind, declaration: str | None) -> DocumentKind:
    """Keep a classified upstream kind; infer only for ``unknown``."""
    if upstream is not DocumentKind.UNKNOWN:
        return upstream
    return infer_kind(declaration)


def _is_initializer(token: str) -> bool:
    if not token.startswith("init"):
        return False
    return len(token) == 4 or token[4] in "(?!<"
