"""Unit tests for declaration based kind inference."""

import pytest

from docs_index.domain.model import DocumentKind
from docs_index.ingestion.kind_inference import infer_kind, normalize_declaration, resolve_kind


pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("declaration", "expected"),
    [
        (None, DocumentKind.ARTICLE),
        ("   ", DocumentKind.ARTICLE),
        ("struct Foo", DocumentKind.STRUCT),
        ("@MainActor @preconcurrency protocol View", DocumentKind.PROTOCOL),
        ("open class UIView : UIResponder", DocumentKind.CLASS),
        ("actor Counter", DocumentKind.CLASS),
        ("indirect enum Tree", DocumentKind.ENUM),
        ("func bar()", DocumentKind.METHOD),
        ("init?(rawValue: String)", DocumentKind.METHOD),
        ("init<T>(_ value: T)", DocumentKind.METHOD),
        ("deinit", DocumentKind.METHOD),
        ("subscript(index: Int) -> Element { get }", DocumentKind.METHOD),
        ("class func layerClass() -> AnyClass", DocumentKind.METHOD),
        ("static func == (lhs: Self, rhs: Self) -> Bool", DocumentKind.METHOD),
        ("var body: Self.Body { get }", DocumentKind.PROPERTY),
        ("nonisolated let id: ID", DocumentKind.PROPERTY),
        ("class var layerClass: AnyClass { get }", DocumentKind.PROPERTY),
        ("case automatic", DocumentKind.PROPERTY),
        ("typealias Body = Never", DocumentKind.TYPE_ALIAS),
        ("associatedtype Body : View", DocumentKind.TYPE_ALIAS),
        ("@freestanding(expression) macro stringify<T>(_ value: T) -> (T, String)", DocumentKind.MACRO),
        ("macro Observable()", DocumentKind.MACRO),
        ("prefix operator ..<", DocumentKind.OPERATOR),
        ("== (lhs: Self, rhs: Self) -> Bool", DocumentKind.OPERATOR),
        ("NS_ENUM(NSInteger, UIViewContentMode)", DocumentKind.UNKNOWN),
    ],
)
def test_infer_kind(declaration, expected):
    assert infer_kind(declaration) is expected


def test_normalize_declaration_strips_attributes_and_modifiers():
    declaration = "@available(iOS 13.0, *)\n@MainActor  public   final class  Coordinator"
    assert normalize_declaration(declaration) == "class Coordinator"


def test_resolve_kind_keeps_classified_upstream_kind():
    assert resolve_kind(DocumentKind.PROTOCOL, "struct Foo") is DocumentKind.PROTOCOL
    assert resolve_kind(DocumentKind.UNKNOWN, "struct Foo") is DocumentKind.STRUCT
    assert resolve_kind(DocumentKind.UNKNOWN, None) is DocumentKind.ARTICLE
