"""Unit tests for YAML front matter helpers."""

import pytest

from docs_index.utils.front_matter import parse_front_matter, serialize_front_matter, strip_front_matter


pytestmark = pytest.mark.unit


def test_parse_front_matter_returns_metadata_and_body() -> None:
    content = "---\ntitle: Layout\ncategory: foundations\n---\n# Layout\n\nBody"

    metadata, body = parse_front_matter(content)

    assert metadata == {"title": "Layout", "category": "foundations"}
    assert body == "# Layout\n\nBody"


def test_parse_front_matter_without_block_returns_content() -> None:
    metadata, body = parse_front_matter("# Plain\n\nText")
    assert metadata == {}
    assert body == "# Plain\n\nText"


def test_parse_front_matter_accepts_bom_and_crlf() -> None:
    metadata, body = parse_front_matter("\ufeff---\r\ntitle: Colors\r\n---\r\nBody")
    assert metadata == {"title": "Colors"}
    assert body == "Body"


def test_invalid_yaml_is_treated_as_body() -> None:
    content = "---\ntitle: [unclosed\n---\nBody"
    metadata, body = parse_front_matter(content)
    assert metadata == {}
    assert body == content


def test_non_mapping_yaml_is_treated_as_body() -> None:
    content = "---\n- one\n- two\n---\nBody"
    assert parse_front_matter(content) == ({}, content)


def test_strip_front_matter_drops_unparseable_block() -> None:
    assert strip_front_matter("---\ntitle: [unclosed\n---\nBody") == "Body"
    assert strip_front_matter("Body only") == "Body only"


def test_serialize_front_matter_round_trip() -> None:
    text = serialize_front_matter({"title": "Typography", "book": "guide"}, "# Typography\n")
    assert text.startswith("---\nbook: guide\ntitle: Typography\n---\n")
    assert parse_front_matter(text) == ({"book": "guide", "title": "Typography"}, "# Typography\n")


def test_serialize_empty_metadata_returns_markdown() -> None:
    assert serialize_front_matter({}, "# Body") == "# Body"
