"""Unit tests for query parsing and FTS5 sanitizing."""

import pytest

from docs_index.domain.model import Source
from docs_index.errors import InvalidQueryError
from docs_index.search.query import (
    extract_attribute_filters,
    extract_source_prefix,
    parse_query,
    sanitize_fts_query,
)


pytestmark = pytest.mark.unit


class TestSourcePrefix:
    def test_prefix_becomes_source_filter(self):
        parsed = parse_query("swift-evolution actors")

        assert parsed.source is Source.EVOLUTION
        assert parsed.source_detected is True
        assert parsed.text == "actors"
        assert parsed.fts_query == '"actors"'

    def test_prefix_must_be_a_whole_word(self):
        source, remaining = extract_source_prefix("swift-evolutionary ideas")
        assert source is None
        assert remaining == "swift-evolutionary ideas"

    def test_prefix_is_case_insensitive(self):
        source, remaining = extract_source_prefix("HIG buttons")
        assert source is Source.HIG
        assert remaining == "buttons"

    @pytest.mark.parametrize(
        ("query", "source", "fts_query"),
        [
            ("packages", Source.PACKAGES, '"packages"'),
            ("swift-evolution", Source.EVOLUTION, '"swift" "evolution"'),
            ("  HIG ", Source.HIG, '"HIG"'),
        ],
    )
    def test_bare_source_token_is_also_the_search_text(self, query, source, fts_query):
        parsed = parse_query(query)

        assert parsed.source is source
        assert parsed.source_detected is True
        assert parsed.text == query.strip()
        assert parsed.fts_query == fts_query

    def test_explicit_source_disables_detection(self):
        parsed = parse_query("swift-evolution actors", source="hig")

        assert parsed.source is Source.HIG
        assert parsed.source_detected is False
        assert parsed.text == "swift-evolution actors"

    def test_unknown_explicit_source_is_rejected(self):
        with pytest.raises(InvalidQueryError, match="Unknown source"):
            parse_query("actors", source="wiki")


class TestAttributeFilters:
    @pytest.mark.parametrize("query", ["@MainActor View", "MainActor View"])
    def test_explicit_and_bare_attributes_match(self, query):
        parsed = parse_query(query)
        assert parsed.attributes == ("@MainActor",)
        assert parsed.text == "MainActor View"

    def test_explicit_attribute_outside_known_set_is_kept(self):
        attributes, text = extract_attribute_filters("@Observable model")
        assert attributes == ["@Observable"]
        assert text == "Observable model"

    def test_unknown_bare_words_are_not_attributes(self):
        attributes, _ = extract_attribute_filters("Button style")
        assert attributes == []


class TestSanitize:
    def test_tokens_are_quoted(self):
        assert sanitize_fts_query("List OR NEAR(x)") == '"List" "OR" "NEAR(x)"'

    def test_hyphen_splits_tokens(self):
        assert sanitize_fts_query("async-await") == '"async" "await"'

    def test_quotes_are_doubled(self):
        assert sanitize_fts_query('say"hi') == '"say""hi"'

    def test_punctuation_only_tokens_are_dropped(self):
        assert sanitize_fts_query("*** ::") == ""


class TestBlankQueries:
    @pytest.mark.parametrize("query", ["", "   ", "--- ***"])
    def test_blank_query_is_rejected(self, query):
        with pytest.raises(InvalidQueryError):
            parse_query(query)

    def test_invalid_query_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_query("")


def test_words_drop_single_characters():
    assert parse_query("a View of b Text").words == ("view", "of", "text")
