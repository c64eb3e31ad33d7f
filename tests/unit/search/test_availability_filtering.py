"""Unit tests for version comparison and availability filtering."""

import pytest

from docs_index.domain.model import Platform
from docs_index.search.availability import (
    availability_from_payload,
    filter_by_availability,
    is_version_less_or_equal,
    normalize_requirements,
    parse_version,
    passes_availability,
)


pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("version", "other", "expected"),
    [
        ("10.2", "10.13", True),
        ("10.13", "10.2", False),
        ("15", "15.0", True),
        ("15.0.1", "15.0", False),
        ("13.0", "13.0", True),
    ],
)
def test_is_version_less_or_equal(version, other, expected):
    assert is_version_less_or_equal(version, other) is expected


def test_parse_version_tolerates_suffixes():
    assert parse_version("17.0b2") == (17, 0)
    assert parse_version("beta") == (0,)


def test_normalize_requirements():
    assert normalize_requirements({"iOS": "15.0", "macOS": " ", Platform.TVOS: "17"}) == {
        Platform.IOS: "15.0",
        Platform.TVOS: "17",
    }
    assert normalize_requirements(None) == {}


def test_normalize_requirements_rejects_unknown_platform():
    with pytest.raises(ValueError, match="Unknown platform"):
        normalize_requirements({"Linux": "1.0"})


def test_unknown_availability_passes():
    assert passes_availability({Platform.IOS: None}, {Platform.IOS: "13.0"})


def test_filter_by_availability_drops_newer_items():
    items = [
        ("old", {Platform.IOS: "13.0"}),
        ("new", {Platform.IOS: "17.0"}),
        ("unknown", {Platform.IOS: None}),
    ]

    assert filter_by_availability(items, {Platform.IOS: "15.0"}) == ["old", "unknown"]
    assert filter_by_availability(items, {}) == ["old", "new", "unknown"]


def test_availability_from_payload():
    payload = {
        "availability": [
            {"name": "iOS", "introducedAt": "13.0"},
            {"name": "iPadOS", "introducedAt": "14.0"},
            {"name": "macOS", "introducedAt": "10.15"},
            {"name": "watchOS", "introducedAt": "6.0", "unavailable": True},
            {"name": "Mac Catalyst", "introducedAt": "13.1"},
            {"name": "tvOS"},
        ]
    }

    availability = availability_from_payload(payload)

    assert availability.ios == "14.0"
    assert availability.macos == "10.15"
    assert availability.watchos is None
    assert availability.tvos is None
    assert availability.source == "api"


def test_availability_from_payload_without_entries_is_empty():
    assert availability_from_payload({"title": "View"}).is_empty
