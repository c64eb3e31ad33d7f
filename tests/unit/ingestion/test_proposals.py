"""Unit tests for evolution proposal loading."""

from pathlib import Path

import pytest

from docs_index.domain.model import DocumentKind, Source
from docs_index.ingestion.proposals import (
    availability_for_status,
    discover_proposal_files,
    is_accepted,
    load_proposal,
    proposal_id,
    proposal_status,
)


pytestmark = pytest.mark.unit


def _proposal(title: str, status: str) -> str:
    return (
        f"# {title}\n\n"
        "* Proposal: [SE-0296](0296-async-await.md)\n"
        "* Authors: [John McCall](https://github.com/rjmccall)\n"
        f"* Status: **{status}**\n\n"
        "## Introduction\n\nModern Swift development involves a lot of asynchronous programming.\n"
    )


def test_proposal_id():
    assert proposal_id("0296-async-await") == "SE-0296"
    assert proposal_id("SE-0001-keywords-as-argument-labels") == "SE-0001"
    assert proposal_id("README") == "README"


def test_proposal_status_and_acceptance():
    status = proposal_status(_proposal("Async/await", "Implemented (Swift 5.5)"))

    assert status == "Implemented (Swift 5.5)"
    assert is_accepted(status)
    assert is_accepted("Accepted with modifications")
    assert not is_accepted("Returned for revision")
    assert not is_accepted(None)


def test_availability_for_implemented_release():
    availability = availability_for_status("Implemented (Swift 5.5)")

    assert availability.ios == "15.0"
    assert availability.macos == "12.0"
    assert availability.tvos is None
    assert availability.source == "derived"


def test_availability_unknown_for_accepted_or_unmapped():
    assert availability_for_status("Accepted").is_empty
    assert availability_for_status("Implemented (Swift 4.2)").is_empty


def test_load_accepted_proposal(tmp_path: Path):
    path = tmp_path / "0296-async-await.md"
    path.write_text(_proposal("Async/await", "Implemented (Swift 5.5)"), encoding="utf-8")

    document = load_proposal(path)

    assert document.uri == "swift-evolution://SE-0296"
    assert document.source is Source.EVOLUTION
    assert document.title == "Async/await"
    assert document.kind is DocumentKind.ARTICLE
    assert document.framework == ""
    assert document.availability.ios == "15.0"
    assert "asynchronous programming" in document.content


@pytest.mark.parametrize("status", ["Rejected", "Returned for revision", "Active review (March 1...14, 2025)"])
def test_unaccepted_proposals_are_skipped(tmp_path: Path, status: str):
    path = tmp_path / "0400-idea.md"
    path.write_text(_proposal("An idea", status), encoding="utf-8")

    assert load_proposal(path) is None


def test_proposal_without_status_is_skipped(tmp_path: Path):
    path = tmp_path / "0401-draft.md"
    path.write_text("# Draft\n\nNo header yet.", encoding="utf-8")

    assert load_proposal(path) is None


def test_discover_proposal_files(tmp_path: Path):
    for name in ("0002-b.md", "0001-a.md", "README.md", "template.md"):
        (tmp_path / name).write_text("x", encoding="utf-8")

    assert [path.name for path in discover_proposal_files(tmp_path)] == ["0001-a.md", "0002-b.md"]
    assert list(discover_proposal_files(tmp_path / "missing")) == []
