"""Sample-code and package catalogs shipped as JSON files.

A catalog is either a bare list of entries or an object wrapping the list
(``{"entries": [...]}`` for sample code, ``{"packages": [...]}`` for packages).
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Any

import orjson

from docs_index.domain.model import PackageRecord, Platform, PlatformAvailability, SampleCodeEntry
from docs_index.errors import DocumentLoadError


logger = logging.getLogger(__name__)

SAMPLE_CODE_KEY = "entries"
PACKAGES_KEY = "packages"
OFFICIAL_OWNER = "apple"


def read_catalog(path: Path, key: str) -> list[Mapping[str, Any]]:
    """Load the raw entries of a catalog file.

    Raises:
        DocumentLoadError: the file is unreadable or not a catalog.
    """
    try:
        data = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        msg = f"Unable to load catalog {path}: {exc}"
        raise DocumentLoadError(msg) from exc

    if isinstance(data, Mapping):
        data = data.get(key)
    if not isinstance(data, list):
        msg = f"Catalog {path} has no {key!r} list"
        raise DocumentLoadError(msg)
    return data


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _require(raw: Mapping[str, Any], *keys: str) -> str:
    value = _first(raw, *keys)
    if value is None:
        msg = f"Catalog entry is missing {keys[0]!r}: {dict(raw)!r:.200}"
        raise DocumentLoadError(msg)
    return str(value)


def _catalog_availability(raw: Any) -> PlatformAvailability:
    if not isinstance(raw, Mapping):
        return PlatformAvailability()
    versions: dict[Platform, str] = {}
    for name, version in raw.items():
        if not version:
            continue
        try:
            versions[Platform.from_token(str(name))] = str(version)
        except ValueError:
            logger.debug("Ignoring catalog availability for %s", name)
    if not versions:
        return PlatformAvailability()
    return PlatformAvailability.from_mapping(versions, source="catalog")


def sample_code_entry(raw: Mapping[str, Any]) -> SampleCodeEntry:
    if not isinstance(raw, Mapping):
        msg = f"Sample code entry is not an object: {raw!r:.200}"
        raise DocumentLoadError(msg)
    return SampleCodeEntry(
        url=_require(raw, "url"),
        framework=_require(raw, "framework").lower(),
        title=_require(raw, "title"),
        description=str(_first(raw, "description") or ""),
        zip_filename=_require(raw, "zipFilename", "zip_filename"),
        web_url=str(_first(raw, "webURL", "webUrl", "web_url", "url")),
        availability=_catalog_availability(raw.get("availability")),
    )


def package_record(raw: Mapping[str, Any]) -> PackageRecord:
    if not isinstance(raw, Mapping):
        msg = f"Package entry is not an object: {raw!r:.200}"
        raise DocumentLoadError(msg)
    owner = _require(raw, "owner")
    stars = _first(raw, "stars")
    try:
        star_count = int(stars) if stars is not None else 0
    except (TypeError, ValueError):
        star_count = 0
    return PackageRecord(
        owner=owner,
        name=_require(raw, "repo", "name"),
        repository_url=_require(raw, "url", "repositoryURL", "repository_url"),
        description=_first(raw, "description"),
        stars=star_count,
        is_official=owner.lower() == OFFICIAL_OWNER,
        documentation_url=_first(raw, "documentationURL", "documentation_url"),
        last_updated=_first(raw, "updatedAt", "last_updated", "lastUpdated"),
    )
