"""Platform availability: semantic version comparison and result filtering."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
import re
from typing import Any

from docs_index.domain.model import Platform, PlatformAvailability


logger = logging.getLogger(__name__)

_LEADING_DIGITS = re.compile(r"\d+")


def parse_version(version: str) -> tuple[int, ...]:
    """Split ``"10.13.4"`` into ``(10, 13, 4)``; non-numeric parts count as 0."""
    components = []
    for part in version.strip().split("."):
        match = _LEADING_DIGITS.match(part.strip())
        components.append(int(match.group(0)) if match else 0)
    return tuple(components)


def is_version_less_or_equal(version: str, other: str) -> bool:
    """Component-wise numeric ``version <= other``; missing components are zero.

    >>> is_version_less_or_equal("10.2", "10.13")
    True
    >>> is_version_less_or_equal("10.13", "10.2")
    False
    """
    left = parse_version(version)
    right = parse_version(other)
    width = max(len(left), len(right))
    left += (0,) * (width - len(left))
    right += (0,) * (width - len(right))
    return left <= right


def normalize_requirements(requirements: Mapping[Platform | str, str] | None) -> dict[Platform, str]:
    """Coerce ``{"iOS": "15.0"}`` style input into ``{Platform.IOS: "15.0"}``; blanks are dropped."""
    normalized: dict[Platform, str] = {}
    for key, version in (requirements or {}).items():
        if version is None or not str(version).strip():
            continue
        platform = key if isinstance(key, Platform) else Platform.from_token(key)
        normalized[platform] = str(version).strip()
    return normalized


def passes_availability(recorded: Mapping[Platform, str | None], required: Mapping[Platform, str]) -> bool:
    """True when every required platform is unknown or introduced at or before the requested version."""
    for platform, requested in required.items():
        introduced = recorded.get(platform)
        if introduced is None or not introduced.strip():
            continue
        if not is_version_less_or_equal(introduced, requested):
            return False
    return True


def filter_by_availability(
    items: Iterable[tuple[Any, Mapping[Platform, str | None]]],
    required: Mapping[Platform, str],
) -> list[Any]:
    """Keep ``item`` from each ``(item, recorded availability)`` pair that passes."""
    if not required:
        return [item for item, _ in items]
    return [item for item, recorded in items if passes_availability(recorded, required)]


def availability_from_payload(payload: Mapping[str, Any]) -> PlatformAvailability:
    """Read the crawler's ``availability`` array (``name``/``introducedAt``/``unavailable``).

    iOS and iPadOS share one column; the later of the two versions wins.
    """
    entries = payload.get("availability")
    if not isinstance(entries, list):
        return PlatformAvailability()

    versions: dict[Platform, str] = {}
    for entry in entries:
        if not isinstance(entry, Mapping) or entry.get("unavailable"):
            continue
        name = entry.get("name")
        introduced = entry.get("introducedAt")
        if not isinstance(name, str) or not isinstance(introduced, str) or not introduced.strip():
            continue
        try:
            platform = Platform.from_token(name)
        except ValueError:
            logger.debug("Ignoring availability for unsupported platform %s", name)
            continue
        current = versions.get(platform)
        if current is None or not is_version_less_or_equal(introduced, current):
            versions[platform] = introduced.strip()

    if not versions:
        return PlatformAvailability()
    return PlatformAvailability.from_mapping(versions, source="api")
