"""YAML front matter utilities for crawled markdown documents.

Crawled pages carry a YAML block between '---' lines ahead of the body.

Example markdown with front matter:
    ---
    title: Designing for iOS
    category: platforms
    source: hig
    ---
    # Designing for iOS

    People depend on their iPhone...
"""

import re
from typing import Any

import yaml


DELIMITER = "---"

_FRONT_MATTER_PATTERN = re.compile(
    rf"^\ufeff?{re.escape(DELIMITER)}[ \t]*\r?\n(.*?)\r?\n{re.escape(DELIMITER)}[ \t]*(?:\r?\n|$)",
    re.DOTALL,
)


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML front matter from markdown content.

    Args:
        content: Full markdown content including front matter

    Returns:
        Tuple of (front_matter_dict, markdown_content)
        If no front matter found, returns (empty dict, original content)

    Example:
        >>> content = "---\\ntitle: Views\\n---\\n# Views"
        >>> metadata, markdown = parse_front_matter(content)
        >>> metadata["title"]
        'Views'
        >>> markdown
        '# Views'
    """
    match = _FRONT_MATTER_PATTERN.match(content)
    if not match:
        return {}, content

    yaml_text = match.group(1)
    markdown_content = content[match.end() :]

    try:
        metadata = yaml.safe_load(yaml_text) or {}
    except yaml.YAMLError:
        # Invalid YAML - treat the block as body text
        return {}, content

    if not isinstance(metadata, dict):
        return {}, content

    return metadata, markdown_content


def strip_front_matter(content: str) -> str:
    """Drop a leading delimited block even when its YAML is not parseable."""
    match = _FRONT_MATTER_PATTERN.match(content)
    if not match:
        return content
    return content[match.end() :]


def serialize_front_matter(metadata: dict[str, Any], markdown_content: str) -> str:
    """Serialize metadata and content into markdown with front matter.

    Empty metadata results in markdown-only output (no delimiters). YAML is
    dumped with sorted keys for determinism.
    """
    if not metadata:
        return markdown_content

    yaml_text = yaml.dump(
        metadata,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=True,
    ).rstrip("\n")

    return f"{DELIMITER}\n{yaml_text}\n{DELIMITER}\n{markdown_content}"
