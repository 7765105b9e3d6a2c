from __future__ import annotations

import re
from typing import Any

import yaml

FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


def parse(content: str) -> tuple[dict[str, Any], str]:
    """Split ``content`` into its YAML front matter and body."""
    match = FRONTMATTER_RE.match(content)
    if match is None:
        return {}, content
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, content
    if not isinstance(data, dict):
        return {}, content
    return data, content[match.end():]


def get_description(content: str) -> str:
    data, _ = parse(content)
    description = data.get("description")
    return str(description).strip() if description else ""
