"""Front matter extraction for website-builder.

Front matter is a YAML block at the head of a source file, delimited by
``---`` lines. It becomes the file's metadata; the remainder is the body.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

from .errors import ParseError

FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


def extract_frontmatter(text: str, path: str | None = None) -> tuple[dict[str, Any], str]:
    """Extract YAML front matter from content.

    Args:
        text: Raw file content.
        path: Path used in error messages.

    Returns:
        Tuple of (front matter dict, remaining content). Content without a
        front matter block yields an empty dict and the text unchanged.

    Raises:
        ParseError: If the block is not valid YAML or not a mapping.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise ParseError(f"Malformed front matter: {exc}", path=path) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ParseError(
            f"Front matter must be a mapping, got {type(data).__name__}", path=path
        )
    return data, text[match.end() :]
