"""HTML minification stage for website-builder."""

from __future__ import annotations

import logging

import htmlmin

from .config import BuildConfig
from .errors import ParseError
from .tree import FileTree
from .utils import is_html

logger = logging.getLogger(__name__)

# The minifier usually converges in one pass; the bound guards odd markup.
MAX_PASSES = 5


def minify_html(html: str) -> str:
    """Strip comments and redundant whitespace, keeping <pre> content.

    Re-applies the minifier until the output stops changing, so
    ``minify_html(minify_html(x)) == minify_html(x)``.
    """
    current = html
    for _ in range(MAX_PASSES):
        minified = htmlmin.minify(
            current,
            remove_comments=True,
            remove_empty_space=True,
        )
        if minified == current:
            break
        current = minified
    return current


class MinifyStage:
    """Rewrites every HTML file with its minified equivalent."""

    name = "minify"

    def run(self, tree: FileTree, config: BuildConfig) -> FileTree:
        for file in tree.list():
            if not is_html(file.path):
                continue
            try:
                text = file.text()
            except UnicodeDecodeError as exc:
                raise ParseError(f"File is not valid UTF-8: {exc}", path=file.path) from exc
            minified = minify_html(text)
            file.contents = minified.encode("utf-8")
            logger.debug("Minified %s (%d -> %d chars)", file.path, len(text), len(minified))
        return tree
