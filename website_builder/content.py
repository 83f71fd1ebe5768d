"""Markdown stage for website-builder.

Every Markdown file in the tree gets its front matter merged into metadata,
its body converted to HTML, and its path rewritten to ``.html`` (or to the
``permalink`` front matter value; an extensionless permalink becomes a
directory index). Other files pass through unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import PurePosixPath

from .config import BuildConfig
from .errors import ParseError
from .extractors import extract_frontmatter
from .renderers import MarkdownRenderer
from .tree import FileTree
from .utils import is_markdown, titleize, with_suffix

logger = logging.getLogger(__name__)


class MarkdownStage:
    """Converts Markdown sources to HTML, keeping front matter as metadata."""

    name = "markdown"

    def __init__(self, renderer: MarkdownRenderer | None = None):
        self.renderer = renderer or MarkdownRenderer()

    def run(self, tree: FileTree, config: BuildConfig) -> FileTree:
        for file in tree.list():
            if not is_markdown(file.path):
                continue
            try:
                text = file.text()
            except UnicodeDecodeError as exc:
                raise ParseError(f"File is not valid UTF-8: {exc}", path=file.path) from exc

            frontmatter, body = extract_frontmatter(text, file.path)
            html, headings = self.renderer.render(body)

            file.metadata.update(frontmatter)
            if not file.metadata.title:
                file.metadata["title"] = titleize(file.path)
            file.metadata["headings"] = [asdict(h) for h in headings]
            file.contents = html.encode("utf-8")

            target = str(file.metadata.permalink or with_suffix(file.path, ".html"))
            target = target.lstrip("/")
            if not target or target.endswith("/"):
                target = f"{target}index.html"
            elif not PurePosixPath(target).suffix:
                target = f"{target}/index.html"
            tree.rename(file.path, target)
            logger.debug("Converted markdown to %s", file.path)
        return tree
