"""Template rendering stage for website-builder.

This module uses Jinja2 to render every HTML file in the tree through its
layout. Layouts live in the layouts directory; templates they extend or
include may also live in its ``templates/`` subdirectory.

Key classes:
- RenderHelpers: Immutable set of helpers (slug, date, now) for one build.
- LayoutResolver: Finds layouts and validates their inheritance chains.
- TemplateRenderStage: Renders files through their layouts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import (
    FileSystemLoader,
    Template,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    nodes,
    select_autoescape,
)
from jinja2.sandbox import ImmutableSandboxedEnvironment
from markupsafe import Markup

from .config import BuildConfig
from .errors import BuildError, ParseError, StructureError, format_error_message
from .tree import FileTree, VirtualFile
from .utils import format_date, is_html, slugify, utc_now

logger = logging.getLogger(__name__)

LAYOUT_SUFFIXES = ("", ".html", ".njk", ".jinja", ".html.jinja")


@dataclass(frozen=True)
class RenderHelpers:
    """Helpers available to every template render.

    Built once per build and handed to each render call. ``slug`` and
    ``date`` are also installed as filters of the build's environment.
    """

    slug: Callable[..., Any] = slugify
    date: Callable[..., str] = format_date
    now: Callable[[], Any] = utc_now

    @classmethod
    def default(cls) -> RenderHelpers:
        return cls()

    def filters(self) -> dict[str, Callable[..., Any]]:
        return {"slug": self.slug, "date": self.date}

    def as_context(self) -> dict[str, Callable[..., Any]]:
        return {"slug": self.slug, "date": self.date, "now": self.now}


@dataclass
class Layout:
    """A resolved layout and its inheritance chain, child first.

    Attributes:
        name: Template name as found by the loader.
        template: Compiled layout template.
        chain: Names of the layout and its ancestors up to the root.
        blocks: Every block name declared anywhere in the chain.
    """

    name: str
    template: Template
    chain: list[str] = field(default_factory=list)
    blocks: set[str] = field(default_factory=set)


def _top_level_blocks(node: nodes.Node) -> list[str]:
    """Block names not nested inside another block."""
    found: list[str] = []
    for child in node.iter_child_nodes():
        if isinstance(child, nodes.Block):
            found.append(child.name)
        else:
            found.extend(_top_level_blocks(child))
    return found


class LayoutResolver:
    """Resolves layout names to templates and walks their inheritance chains.

    Attributes:
        env: Jinja2 environment of the current build.
    """

    def __init__(self, env: ImmutableSandboxedEnvironment):
        self.env = env
        self._cache: dict[str, Layout] = {}

    def resolve(self, name: str, path: str) -> Layout:
        """Find the layout called name.

        Tries the name as given, then with each of LAYOUT_SUFFIXES.

        Args:
            name: Layout name from metadata or configuration.
            path: File being rendered, for error messages.

        Raises:
            StructureError: If no template matches the name.
            ParseError: If the layout or an ancestor is invalid.
        """
        if name in self._cache:
            return self._cache[name]
        for suffix in LAYOUT_SUFFIXES:
            candidate = f"{name}{suffix}"
            try:
                template = self.env.get_template(candidate)
            except TemplateNotFound:
                continue
            except TemplateSyntaxError as exc:
                raise ParseError(
                    f"Template syntax error in {exc.name or candidate} on line {exc.lineno}: {exc.message}",
                    path=path,
                ) from exc
            layout = self._walk(candidate, template, path)
            self._cache[name] = layout
            return layout
        raise StructureError(f"Layout '{name}' not found", path=path)

    def _walk(self, name: str, template: Template, path: str) -> Layout:
        chain: list[str] = []
        own_blocks: list[set[str]] = []
        top_blocks: list[list[str]] = []
        current: str | None = name
        while current is not None:
            if current in chain:
                raise ParseError(
                    f"Layout '{name}' has an inheritance cycle: {' -> '.join(chain + [current])}",
                    path=path,
                )
            try:
                source, filename, _ = self.env.loader.get_source(self.env, current)
                ast = self.env.parse(source, current, filename)
            except TemplateNotFound as exc:
                raise StructureError(
                    f"Template '{current}' extended by '{chain[-1]}' not found", path=path
                ) from exc
            except TemplateSyntaxError as exc:
                raise ParseError(
                    f"Template syntax error in {current} on line {exc.lineno}: {exc.message}",
                    path=path,
                ) from exc
            chain.append(current)
            own_blocks.append({block.name for block in ast.find_all(nodes.Block)})
            top_blocks.append(_top_level_blocks(ast))
            extends = ast.find(nodes.Extends)
            if extends is None or not isinstance(extends.template, nodes.Const):
                current = None
            else:
                current = str(extends.template.value)

        # A child block must override something an ancestor declares.
        for index, template_name in enumerate(chain[:-1]):
            inherited = set().union(*own_blocks[index + 1 :])
            for block in top_blocks[index]:
                if block not in inherited:
                    raise ParseError(
                        f"Template '{template_name}' defines block '{block}' "
                        f"which no parent of it declares (undefined block)",
                        path=path,
                    )
        return Layout(name=name, template=template, chain=chain, blocks=set().union(*own_blocks))


class TemplateRenderStage:
    """Renders each HTML file through its layout.

    Attributes:
        helpers: Helper set handed to every render call.
    """

    name = "templates"

    def __init__(self, helpers: RenderHelpers | None = None):
        self.helpers = helpers or RenderHelpers.default()

    def create_environment(self, layouts_dir: Path) -> ImmutableSandboxedEnvironment:
        """Create the Jinja2 environment for one build."""
        env = ImmutableSandboxedEnvironment(
            loader=FileSystemLoader([layouts_dir, layouts_dir / "templates"]),
            autoescape=select_autoescape(["html", "htm", "xml", "njk", "jinja"]),
        )
        env.filters.update(self.helpers.filters())
        return env

    def run(self, tree: FileTree, config: BuildConfig) -> FileTree:
        layouts_dir = config.require_dir(config.layouts, "layouts")
        env = self.create_environment(layouts_dir)
        resolver = LayoutResolver(env)
        if not config.content_block.isidentifier():
            raise ParseError(f"Invalid content block name: {config.content_block!r}")
        injector = env.from_string(
            "{% extends __layout__ %}"
            f"{{% block {config.content_block} %}}{{{{ contents }}}}{{% endblock %}}"
        )

        for file in tree.list():
            if not is_html(file.path):
                continue
            layout = resolver.resolve(file.metadata.layout or config.default_layout, file.path)
            context = self.build_context(file, config)
            try:
                if config.content_block in layout.blocks:
                    rendered = injector.render({**context, "__layout__": layout.template})
                else:
                    rendered = layout.template.render(context)
            except TemplateNotFound as exc:
                raise StructureError(
                    f"Template '{exc.name}' not found while rendering layout '{layout.name}'",
                    path=file.path,
                ) from exc
            except TemplateSyntaxError as exc:
                raise ParseError(
                    f"Template syntax error in {exc.name or layout.name} on line {exc.lineno}: {exc.message}",
                    path=file.path,
                ) from exc
            except TemplateError as exc:
                raise ParseError(
                    f"Error rendering layout '{layout.name}': {format_error_message(exc)}",
                    path=file.path,
                ) from exc
            except BuildError:
                raise
            except Exception as exc:
                raise BuildError(
                    f"Error rendering layout '{layout.name}': {format_error_message(exc)}",
                    path=file.path,
                ) from exc
            file.contents = rendered.encode("utf-8")
            logger.debug("Rendered %s with layout %s", file.path, layout.name)
        return tree

    def build_context(self, file: VirtualFile, config: BuildConfig) -> dict[str, Any]:
        """Fresh render context: helpers, then file metadata, then page basics.

        File metadata may shadow the helper names (a ``date`` key is common);
        the helpers stay reachable as filters.
        """
        try:
            contents = Markup(file.text())
        except UnicodeDecodeError as exc:
            raise ParseError(f"File is not valid UTF-8: {exc}", path=file.path) from exc
        return {
            **self.helpers.as_context(),
            **file.metadata.as_dict(),
            "site": dict(config.site),
            "path": file.path,
            "contents": contents,
        }
