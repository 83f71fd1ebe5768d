"""Site building functionality for website-builder.

This module composes the stages into pipelines and drives them: it loads the
source tree, runs each stage in order, stops at the first failure, and only
then writes the tree to the destination directory.

Key functions:
- build_pages: Content -> Markdown -> Structure -> Templates -> (Minify).
- build_assets: Verbatim copy of the assets directory.
- build_sass: Sass compilation of the sass directory.
- clean_target: Empty the destination directory.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .assets import AssetStage
from .cleanup import clean, resolve_inside
from .config import BuildConfig
from .content import MarkdownStage
from .errors import BuildError, format_error_message
from .minify import MinifyStage
from .protocols import Stage
from .structure import StructureMergeStage
from .templates import RenderHelpers, TemplateRenderStage
from .tree import FileTree

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of a pipeline run.

    Attributes:
        ok: True when every stage and the final write succeeded.
        stage: Name of the failing stage, when ok is False.
        error: The error that stopped the build, when ok is False.
        output_dir: Directory the tree was written to.
        files: Files written, in tree order.
    """

    ok: bool
    stage: str | None = None
    error: BuildError | None = None
    output_dir: Path | None = None
    files: list[Path] = field(default_factory=list)

    @classmethod
    def success(cls, output_dir: Path, files: list[Path]) -> BuildResult:
        return cls(ok=True, output_dir=output_dir, files=files)

    @classmethod
    def failure(cls, stage: str, error: BuildError) -> BuildResult:
        return cls(ok=False, stage=stage, error=error)


class Pipeline:
    """An ordered list of stages sharing one tree.

    Attributes:
        name: Pipeline name used in log lines.
        stages: Stages run strictly in order.
    """

    def __init__(self, name: str, stages: Sequence[Stage]):
        self.name = name
        self.stages = list(stages)

    def run(
        self,
        tree: FileTree,
        config: BuildConfig,
        destination: Path,
        before_flush: Callable[[], object] | None = None,
    ) -> BuildResult:
        """Run every stage, then flush the tree to destination.

        Args:
            tree: Tree owned by this run.
            config: Resolved build configuration.
            destination: Directory the tree is written to.
            before_flush: Called once all stages succeeded, right before
                writing (used to clean the destination).

        Returns:
            BuildResult; nothing is written unless every stage succeeded.
        """
        for stage in self.stages:
            logger.debug("[%s] running stage %s", self.name, stage.name)
            try:
                tree = stage.run(tree, config)
            except BuildError as exc:
                return self._failed(stage.name, exc)
            except Exception as exc:
                error = BuildError(format_error_message(exc), stage=stage.name)
                error.__cause__ = exc
                return self._failed(stage.name, error)

        logger.debug("[%s] writing %d file(s) to %s", self.name, len(tree), destination)
        try:
            if before_flush is not None:
                before_flush()
            files = tree.flush(destination)
        except BuildError as exc:
            return self._failed("write", exc)
        logger.info("[%s] successfully built %d file(s) to %s", self.name, len(files), destination)
        return BuildResult.success(destination, files)

    def _failed(self, stage: str, error: BuildError) -> BuildResult:
        if error.stage is None:
            error.stage = stage
        logger.error("[%s] %s failed: %s: %s", self.name, stage, error.kind, error)
        return BuildResult.failure(stage, error)


def page_stages(config: BuildConfig, helpers: RenderHelpers | None = None) -> list[Stage]:
    """The page pipeline's stages in their fixed order."""
    helpers = helpers or RenderHelpers.default()
    stages: list[Stage] = [
        MarkdownStage(),
        StructureMergeStage(helpers=helpers),
        TemplateRenderStage(helpers),
    ]
    if config.minify:
        stages.append(MinifyStage())
    return stages


def _load(name: str, loader: Callable[[], FileTree]) -> FileTree | BuildResult:
    try:
        return loader()
    except BuildError as exc:
        if exc.stage is None:
            exc.stage = "load"
        logger.error("[%s] load failed: %s: %s", name, exc.kind, exc)
        return BuildResult.failure("load", exc)


def build_pages(config: BuildConfig, helpers: RenderHelpers | None = None) -> BuildResult:
    """Build the pages of the site into config.target.

    Directories are validated before any stage runs. When config.clean is
    set, the target is emptied after all stages succeeded and right before
    writing; the assets subtree is left alone.
    """
    logger.debug("Building pages: content=%s layouts=%s structure=%s", config.content, config.layouts, config.structure)

    def load() -> FileTree:
        content = config.require_dir(config.content, "content")
        config.require_dir(config.layouts, "layouts")
        if config.clean:
            resolve_inside(config.workdir, config.target)
        return FileTree.from_directory(content)

    tree = _load("build", load)
    if isinstance(tree, BuildResult):
        return tree

    before_flush = None
    if config.clean:
        keep = {PurePosixPath(p).parts[0] for p in (config.assets_target, config.sass_target) if p}
        before_flush = functools.partial(clean, config.workdir, config.target, keep=keep)

    return Pipeline("build", page_stages(config, helpers)).run(
        tree, config, config.target, before_flush
    )


def build_assets(config: BuildConfig) -> BuildResult:
    """Copy the assets directory unchanged to target/assets_target."""
    logger.debug("Copying assets under %s to %s", config.assets, config.assets_target)
    tree = _load(
        "assets",
        lambda: FileTree.from_directory(
            config.require_dir(config.assets, "assets"), prefix=config.assets_target
        ),
    )
    if isinstance(tree, BuildResult):
        return tree
    return Pipeline("assets", [AssetStage.copy()]).run(tree, config, config.target)


def build_sass(config: BuildConfig) -> BuildResult:
    """Compile the sass directory to target/sass_target.

    Files are compiled into memory first; a compile error leaves the
    destination untouched.
    """
    logger.debug("Compiling sass under %s to %s (dev=%s)", config.sass, config.sass_target, config.dev)
    tree = _load(
        "sass",
        lambda: FileTree.from_directory(
            config.require_dir(config.sass, "sass"), prefix=config.sass_target
        ),
    )
    if isinstance(tree, BuildResult):
        return tree
    return Pipeline("sass", [AssetStage.sass(config)]).run(tree, config, config.target)


def clean_target(config: BuildConfig) -> Path:
    """Empty config.target, refusing anything outside the working directory."""
    return clean(config.workdir, config.target)
