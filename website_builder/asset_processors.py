"""Asset processors for website-builder.

Each processor handles a single type of asset inside the asset tree. The
registry picks the highest-priority processor that accepts a file.

Key classes:
- SassProcessor: Compiles Sass/SCSS sources to CSS with libsass.
- StaticAssetProcessor: Leaves files unchanged (verbatim copy).
- AssetProcessorRegistry: Registry for managing asset processors.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath

import sass

from .errors import CompileError
from .protocols import AssetProcessor
from .tree import FileTree, Metadata, VirtualFile
from .utils import with_suffix

logger = logging.getLogger(__name__)

SASS_EXTENSIONS = {".scss", ".sass"}


class BaseAssetProcessor(ABC):
    """Base class for asset processors."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, file: VirtualFile) -> bool:
        """Check if this processor can handle the given asset."""
        ...

    @abstractmethod
    def process(self, file: VirtualFile, tree: FileTree) -> None:
        """Process an asset file in place, adding or removing tree entries as needed."""
        ...


class SassProcessor(BaseAssetProcessor):
    """Compiles Sass and SCSS files to CSS.

    Partials (leading underscore) only exist to be imported, so they are
    dropped from the output instead of being compiled on their own.

    Attributes:
        dev: Expanded output with a source map when True, compressed otherwise.
        inline_source_map: Embed the source map into the CSS instead of
            writing a separate ``.css.map`` file (dev mode only).
        include_paths: Extra directories searched by ``@import``/``@use``.
    """

    def __init__(
        self,
        dev: bool = False,
        inline_source_map: bool = False,
        include_paths: list[Path] | None = None,
    ):
        self.dev = dev
        self.inline_source_map = inline_source_map
        self.include_paths = [str(p) for p in include_paths or []]

    @property
    def priority(self) -> int:
        return 100

    @property
    def output_style(self) -> str:
        return "expanded" if self.dev else "compressed"

    def can_process(self, file: VirtualFile) -> bool:
        return file.suffix in SASS_EXTENSIONS

    def process(self, file: VirtualFile, tree: FileTree) -> None:
        if PurePosixPath(file.path).name.startswith("_"):
            tree.remove(file.path)
            return

        source = file.metadata.get("source")
        try:
            if source:
                css, source_map = self._compile_file(Path(source))
            else:
                css, source_map = self._compile_string(file), None
        except sass.CompileError as exc:
            raise CompileError(f"Sass compilation failed: {exc}", path=file.path) from exc

        original = file.path
        file.contents = css.encode("utf-8")
        file.metadata["compiledFrom"] = original
        tree.rename(original, with_suffix(original, ".css"))
        if source_map is not None and not self.inline_source_map:
            tree.put(
                VirtualFile(
                    f"{file.path}.map",
                    source_map.encode("utf-8"),
                    Metadata({"sourceMapFor": file.path}),
                )
            )
        logger.debug("Compiled %s -> %s (%s)", original, file.path, self.output_style)

    def _compile_file(self, source: Path) -> tuple[str, str | None]:
        include_paths = [str(source.parent), *self.include_paths]
        if not self.dev:
            css = sass.compile(
                filename=str(source),
                output_style=self.output_style,
                include_paths=include_paths,
            )
            return css, None
        # The hints sit next to the source so the map URL and its sources
        # come out relative ("main.css.map", "main.scss").
        css, source_map = sass.compile(
            filename=str(source),
            output_style=self.output_style,
            include_paths=include_paths,
            source_map_filename=str(source.with_suffix(".css.map")),
            output_filename_hint=str(source.with_suffix(".css")),
            source_map_contents=True,
            source_map_embed=self.inline_source_map,
        )
        return css, source_map

    def _compile_string(self, file: VirtualFile) -> str:
        """Compile a Sass file that exists only in memory (no ``source`` on disk).

        Trees read from a directory always carry ``source``; this path serves
        trees assembled in code, where imports resolve via include_paths only.
        """
        if self.dev:
            logger.warning("No source file for %s; compiling without a source map", file.path)
        return sass.compile(
            string=file.text(),
            output_style=self.output_style,
            include_paths=self.include_paths,
            indented=file.suffix == ".sass",
        )


class StaticAssetProcessor(BaseAssetProcessor):
    """Leaves assets unchanged.

    This is the fallback processor for assets that don't need special
    processing (images, fonts, plain CSS, scripts).
    """

    @property
    def priority(self) -> int:
        return 0  # Lowest priority - fallback

    def can_process(self, file: VirtualFile) -> bool:
        return True

    def process(self, file: VirtualFile, tree: FileTree) -> None:
        return None


class AssetProcessorRegistry:
    """Registry for managing asset processors.

    Processors are kept sorted by priority, highest first.
    """

    def __init__(self):
        self._processors: list[AssetProcessor] = []

    def register(self, processor: AssetProcessor) -> None:
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, file: VirtualFile) -> AssetProcessor | None:
        for processor in self._processors:
            if processor.can_process(file):
                return processor
        return None

    def process(self, file: VirtualFile, tree: FileTree) -> bool:
        """Process an asset using the appropriate processor.

        Returns:
            True if a processor handled the file, False if none accepted it.
        """
        processor = self.get_processor(file)
        if processor:
            processor.process(file, tree)
            return True
        return False


def create_copy_registry() -> AssetProcessorRegistry:
    """Registry for verbatim asset copies."""
    registry = AssetProcessorRegistry()
    registry.register(StaticAssetProcessor())
    return registry


def create_sass_registry(
    dev: bool = False,
    inline_source_map: bool = False,
    include_paths: list[Path] | None = None,
) -> AssetProcessorRegistry:
    """Registry compiling Sass sources and copying everything else."""
    registry = AssetProcessorRegistry()
    registry.register(SassProcessor(dev, inline_source_map, include_paths))
    registry.register(StaticAssetProcessor())
    return registry
