"""Asset stage for website-builder.

The asset pipeline reads the assets (or Sass) directory into its own tree,
already placed under the configured output path, and runs a single
AssetStage over it. Verbatim copy and Sass compilation differ only in the
processor registry the stage is given.
"""

from __future__ import annotations

import logging

from .asset_processors import (
    AssetProcessorRegistry,
    create_copy_registry,
    create_sass_registry,
)
from .config import BuildConfig
from .tree import FileTree

logger = logging.getLogger(__name__)


class AssetStage:
    """Runs every file of the asset tree through the processor registry.

    Files are handled one by one in path order; the first failure propagates
    and stops the remaining work.

    Attributes:
        name: Stage name reported in logs and failures.
        processor_registry: Registry choosing a processor per file.
    """

    def __init__(self, name: str, processor_registry: AssetProcessorRegistry):
        self.name = name
        self.processor_registry = processor_registry

    @classmethod
    def copy(cls) -> AssetStage:
        return cls("assets", create_copy_registry())

    @classmethod
    def sass(cls, config: BuildConfig) -> AssetStage:
        registry = create_sass_registry(
            dev=config.dev,
            inline_source_map=config.inline_source_map,
            include_paths=[config.sass],
        )
        return cls("sass", registry)

    def run(self, tree: FileTree, config: BuildConfig) -> FileTree:
        for file in tree.list():
            if not self.processor_registry.process(file, tree):
                logger.warning("No processor accepted %s; leaving it unchanged", file.path)
        return tree
