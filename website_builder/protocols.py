"""Protocol definitions for website-builder.

Stages are plain objects with a name and a ``run`` method; the pipeline
driver iterates an ordered list of them. Asset processors follow the same
pattern for individual asset files.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .config import BuildConfig
    from .tree import FileTree, VirtualFile


@runtime_checkable
class Stage(Protocol):
    """A single pass over the file tree.

    Stages mutate the tree in place and return it. Failures are reported by
    raising a BuildError subclass; the driver stops at the first one.
    """

    name: str

    @abstractmethod
    def run(self, tree: FileTree, config: BuildConfig) -> FileTree:
        """Transform the tree.

        Args:
            tree: Tree owned by the current build.
            config: Resolved build configuration.

        Returns:
            The same tree, transformed.
        """
        ...


@runtime_checkable
class AssetProcessor(Protocol):
    """Protocol for processing a single asset file inside the tree."""

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
        """Process an asset file, updating the tree."""
        ...
