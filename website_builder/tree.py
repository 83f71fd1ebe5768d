"""In-memory file tree shared by all pipeline stages.

A build reads its source directory into a FileTree, lets each stage mutate
it in place, and finally flushes it to the destination directory. Nothing is
written to the destination before flush().

Key classes:
- Metadata: Mutable mapping with typed accessors for the reserved keys.
- VirtualFile: One output file (path, contents, metadata).
- FileTree: Path-ordered collection of VirtualFile objects.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from .errors import BuildIOError, StructureError

# Keys the builder itself interprets; everything else passes through untouched.
RESERVED_KEYS = (
    "layout",
    "permalink",
    "title",
    "currentPage",
    "totalPages",
    "items",
)


class Metadata(MutableMapping[str, Any]):
    """Open metadata mapping with typed accessors for the reserved keys.

    Unknown keys are kept as-is and are reachable through extras(), so a
    stage that does not understand a key never drops it.
    """

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values: dict[str, Any] = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def layout(self) -> str | None:
        return self._values.get("layout")

    @property
    def permalink(self) -> str | None:
        return self._values.get("permalink")

    @property
    def title(self) -> str | None:
        return self._values.get("title")

    @property
    def current_page(self) -> int | None:
        return self._values.get("currentPage")

    @property
    def total_pages(self) -> int | None:
        return self._values.get("totalPages")

    @property
    def page_items(self):
        return self._values.get("items")

    def extras(self) -> dict[str, Any]:
        """Return the pass-through keys the builder does not interpret."""
        return {k: v for k, v in self._values.items() if k not in RESERVED_KEYS}

    def merged(self, overrides: Mapping[str, Any]) -> Metadata:
        """Return a new Metadata with overrides winning on key conflict."""
        values = dict(self._values)
        values.update(overrides)
        return Metadata(values)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def copy(self) -> Metadata:
        return Metadata(self._values)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Metadata({self._values!r})"


@dataclass
class VirtualFile:
    """A file in the virtual tree.

    Attributes:
        path: POSIX path relative to the tree root.
        contents: File body as bytes.
        metadata: Metadata accumulated by stages.
    """

    path: str
    contents: bytes
    metadata: Metadata = field(default_factory=Metadata)

    def __post_init__(self) -> None:
        self.path = normalize_path(self.path)
        if not isinstance(self.metadata, Metadata):
            self.metadata = Metadata(self.metadata)

    @property
    def suffix(self) -> str:
        return PurePosixPath(self.path).suffix.lower()

    def text(self) -> str:
        return self.contents.decode("utf-8")


def normalize_path(path: str) -> str:
    """Normalize a relative path to POSIX form.

    Raises:
        StructureError: If the path is empty, absolute, or escapes the root.
    """
    raw = str(path).replace("\\", "/")
    if raw.startswith("/"):
        raise StructureError(f"Output path must be relative: {raw}", path=raw)
    parts: list[str] = []
    for part in raw.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            raise StructureError(f"Output path escapes the build root: {raw}", path=raw)
        parts.append(part)
    if not parts:
        raise StructureError("Output path is empty", path=raw)
    return "/".join(parts)


class FileTree:
    """Mapping of relative output path to VirtualFile.

    Iteration is ordered by path so builds are deterministic regardless of
    the order files were added in.
    """

    def __init__(self, files: list[VirtualFile] | None = None):
        self._files: dict[str, VirtualFile] = {}
        for file in files or []:
            self.put(file)

    @classmethod
    def from_directory(cls, root: Path, prefix: str = "") -> FileTree:
        """Read every file under root into a new tree.

        Hidden files and directories (leading dot) are skipped. Each file
        records its absolute source location under the ``source`` key.

        Args:
            root: Directory to read.
            prefix: Optional path prefix applied to every entry.

        Returns:
            Populated FileTree.
        """
        tree = cls()
        for path in sorted(root.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            try:
                contents = path.read_bytes()
            except OSError as exc:
                raise BuildIOError(f"Could not read file: {exc}", path=str(path)) from exc
            target = f"{prefix.strip('/')}/{rel.as_posix()}" if prefix else rel.as_posix()
            tree.put(VirtualFile(target, contents, Metadata({"source": str(path)})))
        return tree

    def put(self, file: VirtualFile) -> None:
        self._files[file.path] = file

    def get(self, path: str) -> VirtualFile | None:
        return self._files.get(normalize_path(path))

    def remove(self, path: str) -> VirtualFile | None:
        return self._files.pop(normalize_path(path), None)

    def rename(self, old: str, new: str) -> VirtualFile:
        """Move a file to a new path.

        Raises:
            StructureError: If another file already occupies the new path.
        """
        file = self._files[normalize_path(old)]
        new = normalize_path(new)
        if new == file.path:
            return file
        if new in self._files:
            raise StructureError(
                f"Cannot move {file.path} to {new}: path already exists", path=file.path
            )
        del self._files[file.path]
        file.path = new
        self._files[new] = file
        return file

    def list(self) -> list[VirtualFile]:
        return [self._files[key] for key in sorted(self._files)]

    def paths(self) -> list[str]:
        return sorted(self._files)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[VirtualFile]:
        return iter(self.list())

    def flush(self, destination: Path) -> list[Path]:
        """Write every file's contents below destination.

        Args:
            destination: Directory to write into; created if missing.

        Returns:
            Paths of the files written, in tree order.
        """
        written: list[Path] = []
        for file in self.list():
            target = destination / file.path
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(file.contents)
            except OSError as exc:
                raise BuildIOError(f"Could not write file: {exc}", path=str(target)) from exc
            written.append(target)
        return written

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"FileTree({len(self._files)} files)"
