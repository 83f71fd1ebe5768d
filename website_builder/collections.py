from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .tree import VirtualFile


@dataclass(frozen=True)
class ItemView:
    """Read-only snapshot of a source file, as listed on a generated page."""

    path: str
    contents: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, file: VirtualFile) -> ItemView:
        try:
            text = file.text()
        except UnicodeDecodeError:
            text = ""
        return cls(file.path, text, MappingProxyType(file.metadata.as_dict()))

    def __getattr__(self, name: str) -> Any:
        # Lets templates write item.title instead of item.metadata.title.
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.metadata[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, key: str) -> Any:
        return self.metadata[key]

    def get(self, key: str, default=None):
        return self.metadata.get(key, default)


class FileCollection(Sequence[ItemView]):
    """Lightweight helper for working with lists of items in templates and code."""

    def __init__(self, items: Iterable[ItemView]):
        self._items = list(items)

    def __iter__(self) -> Iterator[ItemView]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return FileCollection(self._items[item])
        return self._items[item]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FileCollection):
            return self._items == other._items
        return NotImplemented

    def with_value(self, key: str, value: Any) -> FileCollection:
        """Items whose metadata key equals value, or contains it when a list."""
        return FileCollection(i for i in self._items if matches_value(i.get(key), value))

    def sorted(self, key: str = "date", reverse: bool = True) -> FileCollection:
        """Sort by a metadata key; items missing the key keep their order at the end."""
        present = [i for i in self._items if i.get(key) is not None]
        missing = [i for i in self._items if i.get(key) is None]
        if len({type(i.get(key)) for i in present}) > 1:
            # Mixed types (date vs str) compare by their string form.
            ordered = sorted(present, key=lambda i: str(i.get(key)), reverse=reverse)
        else:
            ordered = sorted(present, key=lambda i: i.get(key), reverse=reverse)
        return FileCollection(ordered + missing)

    def latest(self, count: int = 5, key: str = "date") -> FileCollection:
        return self.sorted(key)[:count]

    def paths(self) -> list[str]:
        return [i.path for i in self._items]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"FileCollection({len(self._items)} items)"


def matches_value(actual: Any, expected: Any) -> bool:
    if isinstance(actual, (list, tuple, set)):
        return expected in actual
    return actual == expected

