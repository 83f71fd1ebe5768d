from datetime import date

import pytest

from website_builder.collections import FileCollection, ItemView, matches_value
from website_builder.tree import VirtualFile


def view(path, **metadata):
    return ItemView.of(VirtualFile(path, f"<p>{path}</p>".encode(), metadata))


def test_item_view_exposes_metadata_read_only():
    item = view("posts/a.html", title="A", tags=["x"])

    assert item.title == "A"
    assert item["tags"] == ["x"]
    assert item.get("missing", "default") == "default"
    assert item.contents == "<p>posts/a.html</p>"
    with pytest.raises(AttributeError):
        item.missing
    with pytest.raises(TypeError):
        item.metadata["title"] = "B"


def test_item_view_is_a_snapshot():
    file = VirtualFile("a.html", b"x", {"title": "Before"})
    item = ItemView.of(file)
    file.metadata["title"] = "After"

    assert item.title == "Before"


def test_sorted_puts_missing_values_last():
    items = FileCollection(
        [
            view("a.html", date=date(2024, 1, 1)),
            view("b.html"),
            view("c.html", date=date(2024, 3, 1)),
        ]
    )

    assert items.sorted().paths() == ["c.html", "a.html", "b.html"]
    assert items.sorted(reverse=False).paths() == ["a.html", "c.html", "b.html"]


def test_sorted_tolerates_mixed_types():
    items = FileCollection([view("a.html", date="2024-02-01"), view("b.html", date=date(2024, 1, 1))])

    assert items.sorted(reverse=False).paths() == ["b.html", "a.html"]


def test_with_value_latest_and_slicing():
    items = FileCollection(
        [
            view("a.html", tags=["python", "web"], date=date(2024, 1, 1)),
            view("b.html", tags=["web"], date=date(2024, 2, 1)),
            view("c.html", tags="python", date=date(2024, 3, 1)),
        ]
    )

    assert items.with_value("tags", "python").paths() == ["a.html", "c.html"]
    assert items.latest(2).paths() == ["c.html", "b.html"]
    assert isinstance(items[1:], FileCollection)
    assert items[1:] == FileCollection([items[1], items[2]])
    assert items[0].path == "a.html"


def test_matches_value():
    assert matches_value(["a", "b"], "a")
    assert matches_value("a", "a")
    assert not matches_value(None, False)
    assert not matches_value(["b"], "a")
