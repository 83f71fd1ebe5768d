import pytest

from website_builder.errors import BuildIOError, StructureError
from website_builder.tree import FileTree, Metadata, VirtualFile, normalize_path


def test_normalize_path_converts_to_posix():
    assert normalize_path("a\\b/./c") == "a/b/c"
    assert normalize_path("posts//hello.html") == "posts/hello.html"


@pytest.mark.parametrize("bad", ["/etc/passwd", "a/../../b", "", "./"])
def test_normalize_path_rejects_escaping_paths(bad):
    with pytest.raises(StructureError):
        normalize_path(bad)


def test_tree_lists_files_in_path_order():
    tree = FileTree()
    for path in ["b.txt", "a/z.txt", "a.txt"]:
        tree.put(VirtualFile(path, b""))

    assert [f.path for f in tree.list()] == ["a.txt", "a/z.txt", "b.txt"]
    assert tree.paths() == ["a.txt", "a/z.txt", "b.txt"]
    assert len(tree) == 3
    assert "a.txt" in tree


def test_tree_get_remove_and_put_replaces():
    tree = FileTree([VirtualFile("index.html", b"old")])
    tree.put(VirtualFile("index.html", b"new"))

    assert tree.get("index.html").contents == b"new"
    assert tree.get("missing.html") is None
    removed = tree.remove("index.html")
    assert removed.contents == b"new"
    assert len(tree) == 0
    assert tree.remove("index.html") is None


def test_rename_moves_file_and_refuses_collisions():
    tree = FileTree([VirtualFile("a.md", b"a"), VirtualFile("b.html", b"b")])

    moved = tree.rename("a.md", "a.html")
    assert moved.path == "a.html"
    assert tree.paths() == ["a.html", "b.html"]

    with pytest.raises(StructureError):
        tree.rename("a.html", "b.html")
    assert tree.get("b.html").contents == b"b"


def test_from_directory_skips_hidden_and_records_source(tmp_path):
    root = tmp_path / "src"
    (root / "css").mkdir(parents=True)
    (root / ".git").mkdir()
    (root / "css" / "site.css").write_bytes(b"body{}")
    (root / ".hidden").write_text("x", encoding="utf-8")
    (root / ".git" / "config").write_text("x", encoding="utf-8")

    tree = FileTree.from_directory(root)
    assert tree.paths() == ["css/site.css"]
    file = tree.get("css/site.css")
    assert file.contents == b"body{}"
    assert file.metadata["source"] == str(root / "css" / "site.css")

    prefixed = FileTree.from_directory(root, prefix="/assets/")
    assert prefixed.paths() == ["assets/css/site.css"]


def test_flush_writes_nested_files(tmp_path):
    tree = FileTree(
        [VirtualFile("index.html", b"<p>home</p>"), VirtualFile("blog/page/2.html", b"two")]
    )
    written = tree.flush(tmp_path / "out")

    assert written == [tmp_path / "out" / "blog/page/2.html", tmp_path / "out" / "index.html"]
    assert (tmp_path / "out" / "blog" / "page" / "2.html").read_bytes() == b"two"


def test_flush_reports_write_failures(tmp_path):
    blocker = tmp_path / "out"
    blocker.write_text("not a directory", encoding="utf-8")
    tree = FileTree([VirtualFile("index.html", b"x")])

    with pytest.raises(BuildIOError):
        tree.flush(blocker)


def test_metadata_reserved_properties_and_extras():
    meta = Metadata(
        {"layout": "post.html", "title": "Hi", "currentPage": 2, "totalPages": 3, "tags": ["a"]}
    )

    assert meta.layout == "post.html"
    assert meta.title == "Hi"
    assert meta.current_page == 2
    assert meta.total_pages == 3
    assert meta.permalink is None
    assert meta.page_items is None
    assert meta.extras() == {"tags": ["a"]}


def test_metadata_copies_are_independent():
    meta = Metadata({"title": "Hi"})
    merged = meta.merged({"title": "Override", "extra": 1})
    copied = meta.copy()
    copied["title"] = "Changed"

    assert meta["title"] == "Hi"
    assert merged.as_dict() == {"title": "Override", "extra": 1}
    assert dict(meta.items()) == {"title": "Hi"}


def test_virtual_file_coerces_metadata():
    file = VirtualFile("./Docs/Index.HTML", b"x", {"title": "Docs"})

    assert isinstance(file.metadata, Metadata)
    assert file.path == "Docs/Index.HTML"
    assert file.suffix == ".html"
    assert file.text() == "x"
