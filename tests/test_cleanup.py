import os

import pytest

from website_builder.cleanup import clean, resolve_inside
from website_builder.errors import ConfigurationError


def populate(target):
    (target / "posts").mkdir(parents=True)
    (target / "index.html").write_text("home", encoding="utf-8")
    (target / "posts" / "a.html").write_text("a", encoding="utf-8")
    (target / "assets").mkdir()
    (target / "assets" / "site.css").write_text("css", encoding="utf-8")


def test_clean_empties_target_but_keeps_directory(tmp_path):
    target = tmp_path / "build"
    populate(target)

    assert clean(tmp_path, "build") == target.resolve()
    assert target.is_dir()
    assert list(target.iterdir()) == []


def test_clean_keeps_named_entries(tmp_path):
    target = tmp_path / "build"
    populate(target)

    clean(tmp_path, "build", keep={"assets"})

    assert sorted(p.name for p in target.iterdir()) == ["assets"]
    assert (target / "assets" / "site.css").read_text(encoding="utf-8") == "css"


def test_clean_missing_target_is_a_no_op(tmp_path):
    assert clean(tmp_path, "build") == (tmp_path / "build").resolve()
    assert not (tmp_path / "build").exists()


@pytest.mark.parametrize("target", ["../outside", ".", "build/../..", "/"])
def test_clean_refuses_targets_outside_workdir(tmp_path, target):
    workdir = tmp_path / "project"
    workdir.mkdir()
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "precious.txt").write_text("keep me", encoding="utf-8")
    (workdir / "file.txt").write_text("keep me too", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        clean(workdir, target)

    assert (outside / "precious.txt").exists()
    assert (workdir / "file.txt").exists()


def test_clean_refuses_symlink_escaping_workdir(tmp_path):
    workdir = tmp_path / "project"
    workdir.mkdir()
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "precious.txt").write_text("keep me", encoding="utf-8")
    os.symlink(outside, workdir / "build")

    with pytest.raises(ConfigurationError):
        clean(workdir, "build")
    assert (outside / "precious.txt").exists()


def test_clean_unlinks_symlinks_without_following(tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "precious.txt").write_text("keep me", encoding="utf-8")
    target = tmp_path / "project" / "build"
    target.mkdir(parents=True)
    os.symlink(outside, target / "link")

    clean(tmp_path / "project", "build")

    assert not (target / "link").exists()
    assert (outside / "precious.txt").exists()


def test_clean_target_must_be_a_directory(tmp_path):
    (tmp_path / "build").write_text("not a dir", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        clean(tmp_path, "build")


def test_resolve_inside_accepts_nested_targets(tmp_path):
    assert resolve_inside(tmp_path, "out/site") == (tmp_path / "out" / "site").resolve()
