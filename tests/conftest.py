from pathlib import Path

import pytest

from website_builder.config import BuildConfig


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path) -> Path:
    """A small blog: three posts, a home page, two layouts and a paginate rule."""
    project = tmp_path / "site"
    write(project / "website.yaml", "site:\n  name: Example\n")
    write(
        project / "content" / "index.md",
        "---\ntitle: Home\n---\n# Welcome\n\nHello there.\n",
    )
    write(
        project / "content" / "posts" / "first.md",
        "---\ntitle: First Post\ndate: 2024-01-05\ntags: [python, web]\n---\nFirst body.\n",
    )
    write(
        project / "content" / "posts" / "second.md",
        "---\ntitle: Second Post\ndate: 2024-02-10\ntags: [python]\n---\nSecond body.\n",
    )
    write(
        project / "content" / "posts" / "third.md",
        "---\ntitle: Third Post\ndate: 2024-03-15\ntags: [web]\n---\nThird body.\n",
    )
    write(
        project / "layouts" / "templates" / "base.html",
        "<!doctype html>\n<html>\n<head><title>{% block title %}{{ title }}{% endblock %}</title></head>\n"
        "<body>\n<!-- main -->\n{% block content %}{% endblock %}\n</body>\n</html>\n",
    )
    write(
        project / "layouts" / "default.html",
        "{% extends 'base.html' %}\n{% block title %}{{ title }} | {{ site.name }}{% endblock %}\n",
    )
    write(
        project / "layouts" / "list.html",
        "<ul>{% for item in items %}<li>{{ item.title }}</li>{% endfor %}</ul>"
        "<p>Page {{ currentPage }} of {{ totalPages }}</p>\n",
    )
    write(
        project / "structure" / "blog.yaml",
        "name: blog\n"
        "type: paginate\n"
        'match: "posts/*.html"\n'
        "sort_by: date\n"
        "reverse: true\n"
        "per_page: 2\n"
        "first_target: blog/index.html\n"
        'target: "blog/page/{{ currentPage }}.html"\n'
        "metadata:\n"
        "  layout: list.html\n"
        "  title: Blog\n",
    )
    return project


@pytest.fixture
def config(tmp_path) -> BuildConfig:
    return BuildConfig.resolve(tmp_path)
