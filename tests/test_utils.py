from datetime import date, datetime, timezone

import pytest

from website_builder.utils import (
    coerce_datetime,
    format_date,
    is_html,
    is_markdown,
    slugify,
    titleize,
    utc_now,
    with_suffix,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Hello World!", "hello-world"),
        ("  Multiple   Spaces here ", "multiple-spaces-here"),
        ("C'est déjà l'été", "cest-dj-lt"),
        ("already-a-slug", "already-a-slug"),
        ("Tabs\tand\nnewlines", "tabs-and-newlines"),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected
    assert slugify(text, "us") == expected


def test_slugify_leaves_cjk_locale_and_empty_values_alone():
    assert slugify("你好 世界", "zh") == "你好 世界"
    assert slugify("Hello World", "zh") == "Hello World"
    assert slugify("") == ""
    assert slugify(None) is None


def test_format_date_defaults_and_custom_formats():
    assert format_date(date(2024, 3, 5)) == "05 March 2024"
    assert format_date(datetime(2024, 12, 25, 8, 30)) == "25 December 2024"
    assert format_date("2024-03-05T10:00:00Z", "%Y-%m-%d %H:%M") == "2024-03-05 10:00"
    assert format_date(0, "%Y") == "1970"


def test_coerce_datetime_rejects_non_dates():
    assert coerce_datetime("2024-03-05").year == 2024
    assert coerce_datetime(86400) == datetime(1970, 1, 2, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        coerce_datetime(True)
    with pytest.raises(ValueError):
        coerce_datetime(["2024"])
    with pytest.raises(ValueError):
        coerce_datetime("not a date")


def test_utc_now_is_timezone_aware_and_live():
    first = utc_now()
    second = utc_now()
    assert first.tzinfo is not None
    assert second >= first


def test_path_helpers():
    assert titleize("getting-started.md") == "Getting Started"
    assert titleize("my_first_post.html") == "My First Post"
    assert is_markdown("posts/A.MD")
    assert is_markdown("notes.markdown")
    assert not is_markdown("index.html")
    assert is_html("index.htm")
    assert not is_html("style.css")
    assert with_suffix("posts/hello.md", ".html") == "posts/hello.html"
