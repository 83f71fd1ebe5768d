"""Utility functions for website-builder.

This module contains the string, date and path helpers shared by the stages
and exposed to templates.

Key functions:
    slugify: Convert text to a URL slug (locale aware).
    format_date: Format a timestamp for display.
    utc_now: Current instant, timezone aware.
    coerce_datetime: Turn dates, ISO strings and epoch numbers into datetimes.
    is_markdown: Check if a path is a Markdown file.
    is_html: Check if a path is an HTML file.
    titleize: Convert filenames to human-readable titles.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from pathlib import PurePosixPath

CJK_LOCALE = "zh"
DEFAULT_LOCALE = "us"
DEFAULT_DATE_FORMAT = "%d %B %Y"

MARKDOWN_EXTENSIONS = (".md", ".markdown")

_WHITESPACE_RE = re.compile(r"\s+")
_SLUG_STRIP_RE = re.compile(r"[^a-zA-Z0-9\- ]")


def slugify(text: str | None, locale: str | None = None) -> str | None:
    """Convert text to a URL slug.

    Lower-cases the text, joins whitespace runs with a single hyphen and
    removes everything outside ``[A-Za-z0-9- ]``. Text in the CJK locale is
    returned unchanged, since those scripts have no casing or word spacing.

    Args:
        text: Text to slugify. Empty values are returned as-is.
        locale: Locale hint, defaults to "us".

    Returns:
        The slug.

    Examples:
        >>> slugify("Hello World!", "us")
        'hello-world'

        >>> slugify("你好", "zh")
        '你好'
    """
    if (locale or DEFAULT_LOCALE) == CJK_LOCALE:
        return text
    if not text:
        return text
    dashed = _WHITESPACE_RE.sub("-", str(text).strip()).lower()
    return _SLUG_STRIP_RE.sub("", dashed)


def utc_now() -> datetime:
    """Return the current instant; each call reads the clock again."""
    return datetime.now(timezone.utc)


def coerce_datetime(value) -> datetime:
    """Convert a date-like value to a datetime.

    Accepts datetime, date, ISO-8601 strings and epoch seconds.

    Raises:
        ValueError: If the value cannot be interpreted as a date.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        raise ValueError(f"Not a date: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, timezone.utc)
    if isinstance(value, str):
        cleaned = value.strip()
        if cleaned.endswith("Z"):
            cleaned = cleaned[:-1] + "+00:00"
        return datetime.fromisoformat(cleaned)
    raise ValueError(f"Not a date: {value!r}")


def format_date(value, fmt: str | None = None) -> str:
    """Format a timestamp, defaulting to "day full-month year".

    Args:
        value: datetime, date, ISO string or epoch seconds.
        fmt: strftime pattern overriding the default.

    Returns:
        Formatted date string.

    Examples:
        >>> format_date(date(2024, 3, 5))
        '05 March 2024'
    """
    return coerce_datetime(value).strftime(fmt or DEFAULT_DATE_FORMAT)


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Examples:
        >>> titleize("getting-started.md")
        'Getting Started'
    """
    base = PurePosixPath(filename).stem
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def is_markdown(path: str) -> bool:
    """Check if a path is a Markdown file (case-insensitive)."""
    return PurePosixPath(path).suffix.lower() in MARKDOWN_EXTENSIONS


def is_html(path: str) -> bool:
    """Check if a path is an HTML file."""
    return PurePosixPath(path).suffix.lower() in (".html", ".htm")


def with_suffix(path: str, suffix: str) -> str:
    """Replace the extension of a POSIX path."""
    return PurePosixPath(path).with_suffix(suffix).as_posix()
