"""Configuration loading for website-builder.

Settings come from three layers, later layers winning: DEFAULT_CONFIG, an
optional ``website.yaml`` in the working directory, and command-line
overrides. The result is a frozen BuildConfig with absolute paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError, ParseError

CONFIG_FILENAME = "website.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "target": "build",
    "content": "content",
    "layouts": "layouts",
    "structure": "structure",
    "assets": "assets",
    "sass": "sass",
    "assets_target": "assets",
    "sass_target": "assets/css",
    "default_layout": "default.html",
    "content_block": "content",
    "minify": False,
    "clean": True,
    "dev": False,
    "inline_source_map": False,
    "site": {},
}


def load_config(workdir: Path) -> dict[str, Any]:
    """Load settings from website.yaml, with defaults applied.

    Args:
        workdir: Working directory of the project.

    Returns:
        Dictionary containing configuration values.

    Raises:
        ParseError: If the file exists but is not valid YAML.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = workdir / CONFIG_FILENAME
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ParseError(f"Invalid configuration: {exc}", path=str(config_path)) from exc
        if isinstance(loaded, dict):
            config.update(loaded)
    return config


@dataclass(frozen=True)
class BuildConfig:
    """Resolved settings for a single build invocation.

    Attributes:
        workdir: Absolute working directory; every other path is below it.
        target: Absolute destination directory.
        content: Content source directory.
        layouts: Layout templates directory.
        structure: Structure rule directory (optional).
        assets: Assets source directory.
        sass: Sass source directory.
        assets_target: Assets output path relative to target.
        sass_target: Compiled CSS output path relative to target.
        default_layout: Layout used when a file names none.
        content_block: Block of the layout that receives page contents.
        minify: Whether the page build runs the minify stage.
        clean: Whether the page build empties the target before writing.
        dev: Sass dev mode (expanded output, source maps).
        inline_source_map: Embed source maps into the CSS in dev mode.
        site: Site-wide metadata exposed to templates.
    """

    workdir: Path
    target: Path
    content: Path
    layouts: Path
    structure: Path
    assets: Path
    sass: Path
    assets_target: str = "assets"
    sass_target: str = "assets/css"
    default_layout: str = "default.html"
    content_block: str = "content"
    minify: bool = False
    clean: bool = True
    dev: bool = False
    inline_source_map: bool = False
    site: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def resolve(cls, workdir: Path | str | None = None, **overrides: Any) -> BuildConfig:
        """Build a configuration for workdir.

        Args:
            workdir: Working directory; defaults to the current directory.
            **overrides: Values overriding website.yaml. None values are ignored.

        Raises:
            ConfigurationError: If the working directory does not exist.
        """
        root = Path(workdir or Path.cwd()).resolve()
        if not root.is_dir():
            raise ConfigurationError(f"Working directory not found: {root}")

        settings = load_config(root)
        settings.update({k: v for k, v in overrides.items() if v is not None})

        unknown = set(settings) - set(DEFAULT_CONFIG)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )
        site = settings["site"] or {}
        if not isinstance(site, dict):
            raise ConfigurationError("'site' must be a mapping")

        return cls(
            workdir=root,
            target=(root / settings["target"]).resolve(),
            content=(root / settings["content"]).resolve(),
            layouts=(root / settings["layouts"]).resolve(),
            structure=(root / settings["structure"]).resolve(),
            assets=(root / settings["assets"]).resolve(),
            sass=(root / settings["sass"]).resolve(),
            assets_target=str(settings["assets_target"]).strip("/"),
            sass_target=str(settings["sass_target"]).strip("/"),
            default_layout=str(settings["default_layout"]),
            content_block=str(settings["content_block"]),
            minify=bool(settings["minify"]),
            clean=bool(settings["clean"]),
            dev=bool(settings["dev"]),
            inline_source_map=bool(settings["inline_source_map"]),
            site=dict(site),
        )

    def require_dir(self, path: Path, label: str) -> Path:
        """Return path if it is an existing directory.

        Raises:
            ConfigurationError: If the directory is missing.
        """
        if not path.is_dir():
            raise ConfigurationError(f"Could not find {label} folder {path}", path=str(path))
        return path
