"""Safe cleanup of build destinations.

clean() only ever deletes inside the working directory: a target that
resolves to the working directory itself or anywhere outside it is refused
before anything is touched.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from .errors import BuildIOError, ConfigurationError

logger = logging.getLogger(__name__)


def resolve_inside(workdir: Path, target: str | Path) -> Path:
    """Resolve target against workdir, refusing anything not below it.

    Raises:
        ConfigurationError: If the resolved path is workdir itself or
            lies outside it (e.g. ``../outside``).
    """
    root = Path(workdir).resolve()
    resolved = (root / target).resolve()
    if resolved == root or root not in resolved.parents:
        raise ConfigurationError(
            f"Refusing to clean {resolved}: it is not inside the working directory {root}",
            path=str(target),
        )
    return resolved


def clean(workdir: Path, target: str | Path, keep: Iterable[str] = ()) -> Path:
    """Remove the contents of workdir/target, keeping the directory itself.

    A missing target is not an error. Symlinks are unlinked, never followed.

    Args:
        workdir: Working directory that bounds every deletion.
        target: Directory to empty, relative to workdir (or absolute inside it).
        keep: Top-level entry names to leave in place.

    Returns:
        The resolved target path.
    """
    resolved = resolve_inside(workdir, target)
    if not resolved.exists():
        logger.debug("Nothing to clean at %s", resolved)
        return resolved
    if not resolved.is_dir():
        raise ConfigurationError(f"Clean target is not a directory: {resolved}", path=str(target))

    kept = set(keep)
    for entry in sorted(resolved.iterdir()):
        if entry.name in kept:
            continue
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                os.unlink(entry)
        except OSError as exc:
            raise BuildIOError(f"Could not remove {entry}: {exc}", path=str(entry)) from exc
    logger.debug("Cleaned %s", resolved)
    return resolved
