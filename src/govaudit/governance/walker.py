"""Recursive source file enumeration for audits.

The walker never raises for a missing root and drops any subtree it cannot
list, so an audit always reports on whatever part of the tree is readable.

Symlinked directories are followed. A directory already visited in the
current walk (same device and inode) is not entered again, so link cycles
terminate.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from pathspec import PathSpec

from govaudit.core.console import get_logger

logger = get_logger(__name__)

# Dependency caches; never audited. Build output is excluded through config.
DEFAULT_EXCLUDED_DIRS: frozenset[str] = frozenset({"node_modules", "__pycache__", "venv"})


@dataclass(frozen=True)
class WalkerConfig:
    """Where to walk and which files to keep.

    ``extensions`` are suffixes (".ts", ".test.ts"); an empty tuple keeps
    every file. ``excluded_dirs`` are gitignore-style patterns matched
    against directory paths relative to the walk root, in addition to
    hidden directories and DEFAULT_EXCLUDED_DIRS.
    """

    directory: str = "."
    extensions: tuple[str, ...] = ()
    excluded_dirs: tuple[str, ...] = ()
    excluded_defaults: frozenset[str] = field(default=DEFAULT_EXCLUDED_DIRS)


def build_exclusion_spec(patterns: Iterable[str]) -> PathSpec | None:
    lines = [pattern for pattern in patterns if pattern.strip()]
    if not lines:
        return None
    return PathSpec.from_lines("gitwildmatch", lines)


def _is_excluded_dir(
    name: str, relative: PurePosixPath, spec: PathSpec | None, defaults: frozenset[str]
) -> bool:
    if name.startswith(".") or name in defaults:
        return True
    if spec is None:
        return False
    # Trailing slash so directory-only patterns ("build/") match too.
    return spec.match_file(f"{relative.as_posix()}/")


def _matches_extension(name: str, extensions: tuple[str, ...]) -> bool:
    return not extensions or name.endswith(extensions)


def _directory_key(path: str | Path) -> tuple[int, int] | None:
    try:
        info = os.stat(path)
    except OSError:
        return None
    return (info.st_dev, info.st_ino)


def walk_files(
    root: Path,
    extensions: Iterable[str] = (),
    excluded_dirs: Iterable[str] = (),
    *,
    excluded_defaults: frozenset[str] = DEFAULT_EXCLUDED_DIRS,
) -> Iterator[Path]:
    """Yield files below ``root``, each directory visited in name order.

    Args:
        root: Directory to descend into. A missing root yields nothing.
        extensions: Accepted filename suffixes; empty accepts all files.
        excluded_dirs: Extra gitignore-style patterns for directories to skip.

    Yields:
        Paths of matching files, joined onto ``root``.
    """
    suffixes = tuple(extensions)
    spec = build_exclusion_spec(excluded_dirs)
    visited: set[tuple[int, int]] = set()
    root_key = _directory_key(root)
    if root_key is not None:
        visited.add(root_key)
    yield from _walk(Path(root), PurePosixPath(), suffixes, spec, excluded_defaults, visited)


def _walk(
    directory: Path,
    relative: PurePosixPath,
    suffixes: tuple[str, ...],
    spec: PathSpec | None,
    defaults: frozenset[str],
    visited: set[tuple[int, int]],
) -> Iterator[Path]:
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except (FileNotFoundError, NotADirectoryError):
        return
    except OSError as exc:
        logger.debug("Skipping unreadable directory %s: %s", directory, exc)
        return

    for entry in entries:
        try:
            is_dir = entry.is_dir()
        except OSError as exc:
            logger.debug("Skipping unreadable entry %s: %s", entry.path, exc)
            continue

        if not is_dir:
            if _matches_extension(entry.name, suffixes):
                yield Path(entry.path)
            continue

        child = relative / entry.name
        if _is_excluded_dir(entry.name, child, spec, defaults):
            continue
        key = _directory_key(entry.path)
        if key is None or key in visited:
            logger.debug("Skipping already visited directory %s", entry.path)
            continue
        visited.add(key)
        yield from _walk(Path(entry.path), child, suffixes, spec, defaults, visited)


def collect_files(root: Path, config: WalkerConfig) -> tuple[Path, ...]:
    """Materialize the walk described by ``config`` relative to ``root``."""
    return tuple(
        walk_files(
            root / config.directory,
            config.extensions,
            config.excluded_dirs,
            excluded_defaults=config.excluded_defaults,
        )
    )


__all__ = [
    "DEFAULT_EXCLUDED_DIRS",
    "WalkerConfig",
    "build_exclusion_spec",
    "collect_files",
    "walk_files",
]
