"""Tracked file discovery.

Builds the initial tracked file set of a collector from the configured
paths. Directories are walked with VCS, virtualenv and cache directories
pruned; explicitly listed files are kept as long as they match the include
glob.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable
from pathlib import Path

from scopecov.core.logging import get_logger

log = get_logger("coverage.scanner")

PRUNED_DIRS: frozenset[str] = frozenset(
    (
        # VCS internals
        ".git",
        ".svn",
        ".hg",
        ".bzr",
        # Python environments and caches
        "venv",
        ".venv",
        ".virtualenv",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".nox",
        ".eggs",
        "site-packages",
        ".ipynb_checkpoints",
        ".hypothesis",
        "htmlcov",
        # JavaScript tooling that may vendor Python helpers
        "node_modules",
    )
)


def _excluded(rel_posix: str, name: str, exclude: tuple[str, ...]) -> bool:
    return any(
        fnmatch.fnmatch(name, pattern) or fnmatch.fnmatch(rel_posix, pattern)
        for pattern in exclude
    )


def _walk(root: Path, recursive: bool, follow_symlinks: bool) -> list[tuple[str, Path]]:
    """Files under ``root`` as (root-relative posix path, absolute path)."""
    results: list[tuple[str, Path]] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=follow_symlinks):
        if recursive:
            dirnames[:] = sorted(d for d in dirnames if d not in PRUNED_DIRS)
        else:
            dirnames[:] = []
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for filename in sorted(filenames):
            rel = filename if rel_dir == "." else f"{rel_dir}/{filename}"
            results.append((rel, Path(dirpath) / filename))
    return results


def scan_files(
    paths: Iterable[str | Path],
    *,
    include: str = "*.py",
    exclude: Iterable[str] = (),
    recursive: bool = True,
    follow_symlinks: bool = True,
) -> list[Path]:
    """Resolve configured paths to the sorted, de-duplicated tracked file set.

    Args:
        paths: Files and directories to scan. Missing paths are skipped.
        include: Glob a file name must match.
        exclude: Globs tested against the file name and its path relative
            to the scanned directory.
        recursive: Descend into subdirectories.
        follow_symlinks: Follow symlinked directories.

    Returns:
        Real paths of the tracked files.
    """
    patterns = tuple(exclude)
    found: set[Path] = set()
    for entry in paths:
        path = Path(entry)
        if path.is_file():
            if fnmatch.fnmatch(path.name, include) and not _excluded(
                path.as_posix(), path.name, patterns
            ):
                found.add(path.resolve())
            continue
        if not path.is_dir():
            log.debug("scan_path_missing", path=str(path))
            continue
        for rel, file in _walk(path, recursive, follow_symlinks):
            if not fnmatch.fnmatch(file.name, include):
                continue
            if _excluded(rel, file.name, patterns):
                continue
            found.add(file.resolve())
    files = sorted(found)
    log.debug("scan_complete", files=len(files))
    return files
