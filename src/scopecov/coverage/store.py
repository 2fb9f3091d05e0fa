"""Per-file accumulation of raw line hits.

The store is seeded with one empty entry per tracked file, so files the
driver never reports still show up (with zero coverage) in exports.

Driver data is merged additively: hits for a line already present are added
to, never overwritten. Updates the store cannot place are dropped silently:

- paths that do not resolve to a tracked file (frameworks report their own
  internals, test runners report test files that were never requested)
- synthetic code with no backing file (``<string>``, ``<frozen ...>``)
- line numbers below 1 or at or past the file's physical line count
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePath

from scopecov.core.logging import get_logger
from scopecov.coverage.models import CoverageMap, LineHits

log = get_logger("coverage.store")


def count_lines(path: str | Path) -> int:
    """Physical line count of a file (a trailing newline adds no line)."""
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return len(text.splitlines())


class CoverageStore:
    """Additive line-hit map over a fixed set of tracked files.

    Args:
        files: Tracked source files. Stored by real path.
        prefix: Instrumentation cache directory the driver may report paths
            under. Stripped component-wise before matching tracked files.
        synthetic_patterns: Globs for reported names with no backing file.
    """

    def __init__(
        self,
        files: Iterable[str | Path] = (),
        *,
        prefix: str | Path | None = None,
        synthetic_patterns: Iterable[str] = (),
    ) -> None:
        self._coverage: CoverageMap = {os.path.realpath(f): {} for f in files}
        self._prefix_parts: tuple[str, ...] = PurePath(prefix).parts if prefix else ()
        self._synthetic_patterns = tuple(synthetic_patterns)
        self._line_counts: dict[str, int] = {}

    @property
    def coverage(self) -> CoverageMap:
        return self._coverage

    @property
    def files(self) -> list[str]:
        return list(self._coverage)

    def __contains__(self, file: object) -> bool:
        return isinstance(file, (str, PurePath)) and self.resolve(file) in self._coverage

    def get(self, file: str | Path) -> LineHits:
        """Raw hits of a tracked file (empty for untracked files)."""
        return self._coverage.get(self.resolve(file), {})

    def resolve(self, file: str | Path) -> str:
        """Map a driver-reported path back to its tracked path.

        Only the exact leading components of the prefix are removed;
        ``/cache-old/x.py`` does not match prefix ``/cache``.
        """
        path = PurePath(file)
        count = len(self._prefix_parts)
        if count and len(path.parts) > count and path.parts[:count] == self._prefix_parts:
            rest = path.parts[count:]
            return str(PurePath(path.anchor, *rest)) if path.anchor else str(PurePath(*rest))
        return str(path)

    def is_synthetic(self, file: str | Path) -> bool:
        name = str(file)
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self._synthetic_patterns)

    def collectable(self, file: str | Path) -> bool:
        """True when hits reported for ``file`` are kept."""
        if self.is_synthetic(file):
            return False
        return self.resolve(file) in self._coverage

    def line_count(self, file: str) -> int:
        if file not in self._line_counts:
            self._line_counts[file] = count_lines(file)
        return self._line_counts[file]

    def merge(self, raw: Mapping[str, Mapping[int, int]] | None) -> CoverageMap:
        """Merge driver output for any number of files.

        Returns:
            The store's coverage map after the merge.
        """
        if not raw:
            return self._coverage
        dropped = []
        for file, hits in raw.items():
            if not hits:
                continue
            if not self.merge_file(file, hits):
                dropped.append(file)
        if dropped:
            log.debug("untracked_files_dropped", count=len(dropped))
        return self._coverage

    def merge_file(self, file: str | Path, hits: Mapping[int, int]) -> bool:
        """Add one file's line hits.

        Returns:
            False when the file is not collectable and nothing was merged.
        """
        if not self.collectable(file):
            return False
        path = self.resolve(file)
        total = self.line_count(path)
        lines = self._coverage[path]
        for line, value in hits.items():
            # Drivers report stale line numbers for edited files
            if line < 1 or line >= total:
                continue
            lines[line] = lines.get(line, 0) + value
        return True
