"""Tests for CoverageStore accumulation, path resolution and guards."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from scopecov.coverage.store import CoverageStore, count_lines


class TestCountLines:
    def test_trailing_newline_adds_no_line(self, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_text("a = 1\nb = 2\n")
        assert count_lines(path) == 2

    def test_no_trailing_newline(self, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_text("a = 1\nb = 2")
        assert count_lines(path) == 2

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_text("")
        assert count_lines(path) == 0


class TestSeeding:
    def test_tracked_files_seeded_empty(self, make_source: Callable[..., Path]) -> None:
        a = make_source("a.py")
        b = make_source("b.py")

        store = CoverageStore([a, b])

        assert store.coverage == {str(a): {}, str(b): {}}
        assert store.files == [str(a), str(b)]

    def test_contains_tracked_file(self, make_source: Callable[..., Path]) -> None:
        a = make_source("a.py")
        store = CoverageStore([a])

        assert a in store
        assert str(a) in store
        assert "/elsewhere/a.py" not in store
        assert 42 not in store


class TestMerge:
    """Additive merge semantics."""

    def test_merge_twice_accumulates(self, make_source: Callable[..., Path]) -> None:
        f = make_source()
        store = CoverageStore([f])

        store.merge({str(f): {10: 1}})
        store.merge({str(f): {10: 1}})

        assert store.get(f) == {10: 2}

    def test_merge_adds_new_lines(self, make_source: Callable[..., Path]) -> None:
        f = make_source()
        store = CoverageStore([f])

        store.merge({str(f): {3: 2}})
        store.merge({str(f): {4: 1, 3: 5}})

        assert store.get(f) == {3: 7, 4: 1}

    def test_merge_returns_coverage(self, make_source: Callable[..., Path]) -> None:
        f = make_source()
        store = CoverageStore([f])

        result = store.merge({str(f): {2: 1}})

        assert result is store.coverage
        assert result[str(f)] == {2: 1}

    def test_merge_none_or_empty_is_noop(self, make_source: Callable[..., Path]) -> None:
        f = make_source()
        store = CoverageStore([f])

        store.merge(None)
        store.merge({})
        store.merge({str(f): {}})

        assert store.get(f) == {}

    def test_zero_hits_recorded_as_present(self, make_source: Callable[..., Path]) -> None:
        f = make_source()
        store = CoverageStore([f])

        store.merge({str(f): {5: 0}})

        assert store.get(f) == {5: 0}


class TestLineRangeGuard:
    def test_line_zero_dropped(self, make_source: Callable[..., Path]) -> None:
        f = make_source(lines=20)
        store = CoverageStore([f])

        store.merge({str(f): {0: 3, -1: 1, 1: 1}})

        assert store.get(f) == {1: 1}

    def test_lines_at_or_past_line_count_dropped(self, make_source: Callable[..., Path]) -> None:
        f = make_source(lines=20)
        store = CoverageStore([f])

        store.merge({str(f): {19: 1, 20: 1, 21: 1, 500: 1}})

        assert store.get(f) == {19: 1}
        assert 20 not in store.get(f)


class TestScopeGuard:
    def test_untracked_file_ignored(self, make_source: Callable[..., Path]) -> None:
        tracked = make_source("tracked.py")
        untracked = make_source("untracked.py")
        store = CoverageStore([tracked])

        store.merge({str(untracked): {1: 1}, str(tracked): {2: 1}})

        assert store.files == [str(tracked)]
        assert store.get(tracked) == {2: 1}
        assert store.get(untracked) == {}

    def test_merge_file_reports_drop(self, make_source: Callable[..., Path]) -> None:
        tracked = make_source("tracked.py")
        store = CoverageStore([tracked])

        assert store.merge_file(str(tracked), {1: 1}) is True
        assert store.merge_file("/not/tracked.py", {1: 1}) is False

    def test_synthetic_code_ignored(self, make_source: Callable[..., Path]) -> None:
        f = make_source()
        store = CoverageStore([f], synthetic_patterns=["<string>", "<frozen *>"])

        assert not store.collectable("<string>")
        assert not store.collectable("<frozen importlib._bootstrap>")
        store.merge({"<string>": {1: 1}})

        assert store.files == [str(f)]


class TestPrefixResolution:
    """Instrumentation cache prefix is stripped component-wise."""

    def test_prefix_stripped(self, make_source: Callable[..., Path]) -> None:
        f = make_source()
        store = CoverageStore([f], prefix="/tmp/jit-cache")

        reported = f"/tmp/jit-cache{f}"
        store.merge({reported: {4: 1}})

        assert store.resolve(reported) == str(f)
        assert store.get(f) == {4: 1}

    def test_partial_component_prefix_not_stripped(self) -> None:
        store = CoverageStore([], prefix="/tmp/cache")

        assert store.resolve("/tmp/cache-old/src/a.py") == "/tmp/cache-old/src/a.py"

    def test_path_without_prefix_unchanged(self, make_source: Callable[..., Path]) -> None:
        f = make_source()
        store = CoverageStore([f], prefix="/tmp/jit-cache")

        store.merge({str(f): {4: 1}})

        assert store.resolve(str(f)) == str(f)
        assert store.get(f) == {4: 1}

    def test_prefix_itself_not_a_file(self) -> None:
        store = CoverageStore([], prefix="/tmp/cache")

        assert store.resolve("/tmp/cache") == "/tmp/cache"

    def test_no_prefix(self) -> None:
        store = CoverageStore([])

        assert store.resolve("/src/a.py") == "/src/a.py"
