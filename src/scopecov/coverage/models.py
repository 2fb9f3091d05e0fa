"""Coverage data model.

Raw coverage is file-centric: file path -> line number -> hit count. Line
numbers are 1-based to match source file conventions.

Metrics entries are per function/method. Percentages are never stored;
they are derived from ``covered`` and ``cloc`` whenever they are read.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# file path -> line number -> hit count
LineHits = dict[int, int]
CoverageMap = dict[str, LineHits]

DEFAULT_PRECISION = 2


def percent(covered: int, cloc: int, precision: int = DEFAULT_PRECISION) -> float:
    """Covered share of coverable lines, as a rounded percentage.

    Returns 0.0 when there are no coverable lines.
    """
    if cloc == 0:
        return 0.0
    return round(covered / cloc * 100.0, precision)


@dataclass(slots=True)
class MetricsEntry:
    """Line and method counts for a function, or a sum of functions.

    Fields:
        loc: physical lines spanned
        ncloc: spanned lines that are not coverable
        cloc: coverable lines
        covered: coverable lines with at least one hit
        methods: functions/methods counted (1 for a leaf)
        cmethods: functions/methods with at least one covered line
        files: source files the counted functions live in
        line: start line of a leaf, None for sums
    """

    loc: int = 0
    ncloc: int = 0
    cloc: int = 0
    covered: int = 0
    methods: int = 0
    cmethods: int = 0
    files: list[str] = field(default_factory=list)
    line: int | None = None

    @property
    def percent(self) -> float:
        return percent(self.covered, self.cloc)

    def percent_at(self, precision: int) -> float:
        return percent(self.covered, self.cloc, precision)

    def accumulate(self, other: MetricsEntry) -> None:
        """Add ``other``'s counts into this entry."""
        self.loc += other.loc
        self.ncloc += other.ncloc
        self.cloc += other.cloc
        self.covered += other.covered
        self.methods += other.methods
        self.cmethods += other.cmethods
        for path in other.files:
            if path not in self.files:
                self.files.append(path)

    def to_dict(self, precision: int = DEFAULT_PRECISION) -> dict[str, object]:
        data: dict[str, object] = {
            "loc": self.loc,
            "ncloc": self.ncloc,
            "cloc": self.cloc,
            "covered": self.covered,
            "percent": self.percent_at(precision),
            "methods": self.methods,
            "cmethods": self.cmethods,
            "files": sorted(self.files),
        }
        if self.line is not None:
            data["line"] = self.line
        return data
