"""Types and data structures for rule-based compliance auditing."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum


class Severity(IntEnum):
    """Verdict severity, ordered by strictness."""

    PASS = 0
    WARNING = 1
    FAILURE = 2


@dataclass(frozen=True)
class Verdict:
    """Result of evaluating one rule against one target."""

    severity: Severity
    message: str
    remediation: str | None = None
    rule_id: str = ""
    section: str = ""
    details: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return self.severity is Severity.PASS


@dataclass(frozen=True)
class VerdictCounts:
    """Tally of verdicts per severity."""

    passes: int = 0
    warnings: int = 0
    failures: int = 0

    @property
    def total(self) -> int:
        return self.passes + self.warnings + self.failures

    @classmethod
    def from_verdicts(cls, verdicts: Iterable[Verdict]) -> VerdictCounts:
        passes = warnings = failures = 0
        for verdict in verdicts:
            if verdict.severity is Severity.PASS:
                passes += 1
            elif verdict.severity is Severity.WARNING:
                warnings += 1
            else:
                failures += 1
        return cls(passes=passes, warnings=warnings, failures=failures)


def compute_score(counts: VerdictCounts) -> int:
    """Percentage of passing verdicts, rounded half up.

    Warnings count against the score. An empty run scores 100.
    """
    if counts.total == 0:
        return 100
    # Integer arithmetic avoids banker's rounding from round().
    return (200 * counts.passes + counts.total) // (2 * counts.total)


@dataclass(frozen=True)
class AuditReport:
    """Aggregate of all verdicts from one audit run."""

    verdicts: tuple[Verdict, ...] = ()
    files_scanned: int = 0
    counts: VerdictCounts = field(init=False)
    score: int = field(init=False)

    def __post_init__(self) -> None:
        counts = VerdictCounts.from_verdicts(self.verdicts)
        object.__setattr__(self, "counts", counts)
        object.__setattr__(self, "score", compute_score(counts))

    @property
    def has_failures(self) -> bool:
        return self.counts.failures > 0


__all__ = [
    "AuditReport",
    "Severity",
    "Verdict",
    "VerdictCounts",
    "compute_score",
]
