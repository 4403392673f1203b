"""Groups-mode input: aggregates of one component's pre-aggregated issue rows.

Every aggregate keeps two views, all-time and leak-only. A row flagged
in_leak counts in both.

Rows are classified as follows:
    hotspot rows     unresolved -> unresolved by type (SECURITY_HOTSPOT)
                     TO_REVIEW / REVIEWED status -> hotspot review tallies
    other rows       unresolved -> totals, by severity, by type, effort by type,
                                   highest severity by type
                     resolved   -> count by resolution
                     any status -> count by status
    impact rows      unresolved -> count by (quality, impact severity)
                     WONTFIX + HIGH -> high-impact accepted, per issue when keys are known
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Hashable, Iterable, Optional

from ..models import (
    RESOLUTION_WONT_FIX,
    STATUS_REVIEWED,
    STATUS_TO_REVIEW,
    ImpactSeverity,
    IssueGroupRow,
    IssueImpactGroupRow,
    RuleType,
    Severity,
    SoftwareQuality,
)

_TOTAL = "total"


@dataclass
class _Split:
    """A Counter per view."""

    all_time: Counter = field(default_factory=Counter)
    leak: Counter = field(default_factory=Counter)

    def add(self, key: Hashable, in_leak: bool, amount: float = 1) -> None:
        self.all_time[key] += amount
        if in_leak:
            self.leak[key] += amount

    def get(self, key: Hashable, leak: bool = False) -> float:
        return (self.leak if leak else self.all_time)[key]


@dataclass
class _Highest:
    """Highest severity per rule type, per view."""

    all_time: dict = field(default_factory=dict)
    leak: dict = field(default_factory=dict)

    def add(self, rule_type: RuleType, severity: Severity, in_leak: bool) -> None:
        views = (self.all_time, self.leak) if in_leak else (self.all_time,)
        for view in views:
            view[rule_type] = Severity.highest(filter(None, (view.get(rule_type), severity)))

    def get(self, rule_type: RuleType, leak: bool = False) -> Optional[Severity]:
        return (self.leak if leak else self.all_time).get(rule_type)


class IssueGroupCounter:
    """Aggregates read by formulas in groups mode."""

    def __init__(
        self,
        groups: Iterable[IssueGroupRow] = (),
        impact_groups: Iterable[IssueImpactGroupRow] = (),
    ) -> None:
        self._unresolved = _Split()
        self._unresolved_by_severity = _Split()
        self._unresolved_by_type = _Split()
        self._effort_by_type = _Split()
        self._highest_severity_by_type = _Highest()
        self._by_resolution = _Split()
        self._by_status = _Split()
        self._hotspots = _Split()
        self._impacts = _Split()
        self._high_impact_accepted_keys: set[str] = set()
        self._high_impact_accepted_rows = 0

        for row in groups:
            self._add_group(row)
        for row in impact_groups:
            self._add_impact_group(row)

    def _add_group(self, row: IssueGroupRow) -> None:
        leak = row.in_leak
        if row.rule_type is RuleType.SECURITY_HOTSPOT:
            if row.resolution is None:
                self._unresolved_by_type.add(RuleType.SECURITY_HOTSPOT, leak, row.count)
            if row.status in (STATUS_TO_REVIEW, STATUS_REVIEWED):
                self._hotspots.add(row.status, leak, row.count)
            return

        if row.resolution is None:
            self._unresolved.add(_TOTAL, leak, row.count)
            self._unresolved_by_severity.add(row.severity, leak, row.count)
            self._unresolved_by_type.add(row.rule_type, leak, row.count)
            self._effort_by_type.add(row.rule_type, leak, row.effort)
            self._highest_severity_by_type.add(row.rule_type, row.severity, leak)
        else:
            self._by_resolution.add(row.resolution, leak, row.count)
        if row.status is not None:
            self._by_status.add(row.status, leak, row.count)

    def _add_impact_group(self, row: IssueImpactGroupRow) -> None:
        if row.resolution is None:
            self._impacts.add((row.software_quality, row.severity), row.in_leak, row.count)
        elif row.resolution == RESOLUTION_WONT_FIX and row.severity is ImpactSeverity.HIGH:
            if row.issue_keys is not None:
                self._high_impact_accepted_keys.update(row.issue_keys)
            else:
                self._high_impact_accepted_rows += row.count

    # ── Reads ──────────────────────────────────────────────────────────

    def count_unresolved(self, leak: bool = False) -> int:
        return int(self._unresolved.get(_TOTAL, leak))

    def count_unresolved_by_severity(self, severity: Severity, leak: bool = False) -> int:
        return int(self._unresolved_by_severity.get(severity, leak))

    def count_unresolved_by_type(self, rule_type: RuleType, leak: bool = False) -> int:
        return int(self._unresolved_by_type.get(rule_type, leak))

    def sum_effort_of_unresolved(self, rule_type: RuleType, leak: bool = False) -> float:
        return float(self._effort_by_type.get(rule_type, leak))

    def highest_severity_of_unresolved(
        self, rule_type: RuleType, leak: bool = False
    ) -> Optional[Severity]:
        return self._highest_severity_by_type.get(rule_type, leak)

    def count_by_resolution(self, resolution: str, leak: bool = False) -> int:
        return int(self._by_resolution.get(resolution, leak))

    def count_by_status(self, status: str, leak: bool = False) -> int:
        return int(self._by_status.get(status, leak))

    def count_hotspots_reviewed(self, leak: bool = False) -> int:
        return int(self._hotspots.get(STATUS_REVIEWED, leak))

    def count_hotspots_to_review(self, leak: bool = False) -> int:
        return int(self._hotspots.get(STATUS_TO_REVIEW, leak))

    def count_high_impact_accepted(self) -> int:
        return len(self._high_impact_accepted_keys) + self._high_impact_accepted_rows

    def impact_distribution(self, quality: SoftwareQuality, leak: bool = False) -> dict[str, int]:
        """Unresolved impacts of one quality: total plus one entry per impact severity."""
        result = {_TOTAL: 0}
        for severity in (ImpactSeverity.HIGH, ImpactSeverity.MEDIUM, ImpactSeverity.LOW):
            count = int(self._impacts.get((quality, severity), leak))
            result[severity.value] = count
            result[_TOTAL] += count
        return result
