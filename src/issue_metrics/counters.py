"""Issue tallies kept per component by the tree accumulator.

An IssueTally holds seven scalar counts plus two frequency tables (by
severity and by rule type). Tallies merge field-wise, so a parent tally is
the sum of its children's tallies and its own issues.

Security hotspots only ever touch the rule-type table, and only while
unresolved.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from .models import (
    STATUS_CONFIRMED,
    STATUS_OPEN,
    STATUS_REOPENED,
    Issue,
    IssueStatus,
    RuleType,
    Severity,
)

_SCALARS = (
    "unresolved",
    "open",
    "reopened",
    "confirmed",
    "false_positives",
    "accepted",
    "high_impact_accepted",
)

_STATUS_FIELDS = {
    STATUS_OPEN: "open",
    STATUS_REOPENED: "reopened",
    STATUS_CONFIRMED: "confirmed",
}


@dataclass
class IssueTally:
    """Counts of one view (all-time or leak) of a component's issues."""

    unresolved: int = 0
    open: int = 0
    reopened: int = 0
    confirmed: int = 0
    false_positives: int = 0
    accepted: int = 0
    high_impact_accepted: int = 0
    by_severity: Counter = field(default_factory=Counter)
    by_type: Counter = field(default_factory=Counter)

    def add_issue(self, issue: Issue) -> None:
        if issue.rule_type is RuleType.SECURITY_HOTSPOT:
            if not issue.is_resolved:
                self.by_type[RuleType.SECURITY_HOTSPOT] += 1
            return

        if not issue.is_resolved:
            self.unresolved += 1
            self.by_type[issue.rule_type] += 1
            self.by_severity[issue.severity] += 1
        else:
            status = issue.issue_status
            if status is IssueStatus.FALSE_POSITIVE:
                self.false_positives += 1
            elif status is IssueStatus.ACCEPTED:
                self.accepted += 1
                if issue.has_high_impact:
                    self.high_impact_accepted += 1

        name = _STATUS_FIELDS.get(issue.status)
        if name is not None:
            setattr(self, name, getattr(self, name) + 1)

    def merge(self, other: IssueTally) -> IssueTally:
        """Add another tally into this one. Returns self."""
        for name in _SCALARS:
            setattr(self, name, getattr(self, name) + getattr(other, name))
        self.by_severity.update(other.by_severity)
        self.by_type.update(other.by_type)
        return self

    def severity_count(self, severity: Severity) -> int:
        return self.by_severity[severity]

    def type_count(self, rule_type: RuleType) -> int:
        return self.by_type[rule_type]


@dataclass
class IssueTallies:
    """All-time and leak-period tallies of one component."""

    all_time: IssueTally = field(default_factory=IssueTally)
    leak: IssueTally = field(default_factory=IssueTally)

    def add_issue(self, issue: Issue) -> None:
        self.all_time.add_issue(issue)

    def add_leak_issue(self, issue: Issue) -> None:
        self.leak.add_issue(issue)

    def merge(self, other: IssueTallies) -> IssueTallies:
        self.all_time.merge(other.all_time)
        self.leak.merge(other.leak)
        return self
