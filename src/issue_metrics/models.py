"""Domain model shared by the tree accumulator and the formula engine.

Issues are classified along four axes:

    rule type   CODE_SMELL | BUG | VULNERABILITY | SECURITY_HOTSPOT
    severity    INFO < MINOR < MAJOR < CRITICAL < BLOCKER
    status      open string domain (OPEN, CONFIRMED, REOPENED, RESOLVED, ...)
    resolution  open string domain, None while the issue is unresolved

plus a mapping of software quality to impact severity. Status and resolution
stay plain strings because hosts may send values this package does not know;
those are ignored by the counting rules rather than rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Mapping, Optional

# ── Statuses ───────────────────────────────────────────────────────────

STATUS_OPEN = "OPEN"
STATUS_CONFIRMED = "CONFIRMED"
STATUS_REOPENED = "REOPENED"
STATUS_RESOLVED = "RESOLVED"
STATUS_CLOSED = "CLOSED"

# Security hotspot workflow
STATUS_TO_REVIEW = "TO_REVIEW"
STATUS_REVIEWED = "REVIEWED"

# ── Resolutions ────────────────────────────────────────────────────────

RESOLUTION_FIXED = "FIXED"
RESOLUTION_FALSE_POSITIVE = "FALSE-POSITIVE"
RESOLUTION_WONT_FIX = "WONTFIX"
RESOLUTION_REMOVED = "REMOVED"
RESOLUTION_SAFE = "SAFE"
RESOLUTION_ACKNOWLEDGED = "ACKNOWLEDGED"

# Resolutions that mean "accepted": the issue stays but the team decided not to fix it
ACCEPTED_RESOLUTIONS = frozenset({RESOLUTION_WONT_FIX})


class RuleType(Enum):
    """Kind of rule that raised an issue."""

    CODE_SMELL = "CODE_SMELL"
    BUG = "BUG"
    VULNERABILITY = "VULNERABILITY"
    SECURITY_HOTSPOT = "SECURITY_HOTSPOT"


class Severity(Enum):
    """Issue severity, declared from least to most severe."""

    INFO = "INFO"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"
    BLOCKER = "BLOCKER"

    @property
    def rank(self) -> int:
        """Ordinal position, 0 for INFO up to 4 for BLOCKER."""
        return _SEVERITY_ORDER.index(self)

    @classmethod
    def highest(cls, severities) -> Optional[Severity]:
        """Most severe value of an iterable, or None when it is empty."""
        result = None
        for severity in severities:
            if result is None or severity.rank > result.rank:
                result = severity
        return result


_SEVERITY_ORDER = list(Severity)


class SoftwareQuality(Enum):
    """Software quality an impact applies to."""

    MAINTAINABILITY = "MAINTAINABILITY"
    RELIABILITY = "RELIABILITY"
    SECURITY = "SECURITY"


class ImpactSeverity(Enum):
    """Severity of an impact on one software quality."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class IssueStatus(Enum):
    """Simplified issue status derived from (status, resolution)."""

    OPEN = "OPEN"
    CONFIRMED = "CONFIRMED"
    FIXED = "FIXED"
    ACCEPTED = "ACCEPTED"
    FALSE_POSITIVE = "FALSE_POSITIVE"


def issue_status_of(status: Optional[str], resolution: Optional[str]) -> Optional[IssueStatus]:
    """Derive the simplified issue status.

    OPEN and REOPENED map to OPEN, CONFIRMED to CONFIRMED, CLOSED to FIXED.
    RESOLVED maps through the resolution (FALSE-POSITIVE, WONTFIX, FIXED).
    Hotspot statuses and unknown combinations have no issue status.
    """
    if status in (STATUS_OPEN, STATUS_REOPENED):
        return IssueStatus.OPEN
    if status == STATUS_CONFIRMED:
        return IssueStatus.CONFIRMED
    if status == STATUS_CLOSED:
        return IssueStatus.FIXED
    if status == STATUS_RESOLVED and resolution is not None:
        if resolution == RESOLUTION_FALSE_POSITIVE:
            return IssueStatus.FALSE_POSITIVE
        if resolution in ACCEPTED_RESOLUTIONS:
            return IssueStatus.ACCEPTED
        if resolution == RESOLUTION_FIXED:
            return IssueStatus.FIXED
    return None


class Rating(IntEnum):
    """Letter rating, A is best and E is worst. Higher value is worse."""

    A = 1
    B = 2
    C = 3
    D = 4
    E = 5

    @classmethod
    def worst(cls, *ratings: Rating) -> Rating:
        """Ordinally largest rating. Requires at least one argument."""
        if not ratings:
            raise ValueError("worst() needs at least one rating")
        return cls(max(ratings))

    @classmethod
    def of(cls, value) -> Rating:
        """Accept a Rating, its letter, or its ordinal (int or float)."""
        if isinstance(value, Rating):
            return value
        if isinstance(value, str):
            return cls[value.strip().upper()]
        return cls(int(value))


class Qualifier(Enum):
    """Position of a component in the tree."""

    PROJECT = "PRJ"
    MODULE = "BRC"
    DIRECTORY = "DIR"
    FILE = "FIL"


# ── Records ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Component:
    """A node of the component tree.

    Attributes:
        key: Stable identifier, unique in the tree.
        children: Ordered keys of the direct children.
        qualifier: Project, module, directory or file.
    """

    key: str
    children: tuple[str, ...] = ()
    qualifier: Qualifier = Qualifier.FILE

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class Issue:
    """Classification snapshot of a single issue.

    Attributes:
        key: Issue identity.
        rule_type: Kind of rule that raised it.
        severity: Overall severity.
        status: Workflow status (open string domain).
        resolution: None while unresolved.
        impacts: Software quality to impact severity.
        explicit_status: Overrides the status derived from (status, resolution).
    """

    key: str
    rule_type: RuleType
    severity: Severity
    status: str = STATUS_OPEN
    resolution: Optional[str] = None
    impacts: Mapping[SoftwareQuality, ImpactSeverity] = field(default_factory=dict)
    explicit_status: Optional[IssueStatus] = None

    @property
    def is_resolved(self) -> bool:
        return self.resolution is not None

    @property
    def issue_status(self) -> Optional[IssueStatus]:
        if self.explicit_status is not None:
            return self.explicit_status
        return issue_status_of(self.status, self.resolution)

    @property
    def has_high_impact(self) -> bool:
        return any(s is ImpactSeverity.HIGH for s in self.impacts.values())


@dataclass(frozen=True)
class IssueGroupRow:
    """Pre-aggregated issues of one component sharing the same classification.

    Attributes:
        rule_type: Rule type of the grouped issues.
        severity: Severity of the grouped issues.
        status: Workflow status.
        resolution: None for unresolved groups.
        in_leak: True if the issues are new in the leak period.
        count: Number of issues in the group.
        effort: Summed remediation effort (minutes).
    """

    rule_type: RuleType = RuleType.CODE_SMELL
    severity: Severity = Severity.INFO
    status: Optional[str] = STATUS_OPEN
    resolution: Optional[str] = None
    in_leak: bool = False
    count: int = 1
    effort: float = 0.0


@dataclass(frozen=True)
class IssueImpactGroupRow:
    """Pre-aggregated issue impacts of one component.

    Attributes:
        software_quality: Quality the impact applies to.
        severity: Impact severity.
        status: Workflow status.
        resolution: None for unresolved groups.
        in_leak: True if the issues are new in the leak period.
        count: Number of issues in the group.
        issue_keys: Identities of the grouped issues, when the host knows them.
            Used to count an issue once even if several rows cover it.
    """

    software_quality: SoftwareQuality
    severity: ImpactSeverity
    status: Optional[str] = STATUS_OPEN
    resolution: Optional[str] = None
    in_leak: bool = False
    count: int = 1
    issue_keys: Optional[frozenset[str]] = None
