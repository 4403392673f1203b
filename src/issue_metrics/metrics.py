"""Metric catalog: every metric the engines read or write, with its value domain.

Every metric is defined exactly ONCE. The MetricKey enum IS the key, so a
formula or a counting rule cannot reference a misspelled metric.

Metric families:
    Counting      violations, per-severity and per-type counts, statuses
    Effort        technical debt and remediation efforts (minutes)
    Ratios        debt ratio, hotspots reviewed (percent)
    Ratings       A..E letter ratings
    Distributions JSON impact breakdowns per software quality
    Inputs        development cost, provided by the host and never computed here

Rules:
    - Every key has a single registration, enforced at import time
    - coerce() maps a computed value into the metric's value domain before
      it reaches the measure store
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .exceptions import CatalogError, UnknownMetricError
from .models import Rating


class MetricKey(Enum):
    """Every metric defined ONCE. The enum IS the key."""

    # ═══════════════════════════════════════════════════════════════════════
    # Counting (all-time)
    # ═══════════════════════════════════════════════════════════════════════

    VIOLATIONS = "violations"
    BLOCKER_VIOLATIONS = "blocker_violations"
    CRITICAL_VIOLATIONS = "critical_violations"
    MAJOR_VIOLATIONS = "major_violations"
    MINOR_VIOLATIONS = "minor_violations"
    INFO_VIOLATIONS = "info_violations"
    CODE_SMELLS = "code_smells"
    BUGS = "bugs"
    VULNERABILITIES = "vulnerabilities"
    SECURITY_HOTSPOTS = "security_hotspots"
    OPEN_ISSUES = "open_issues"
    REOPENED_ISSUES = "reopened_issues"
    CONFIRMED_ISSUES = "confirmed_issues"
    FALSE_POSITIVE_ISSUES = "false_positive_issues"
    ACCEPTED_ISSUES = "accepted_issues"
    HIGH_IMPACT_ACCEPTED_ISSUES = "high_impact_accepted_issues"

    # ═══════════════════════════════════════════════════════════════════════
    # Counting (leak period)
    # ═══════════════════════════════════════════════════════════════════════

    NEW_VIOLATIONS = "new_violations"
    NEW_BLOCKER_VIOLATIONS = "new_blocker_violations"
    NEW_CRITICAL_VIOLATIONS = "new_critical_violations"
    NEW_MAJOR_VIOLATIONS = "new_major_violations"
    NEW_MINOR_VIOLATIONS = "new_minor_violations"
    NEW_INFO_VIOLATIONS = "new_info_violations"
    NEW_CODE_SMELLS = "new_code_smells"
    NEW_BUGS = "new_bugs"
    NEW_VULNERABILITIES = "new_vulnerabilities"
    NEW_SECURITY_HOTSPOTS = "new_security_hotspots"
    NEW_ACCEPTED_ISSUES = "new_accepted_issues"

    # ═══════════════════════════════════════════════════════════════════════
    # Effort and maintainability
    # ═══════════════════════════════════════════════════════════════════════

    TECHNICAL_DEBT = "sqale_index"
    RELIABILITY_REMEDIATION_EFFORT = "reliability_remediation_effort"
    SECURITY_REMEDIATION_EFFORT = "security_remediation_effort"
    SQALE_DEBT_RATIO = "sqale_debt_ratio"
    SQALE_RATING = "sqale_rating"
    EFFORT_TO_REACH_MAINTAINABILITY_RATING_A = "effort_to_reach_maintainability_rating_a"

    NEW_TECHNICAL_DEBT = "new_technical_debt"
    NEW_RELIABILITY_REMEDIATION_EFFORT = "new_reliability_remediation_effort"
    NEW_SECURITY_REMEDIATION_EFFORT = "new_security_remediation_effort"
    NEW_SQALE_DEBT_RATIO = "new_sqale_debt_ratio"
    NEW_MAINTAINABILITY_RATING = "new_maintainability_rating"

    # ═══════════════════════════════════════════════════════════════════════
    # Reliability and security ratings
    # ═══════════════════════════════════════════════════════════════════════

    RELIABILITY_RATING = "reliability_rating"
    SECURITY_RATING = "security_rating"
    NEW_RELIABILITY_RATING = "new_reliability_rating"
    NEW_SECURITY_RATING = "new_security_rating"

    # ═══════════════════════════════════════════════════════════════════════
    # Security hotspot review
    # ═══════════════════════════════════════════════════════════════════════

    SECURITY_HOTSPOTS_REVIEWED_STATUS = "security_hotspots_reviewed_status"
    SECURITY_HOTSPOTS_TO_REVIEW_STATUS = "security_hotspots_to_review_status"
    SECURITY_HOTSPOTS_REVIEWED = "security_hotspots_reviewed"
    SECURITY_REVIEW_RATING = "security_review_rating"
    NEW_SECURITY_HOTSPOTS_REVIEWED_STATUS = "new_security_hotspots_reviewed_status"
    NEW_SECURITY_HOTSPOTS_TO_REVIEW_STATUS = "new_security_hotspots_to_review_status"
    NEW_SECURITY_HOTSPOTS_REVIEWED = "new_security_hotspots_reviewed"
    NEW_SECURITY_REVIEW_RATING = "new_security_review_rating"

    # ═══════════════════════════════════════════════════════════════════════
    # Impact distributions (JSON)
    # ═══════════════════════════════════════════════════════════════════════

    RELIABILITY_ISSUES = "reliability_issues"
    MAINTAINABILITY_ISSUES = "maintainability_issues"
    SECURITY_ISSUES = "security_issues"

    # ═══════════════════════════════════════════════════════════════════════
    # Inputs supplied by the host
    # ═══════════════════════════════════════════════════════════════════════

    DEVELOPMENT_COST = "development_cost"
    NEW_DEVELOPMENT_COST = "new_development_cost"


class ValueType(Enum):
    """Value domain of a metric."""

    INT = "INT"
    FLOAT = "FLOAT"
    PERCENT = "PERCENT"
    WORK_DUR = "WORK_DUR"
    RATING = "RATING"
    DATA = "DATA"
    STRING = "STRING"


MetricRef = Union[MetricKey, str]


@dataclass(frozen=True)
class MetricMeta:
    """Metadata for a metric.

    Attributes:
        key: The MetricKey enum value
        value_type: Value domain used to coerce computed values
        polarity: "high_is_bad" | "high_is_good" | "neutral"
        domain: Family the metric belongs to (issues, maintainability, ...)
        input_only: True for measures the host supplies and no formula computes
    """

    key: MetricKey
    value_type: ValueType
    polarity: str
    domain: str
    input_only: bool = False

    def coerce(self, value: Any) -> Any:
        """Map a computed value into this metric's value domain."""
        if value is None:
            return None
        vt = self.value_type
        if vt is ValueType.INT:
            return int(value)
        if vt in (ValueType.FLOAT, ValueType.PERCENT, ValueType.WORK_DUR):
            return float(value)
        if vt is ValueType.RATING:
            return Rating.of(value)
        if vt is ValueType.DATA:
            return value if isinstance(value, str) else json.dumps(value)
        return str(value)


# THE registry, populated at import time and validated immediately
REGISTRY: dict[MetricKey, MetricMeta] = {}


def register(meta: MetricMeta) -> None:
    """Register a metric. Re-registering the same key with different metadata is an error."""
    existing = REGISTRY.get(meta.key)
    if existing is not None:
        if existing != meta:
            raise CatalogError(
                f"Metric {meta.key.value} already registered with different metadata",
                details={"metric": meta.key.value},
            )
        return
    REGISTRY[meta.key] = meta


def to_key(metric: MetricRef) -> MetricKey:
    """Resolve a MetricKey or its string form."""
    if isinstance(metric, MetricKey):
        return metric
    try:
        return MetricKey(metric)
    except ValueError:
        raise UnknownMetricError(str(metric)) from None


class MetricCatalog:
    """Read-only view over the registry, the engines' metric lookup.

    Hosts with their own metric storage can pass any object with a
    compatible by_key() instead.
    """

    def __init__(self, registry: dict[MetricKey, MetricMeta] | None = None) -> None:
        self._registry = dict(REGISTRY if registry is None else registry)

    def by_key(self, key: MetricRef) -> MetricMeta:
        meta = self._registry.get(to_key(key))
        if meta is None:
            raise UnknownMetricError(to_key(key).value)
        return meta

    def __contains__(self, key: object) -> bool:
        try:
            return to_key(key) in self._registry  # type: ignore[arg-type]
        except UnknownMetricError:
            return False

    def __len__(self) -> int:
        return len(self._registry)


# ═══════════════════════════════════════════════════════════════════════════
# Register every metric at module load time
# ═══════════════════════════════════════════════════════════════════════════

_INT_ISSUE_COUNTS = [
    MetricKey.VIOLATIONS,
    MetricKey.BLOCKER_VIOLATIONS,
    MetricKey.CRITICAL_VIOLATIONS,
    MetricKey.MAJOR_VIOLATIONS,
    MetricKey.MINOR_VIOLATIONS,
    MetricKey.INFO_VIOLATIONS,
    MetricKey.CODE_SMELLS,
    MetricKey.BUGS,
    MetricKey.VULNERABILITIES,
    MetricKey.SECURITY_HOTSPOTS,
    MetricKey.OPEN_ISSUES,
    MetricKey.REOPENED_ISSUES,
    MetricKey.CONFIRMED_ISSUES,
    MetricKey.FALSE_POSITIVE_ISSUES,
    MetricKey.ACCEPTED_ISSUES,
    MetricKey.HIGH_IMPACT_ACCEPTED_ISSUES,
    MetricKey.NEW_VIOLATIONS,
    MetricKey.NEW_BLOCKER_VIOLATIONS,
    MetricKey.NEW_CRITICAL_VIOLATIONS,
    MetricKey.NEW_MAJOR_VIOLATIONS,
    MetricKey.NEW_MINOR_VIOLATIONS,
    MetricKey.NEW_INFO_VIOLATIONS,
    MetricKey.NEW_CODE_SMELLS,
    MetricKey.NEW_BUGS,
    MetricKey.NEW_VULNERABILITIES,
    MetricKey.NEW_SECURITY_HOTSPOTS,
    MetricKey.NEW_ACCEPTED_ISSUES,
]
for _key in _INT_ISSUE_COUNTS:
    register(MetricMeta(_key, ValueType.INT, "high_is_bad", "issues"))

for _key in (
    MetricKey.TECHNICAL_DEBT,
    MetricKey.RELIABILITY_REMEDIATION_EFFORT,
    MetricKey.SECURITY_REMEDIATION_EFFORT,
    MetricKey.EFFORT_TO_REACH_MAINTAINABILITY_RATING_A,
    MetricKey.NEW_TECHNICAL_DEBT,
    MetricKey.NEW_RELIABILITY_REMEDIATION_EFFORT,
    MetricKey.NEW_SECURITY_REMEDIATION_EFFORT,
):
    register(MetricMeta(_key, ValueType.WORK_DUR, "high_is_bad", "maintainability"))

register(MetricMeta(MetricKey.SQALE_DEBT_RATIO, ValueType.PERCENT, "high_is_bad", "maintainability"))
register(
    MetricMeta(MetricKey.NEW_SQALE_DEBT_RATIO, ValueType.PERCENT, "high_is_bad", "maintainability")
)
register(MetricMeta(MetricKey.SQALE_RATING, ValueType.RATING, "high_is_bad", "maintainability"))
register(
    MetricMeta(MetricKey.NEW_MAINTAINABILITY_RATING, ValueType.RATING, "high_is_bad", "maintainability")
)

register(MetricMeta(MetricKey.RELIABILITY_RATING, ValueType.RATING, "high_is_bad", "reliability"))
register(MetricMeta(MetricKey.NEW_RELIABILITY_RATING, ValueType.RATING, "high_is_bad", "reliability"))
register(MetricMeta(MetricKey.SECURITY_RATING, ValueType.RATING, "high_is_bad", "security"))
register(MetricMeta(MetricKey.NEW_SECURITY_RATING, ValueType.RATING, "high_is_bad", "security"))

for _key in (
    MetricKey.SECURITY_HOTSPOTS_REVIEWED_STATUS,
    MetricKey.NEW_SECURITY_HOTSPOTS_REVIEWED_STATUS,
):
    register(MetricMeta(_key, ValueType.INT, "high_is_good", "security_review"))
for _key in (
    MetricKey.SECURITY_HOTSPOTS_TO_REVIEW_STATUS,
    MetricKey.NEW_SECURITY_HOTSPOTS_TO_REVIEW_STATUS,
):
    register(MetricMeta(_key, ValueType.INT, "high_is_bad", "security_review"))
register(
    MetricMeta(MetricKey.SECURITY_HOTSPOTS_REVIEWED, ValueType.PERCENT, "high_is_good", "security_review")
)
register(
    MetricMeta(
        MetricKey.NEW_SECURITY_HOTSPOTS_REVIEWED, ValueType.PERCENT, "high_is_good", "security_review"
    )
)
register(MetricMeta(MetricKey.SECURITY_REVIEW_RATING, ValueType.RATING, "high_is_bad", "security_review"))
register(
    MetricMeta(MetricKey.NEW_SECURITY_REVIEW_RATING, ValueType.RATING, "high_is_bad", "security_review")
)

for _key in (
    MetricKey.RELIABILITY_ISSUES,
    MetricKey.MAINTAINABILITY_ISSUES,
    MetricKey.SECURITY_ISSUES,
):
    register(MetricMeta(_key, ValueType.DATA, "neutral", "impacts"))

# development_cost is historically stored as text; new_development_cost is numeric
register(
    MetricMeta(MetricKey.DEVELOPMENT_COST, ValueType.STRING, "neutral", "maintainability", True)
)
register(
    MetricMeta(MetricKey.NEW_DEVELOPMENT_COST, ValueType.FLOAT, "neutral", "maintainability", True)
)


def _validate_registry() -> None:
    """Verify every MetricKey member is registered. Runs once at import."""
    missing = set(MetricKey) - set(REGISTRY.keys())
    if missing:
        names = sorted(k.value for k in missing)
        raise RuntimeError(f"Metric registry incomplete! Missing registrations for: {names}")


_validate_registry()
