"""The standard formulas: issue counts, efforts, ratings, ratios and impact distributions.

Each all-time formula has a leak-period twin where one exists; the twin
reads the leak view of the same aggregate. Ratio and rating formulas are
recomputed from the rolled-up dependencies in hierarchy mode instead of
being combined from the children's results.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..metrics import MetricKey as M
from ..models import (
    RESOLUTION_FALSE_POSITIVE,
    RESOLUTION_WONT_FIX,
    STATUS_CONFIRMED,
    STATUS_OPEN,
    STATUS_REOPENED,
    Rating,
    RuleType,
    Severity,
    SoftwareQuality,
)
from ..rating import rating_for_severity, security_review_rating
from .base import Formula, formula
from .hierarchy import sum_distributions, sum_values, worst_rating

if TYPE_CHECKING:
    from ..engine import FormulaContext
    from .issue_groups import IssueGroupCounter

CounterRead = Callable[["IssueGroupCounter", bool], Any]


def _groups(read: CounterRead, leak: bool):
    def compute(ctx: FormulaContext, counter: IssueGroupCounter) -> None:
        ctx.set_value(read(counter, leak))

    return compute


def _additive(metric: M, read: CounterRead, new_metric: Optional[M] = None) -> list[Formula]:
    """A count or effort summed up the tree, with its optional leak twin."""
    result = [formula(metric, _groups(read, False), sum_values)]
    if new_metric is not None:
        result.append(formula(new_metric, _groups(read, True), sum_values, on_leak=True))
    return result


def _severity_rating(metric: M, new_metric: M, rule_type: RuleType) -> list[Formula]:
    def read(counter: IssueGroupCounter, leak: bool) -> Rating:
        return rating_for_severity(counter.highest_severity_of_unresolved(rule_type, leak))

    return [
        formula(metric, _groups(read, False), worst_rating),
        formula(new_metric, _groups(read, True), worst_rating, on_leak=True),
    ]


# ── Security hotspot review ────────────────────────────────────────────


def percent_reviewed(reviewed: Optional[float], to_review: Optional[float]) -> Optional[float]:
    """Share of reviewed hotspots in percent, None when there are no hotspots. Not rounded."""
    reviewed = reviewed or 0
    total = reviewed + (to_review or 0)
    if total == 0:
        return None
    return reviewed * 100 / total


def _set_rounded_percent(ctx: FormulaContext, reviewed: Any, to_review: Any) -> None:
    percent = percent_reviewed(reviewed, to_review)
    if percent is not None:
        ctx.set_value(round(percent, 1))


def _hotspots_reviewed(metric: M, reviewed: M, to_review: M, leak: bool) -> Formula:
    def compute(ctx: FormulaContext, counter: IssueGroupCounter) -> None:
        _set_rounded_percent(
            ctx, counter.count_hotspots_reviewed(leak), counter.count_hotspots_to_review(leak)
        )

    def compute_hierarchy(ctx: FormulaContext) -> None:
        _set_rounded_percent(ctx, ctx.value(reviewed), ctx.value(to_review))

    return formula(metric, compute, compute_hierarchy, (reviewed, to_review), on_leak=leak)


def _review_rating(metric: M, reviewed: M, to_review: M, leak: bool) -> Formula:
    # banded on the unrounded share, recomputed from the rolled-up counts
    def compute(ctx: FormulaContext, counter: IssueGroupCounter) -> None:
        percent = percent_reviewed(
            counter.count_hotspots_reviewed(leak), counter.count_hotspots_to_review(leak)
        )
        ctx.set_value(security_review_rating(percent))

    def compute_hierarchy(ctx: FormulaContext) -> None:
        percent = percent_reviewed(ctx.value(reviewed), ctx.value(to_review))
        ctx.set_value(security_review_rating(percent))

    return formula(metric, compute, compute_hierarchy, (reviewed, to_review), on_leak=leak)


# ── Maintainability ────────────────────────────────────────────────────


def parse_development_cost(value: Any) -> float:
    """Development cost as a number. It is stored as text; absent counts as 0."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        return float(value.strip() or 0)
    return float(value)


def debt_ratio(debt: Optional[float], development_cost: Any) -> float:
    """Debt in percent of development cost. 0 when the cost is not positive."""
    cost = parse_development_cost(development_cost)
    if cost <= 0:
        return 0.0
    return max(debt or 0.0, 0.0) * 100 / cost


def _maintainability(debt: M, cost: M, ratio_metric: M, rating_metric: M, leak: bool) -> list[Formula]:
    def ratio(ctx: FormulaContext, *_: Any) -> None:
        ctx.set_value(debt_ratio(ctx.value(debt), ctx.value(cost)))

    def rating(ctx: FormulaContext, *_: Any) -> None:
        development_cost = parse_development_cost(ctx.value(cost))
        value = (ctx.value(debt) or 0.0) / development_cost if development_cost > 0 else 0.0
        ctx.set_value(ctx.rating_grid.to_rating(value))

    return [
        formula(ratio_metric, ratio, ratio, (debt, cost), on_leak=leak),
        formula(rating_metric, rating, rating, (debt, cost), on_leak=leak),
    ]


def _effort_to_reach_a(ctx: FormulaContext, *_: Any) -> None:
    debt = ctx.value(M.TECHNICAL_DEBT) or 0.0
    cost = parse_development_cost(ctx.value(M.DEVELOPMENT_COST))
    upper_debt = cost * ctx.rating_grid.threshold_for(Rating.A)
    ctx.set_value(max(0.0, debt - upper_debt))


# ── Impacts ────────────────────────────────────────────────────────────


def _impacts(metric: M, quality: SoftwareQuality) -> Formula:
    def compute(ctx: FormulaContext, counter: IssueGroupCounter) -> None:
        ctx.set_value(json.dumps(counter.impact_distribution(quality)))

    return formula(metric, compute, sum_distributions)


# ── Catalog content ────────────────────────────────────────────────────


def standard_formulas() -> list[Formula]:
    """Every formula of the default catalog, in declaration order."""
    formulas: list[Formula] = []
    formulas += _additive(M.VIOLATIONS, lambda c, leak: c.count_unresolved(leak), M.NEW_VIOLATIONS)

    for rule_type, metric, new_metric in (
        (RuleType.CODE_SMELL, M.CODE_SMELLS, M.NEW_CODE_SMELLS),
        (RuleType.BUG, M.BUGS, M.NEW_BUGS),
        (RuleType.VULNERABILITY, M.VULNERABILITIES, M.NEW_VULNERABILITIES),
        (RuleType.SECURITY_HOTSPOT, M.SECURITY_HOTSPOTS, M.NEW_SECURITY_HOTSPOTS),
    ):
        formulas += _additive(
            metric, lambda c, leak, t=rule_type: c.count_unresolved_by_type(t, leak), new_metric
        )

    for severity, metric, new_metric in (
        (Severity.BLOCKER, M.BLOCKER_VIOLATIONS, M.NEW_BLOCKER_VIOLATIONS),
        (Severity.CRITICAL, M.CRITICAL_VIOLATIONS, M.NEW_CRITICAL_VIOLATIONS),
        (Severity.MAJOR, M.MAJOR_VIOLATIONS, M.NEW_MAJOR_VIOLATIONS),
        (Severity.MINOR, M.MINOR_VIOLATIONS, M.NEW_MINOR_VIOLATIONS),
        (Severity.INFO, M.INFO_VIOLATIONS, M.NEW_INFO_VIOLATIONS),
    ):
        formulas += _additive(
            metric, lambda c, leak, s=severity: c.count_unresolved_by_severity(s, leak), new_metric
        )

    formulas += _additive(
        M.FALSE_POSITIVE_ISSUES, lambda c, leak: c.count_by_resolution(RESOLUTION_FALSE_POSITIVE, leak)
    )
    formulas += _additive(
        M.ACCEPTED_ISSUES,
        lambda c, leak: c.count_by_resolution(RESOLUTION_WONT_FIX, leak),
        M.NEW_ACCEPTED_ISSUES,
    )
    formulas += _additive(M.HIGH_IMPACT_ACCEPTED_ISSUES, lambda c, leak: c.count_high_impact_accepted())
    for status, metric in (
        (STATUS_OPEN, M.OPEN_ISSUES),
        (STATUS_REOPENED, M.REOPENED_ISSUES),
        (STATUS_CONFIRMED, M.CONFIRMED_ISSUES),
    ):
        formulas += _additive(metric, lambda c, leak, s=status: c.count_by_status(s, leak))

    for rule_type, metric, new_metric in (
        (RuleType.CODE_SMELL, M.TECHNICAL_DEBT, M.NEW_TECHNICAL_DEBT),
        (RuleType.BUG, M.RELIABILITY_REMEDIATION_EFFORT, M.NEW_RELIABILITY_REMEDIATION_EFFORT),
        (RuleType.VULNERABILITY, M.SECURITY_REMEDIATION_EFFORT, M.NEW_SECURITY_REMEDIATION_EFFORT),
    ):
        formulas += _additive(
            metric, lambda c, leak, t=rule_type: c.sum_effort_of_unresolved(t, leak), new_metric
        )

    formulas += _severity_rating(M.RELIABILITY_RATING, M.NEW_RELIABILITY_RATING, RuleType.BUG)
    formulas += _severity_rating(M.SECURITY_RATING, M.NEW_SECURITY_RATING, RuleType.VULNERABILITY)

    formulas += _additive(
        M.SECURITY_HOTSPOTS_REVIEWED_STATUS,
        lambda c, leak: c.count_hotspots_reviewed(leak),
        M.NEW_SECURITY_HOTSPOTS_REVIEWED_STATUS,
    )
    formulas += _additive(
        M.SECURITY_HOTSPOTS_TO_REVIEW_STATUS,
        lambda c, leak: c.count_hotspots_to_review(leak),
        M.NEW_SECURITY_HOTSPOTS_TO_REVIEW_STATUS,
    )
    for leak, percent, rating, reviewed, to_review in (
        (
            False,
            M.SECURITY_HOTSPOTS_REVIEWED,
            M.SECURITY_REVIEW_RATING,
            M.SECURITY_HOTSPOTS_REVIEWED_STATUS,
            M.SECURITY_HOTSPOTS_TO_REVIEW_STATUS,
        ),
        (
            True,
            M.NEW_SECURITY_HOTSPOTS_REVIEWED,
            M.NEW_SECURITY_REVIEW_RATING,
            M.NEW_SECURITY_HOTSPOTS_REVIEWED_STATUS,
            M.NEW_SECURITY_HOTSPOTS_TO_REVIEW_STATUS,
        ),
    ):
        formulas.append(_hotspots_reviewed(percent, reviewed, to_review, leak))
        formulas.append(_review_rating(rating, reviewed, to_review, leak))

    formulas += _maintainability(
        M.TECHNICAL_DEBT, M.DEVELOPMENT_COST, M.SQALE_DEBT_RATIO, M.SQALE_RATING, leak=False
    )
    formulas += _maintainability(
        M.NEW_TECHNICAL_DEBT,
        M.NEW_DEVELOPMENT_COST,
        M.NEW_SQALE_DEBT_RATIO,
        M.NEW_MAINTAINABILITY_RATING,
        leak=True,
    )
    formulas.append(
        formula(
            M.EFFORT_TO_REACH_MAINTAINABILITY_RATING_A,
            _effort_to_reach_a,
            _effort_to_reach_a,
            (M.TECHNICAL_DEBT, M.DEVELOPMENT_COST),
        )
    )

    formulas.append(_impacts(M.RELIABILITY_ISSUES, SoftwareQuality.RELIABILITY))
    formulas.append(_impacts(M.MAINTAINABILITY_ISSUES, SoftwareQuality.MAINTAINABILITY))
    formulas.append(_impacts(M.SECURITY_ISSUES, SoftwareQuality.SECURITY))
    return formulas
