"""Tree accumulator: counts issues during one post-order walk of the component tree.

The visitor keeps an IssueTallies pair for the component being processed.
On enter it takes each child's finalised tallies out of the hand-off table
and merges them; on leave it emits the counting measures and puts its own
tallies into the table for the parent.

Usage:
    visitor = IssueCountingVisitor(MetricCatalog(), measures, classifier, session)
    crawl(store, store.root, visitor, issues_for)
    visitor.finish()
"""

from __future__ import annotations

from typing import Callable, Optional

from .counters import IssueTallies, IssueTally
from .exceptions import TraversalOrderError
from .logging_config import get_logger
from .metrics import MetricKey
from .models import Component, Issue, RuleType, Severity
from .protocols import MeasureStore, MetricCatalog, PeriodClassifier
from .session import AggregationSession
from .traversal import HandoffTable

logger = get_logger(__name__)

_SEVERITY_METRICS = {
    Severity.BLOCKER: (MetricKey.BLOCKER_VIOLATIONS, MetricKey.NEW_BLOCKER_VIOLATIONS),
    Severity.CRITICAL: (MetricKey.CRITICAL_VIOLATIONS, MetricKey.NEW_CRITICAL_VIOLATIONS),
    Severity.MAJOR: (MetricKey.MAJOR_VIOLATIONS, MetricKey.NEW_MAJOR_VIOLATIONS),
    Severity.MINOR: (MetricKey.MINOR_VIOLATIONS, MetricKey.NEW_MINOR_VIOLATIONS),
    Severity.INFO: (MetricKey.INFO_VIOLATIONS, MetricKey.NEW_INFO_VIOLATIONS),
}

_TYPE_METRICS = {
    RuleType.CODE_SMELL: (MetricKey.CODE_SMELLS, MetricKey.NEW_CODE_SMELLS),
    RuleType.BUG: (MetricKey.BUGS, MetricKey.NEW_BUGS),
    RuleType.VULNERABILITY: (MetricKey.VULNERABILITIES, MetricKey.NEW_VULNERABILITIES),
    RuleType.SECURITY_HOTSPOT: (MetricKey.SECURITY_HOTSPOTS, MetricKey.NEW_SECURITY_HOTSPOTS),
}

# Scalar counts emitted for the all-time view only
_STATUS_METRICS: dict[MetricKey, Callable[[IssueTally], int]] = {
    MetricKey.VIOLATIONS: lambda t: t.unresolved,
    MetricKey.OPEN_ISSUES: lambda t: t.open,
    MetricKey.REOPENED_ISSUES: lambda t: t.reopened,
    MetricKey.CONFIRMED_ISSUES: lambda t: t.confirmed,
    MetricKey.FALSE_POSITIVE_ISSUES: lambda t: t.false_positives,
    MetricKey.ACCEPTED_ISSUES: lambda t: t.accepted,
    MetricKey.HIGH_IMPACT_ACCEPTED_ISSUES: lambda t: t.high_impact_accepted,
}


class IssueCountingVisitor:
    """Accumulates IssueTallies bottom-up and emits counting measures."""

    def __init__(
        self,
        catalog: MetricCatalog,
        sink: MeasureStore,
        classifier: PeriodClassifier,
        session: Optional[AggregationSession] = None,
        handoff: Optional[HandoffTable[IssueTallies]] = None,
    ) -> None:
        self._catalog = catalog
        self._sink = sink
        self._classifier = classifier
        self._session = session or AggregationSession.start(classifier=classifier)
        self._handoff: HandoffTable[IssueTallies] = handoff if handoff is not None else HandoffTable()
        self._current: dict[str, IssueTallies] = {}

    @property
    def leak_period_enabled(self) -> bool:
        return self._session.leak_period_enabled

    def on_enter_component(self, component: Component) -> None:
        tallies = IssueTallies()
        for child_key in component.children:
            tallies.merge(self._handoff.take(child_key, parent=component.key))
        self._current[component.key] = tallies

    def on_issue(self, component: Component, issue: Issue) -> None:
        tallies = self._tallies_of(component)
        tallies.add_issue(issue)
        if self.leak_period_enabled and self._classifier.is_new(component, issue):
            tallies.add_leak_issue(issue)

    def on_leave_component(self, component: Component) -> None:
        tallies = self._current.pop(component.key, None)
        if tallies is None:
            logger.error("Leaving %s which was never entered", component.key)
            raise self._not_entered(component)

        all_time = tallies.all_time
        for severity, (metric, _) in _SEVERITY_METRICS.items():
            self._put(component, metric, all_time.severity_count(severity))
        for rule_type, (metric, _) in _TYPE_METRICS.items():
            self._put(component, metric, all_time.type_count(rule_type))
        for metric, read in _STATUS_METRICS.items():
            self._put(component, metric, read(all_time))

        if self.leak_period_enabled:
            leak = tallies.leak
            self._put(component, MetricKey.NEW_VIOLATIONS, leak.unresolved)
            for severity, (_, metric) in _SEVERITY_METRICS.items():
                self._put(component, metric, leak.severity_count(severity))
            for rule_type, (_, metric) in _TYPE_METRICS.items():
                self._put(component, metric, leak.type_count(rule_type))
            self._put(component, MetricKey.NEW_ACCEPTED_ISSUES, leak.accepted)

        self._handoff.put(component.key, tallies)

    def finish(self) -> int:
        """Release the tallies left in the hand-off table (the root's). Returns how many."""
        left = self._handoff.clear()
        if self._current:
            logger.warning("%d component(s) entered but never left", len(self._current))
            self._current.clear()
        return left

    def _tallies_of(self, component: Component) -> IssueTallies:
        try:
            return self._current[component.key]
        except KeyError:
            logger.error("Issue reported for %s outside enter/leave", component.key)
            raise self._not_entered(component) from None

    def _put(self, component: Component, metric: MetricKey, value: int) -> None:
        meta = self._catalog.by_key(metric)
        self._sink.put(component, meta, meta.coerce(value))

    @staticmethod
    def _not_entered(component: Component) -> TraversalOrderError:
        return TraversalOrderError(component.key, "component was not entered")
