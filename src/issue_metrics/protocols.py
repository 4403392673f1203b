"""Protocol classes for the collaborators the engines read from and write to.

ComponentStore:
    - get: Component for a key (raises UnknownComponentError if absent)
    - children: ordered direct children
    - is_leaf: True for components without children

PeriodClassifier:
    - is_new: is this issue new in the leak period for this component
    - is_enabled: is a leak period available for this pass

RawDataProvider (groups-mode input, one component at a time):
    - issue_group_rows / issue_impact_group_rows
    - input_measures: host-supplied measures such as development_cost

MeasureStore:
    - put: write-once per (component, metric) per pass

MetricCatalog:
    - by_key: metadata (value domain) of a metric
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence

if TYPE_CHECKING:
    from .metrics import MetricKey, MetricMeta, MetricRef
    from .models import Component, Issue, IssueGroupRow, IssueImpactGroupRow


class ComponentStore(Protocol):
    """Read access to the component tree."""

    def get(self, key: str) -> Component: ...

    def children(self, component: Component) -> Sequence[Component]: ...

    def is_leaf(self, component: Component) -> bool: ...


class PeriodClassifier(Protocol):
    """Classifies issues as new in the leak period."""

    def is_new(self, component: Component, issue: Issue) -> bool: ...

    def is_enabled(self) -> bool: ...


class RawDataProvider(Protocol):
    """Pre-aggregated rows and input measures of a single component."""

    def issue_group_rows(self, component: Component) -> Sequence[IssueGroupRow]: ...

    def issue_impact_group_rows(self, component: Component) -> Sequence[IssueImpactGroupRow]: ...

    def input_measures(self, component: Component) -> Mapping[MetricKey, Any]: ...


class MeasureStore(Protocol):
    """Sink for computed measures."""

    def put(self, component: Component, metric: MetricMeta, value: Any) -> None: ...


class MetricCatalog(Protocol):
    """Metric metadata lookup."""

    def by_key(self, key: MetricRef) -> MetricMeta: ...
