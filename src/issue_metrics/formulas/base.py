"""Formula type shared by the catalog and the engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable

from ..metrics import MetricKey, MetricRef, to_key

if TYPE_CHECKING:
    from ..engine import FormulaContext
    from .issue_groups import IssueGroupCounter

GroupsCompute = Callable[["FormulaContext", "IssueGroupCounter"], None]
HierarchyCompute = Callable[["FormulaContext"], None]


class FormulaMode(Enum):
    """How a formula is invoked for a component."""

    GROUPS = "groups"
    HIERARCHY = "hierarchy"


@dataclass(frozen=True)
class Formula:
    """One output metric, computed in both modes.

    Attributes:
        metric: Output metric
        on_leak: True for leak-period formulas, skipped when the pass has no leak period
        compute: Groups mode, reads the component's own IssueGroupCounter
        compute_hierarchy: Hierarchy mode, reads own and children values
        dependencies: Every metric the formula may read, already flattened
    """

    metric: MetricKey
    on_leak: bool
    compute: GroupsCompute
    compute_hierarchy: HierarchyCompute
    dependencies: tuple[MetricKey, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "metric", to_key(self.metric))
        object.__setattr__(self, "dependencies", tuple(to_key(m) for m in self.dependencies))
        if not callable(self.compute):
            raise TypeError(f"Formula {self.metric.value}: compute must be callable")
        if not callable(self.compute_hierarchy):
            raise TypeError(f"Formula {self.metric.value}: compute_hierarchy must be callable")

    @property
    def name(self) -> str:
        return self.metric.value


def formula(
    metric: MetricRef,
    compute: GroupsCompute,
    compute_hierarchy: HierarchyCompute,
    dependencies: Iterable[MetricRef] = (),
    on_leak: bool = False,
) -> Formula:
    """Keyword-friendly Formula constructor used by the standard definitions."""
    return Formula(
        metric=to_key(metric),
        on_leak=on_leak,
        compute=compute,
        compute_hierarchy=compute_hierarchy,
        dependencies=tuple(to_key(m) for m in dependencies),
    )
