"""Engine exceptions: contract violations that abort an aggregation pass.

None of these describe bad input data. Each one means the driving code broke
an ordering or ownership rule, so the pass stops instead of producing
partial aggregates.
"""

from typing import Optional

from .base import IssueMetricsError


class ContractViolationError(IssueMetricsError):
    """Base class for engine contract violations."""

    pass


class UndeclaredDependencyError(ContractViolationError):
    """Raised when a formula reads a metric it did not declare."""

    def __init__(self, formula: str, metric: str, component: str):
        super().__init__(
            f"Formula {formula!r} read undeclared metric {metric!r}",
            details={"formula": formula, "metric": metric, "component": component},
        )
        self.formula = formula
        self.metric = metric
        self.component = component


class MissingDependencyError(ContractViolationError):
    """Raised when a declared dependency has not been computed yet."""

    def __init__(self, formula: str, metric: str, component: str):
        super().__init__(
            f"Metric {metric!r} is not computed yet for component {component!r}",
            details={"formula": formula, "metric": metric, "component": component},
        )
        self.formula = formula
        self.metric = metric
        self.component = component


class MeasureAlreadySetError(ContractViolationError):
    """Raised when a measure is written twice for the same component in one pass."""

    def __init__(self, component: str, metric: str):
        super().__init__(
            f"Measure {metric!r} already written for component {component!r}",
            details={"component": component, "metric": metric},
        )
        self.component = component
        self.metric = metric


class TraversalOrderError(ContractViolationError):
    """Raised when a parent is processed before one of its children."""

    def __init__(self, component: str, reason: str, parent: Optional[str] = None):
        details = {"component": component, "reason": reason}
        if parent:
            details["parent"] = parent
        super().__init__(f"Traversal order violated at {component!r}", details=details)
        self.component = component
        self.reason = reason
        self.parent = parent


class UnknownComponentError(ContractViolationError):
    """Raised when the component store has no entry for a key."""

    def __init__(self, component: str):
        super().__init__(
            f"Unknown component: {component!r}", details={"component": component}
        )
        self.component = component
