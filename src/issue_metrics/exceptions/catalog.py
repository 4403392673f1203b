"""Catalog exceptions: raised once, while the metric and formula catalogs are built."""

from typing import List

from .base import IssueMetricsError


class CatalogError(IssueMetricsError):
    """Base class for metric and formula catalog errors."""

    pass


class UnknownMetricError(CatalogError):
    """Raised when a metric key is not registered in the catalog."""

    def __init__(self, key: str):
        super().__init__(f"Unknown metric: {key!r}", details={"metric": key})
        self.key = key


class DuplicateFormulaError(CatalogError):
    """Raised when two formulas compute the same output metric."""

    def __init__(self, metric: str):
        super().__init__(
            f"Metric {metric!r} is computed by more than one formula",
            details={"metric": metric},
        )
        self.metric = metric


class FormulaCycleError(CatalogError):
    """Raised when formula dependencies form a cycle."""

    def __init__(self, cycle: List[str]):
        super().__init__(
            "Formula dependency cycle detected",
            details={"cycle": " -> ".join(cycle)},
        )
        self.cycle = cycle
