"""Exception hierarchy for the issue metrics engine."""

from .base import IssueMetricsError
from .catalog import (
    CatalogError,
    DuplicateFormulaError,
    FormulaCycleError,
    UnknownMetricError,
)
from .config import ConfigurationError, InvalidConfigError
from .engine import (
    ContractViolationError,
    MeasureAlreadySetError,
    MissingDependencyError,
    TraversalOrderError,
    UndeclaredDependencyError,
    UnknownComponentError,
)

__all__ = [
    "IssueMetricsError",
    "ConfigurationError",
    "InvalidConfigError",
    "CatalogError",
    "DuplicateFormulaError",
    "FormulaCycleError",
    "UnknownMetricError",
    "ContractViolationError",
    "MeasureAlreadySetError",
    "MissingDependencyError",
    "TraversalOrderError",
    "UndeclaredDependencyError",
    "UnknownComponentError",
]
