"""Formula catalog: validated, topologically ordered set of formulas.

Rules checked once, at construction:
    - Single owner: each output metric is computed by exactly one formula
    - No cycles: a formula never depends, directly or not, on its own output

Ordering uses graphlib.TopologicalSorter over the dependencies that are
outputs of other formulas. Dependencies nobody computes (development cost)
are inputs read from the raw data provider.
"""

from __future__ import annotations

from graphlib import CycleError, TopologicalSorter
from typing import Iterable, Iterator, Optional

from ..exceptions import DuplicateFormulaError, FormulaCycleError, UnknownMetricError
from ..logging_config import get_logger
from ..metrics import MetricKey, MetricRef, to_key
from .base import Formula
from .standard import standard_formulas

logger = get_logger(__name__)


class FormulaCatalog:
    """Formulas keyed by output metric, iterated in dependency order."""

    def __init__(self, formulas: Iterable[Formula]) -> None:
        by_metric: dict[MetricKey, Formula] = {}
        for f in formulas:
            if f.metric in by_metric:
                raise DuplicateFormulaError(f.metric.value)
            by_metric[f.metric] = f
        self._by_metric = by_metric
        self._ordered = _toposort(by_metric)
        logger.debug("Formula catalog built with %d formulas", len(self._ordered))

    @property
    def formulas(self) -> tuple[Formula, ...]:
        return self._ordered

    @property
    def outputs(self) -> frozenset[MetricKey]:
        return frozenset(self._by_metric)

    def get(self, metric: MetricRef) -> Optional[Formula]:
        return self._by_metric.get(to_key(metric))

    def formula_metrics(self) -> set[MetricKey]:
        """Every output metric plus every metric some formula depends on."""
        result = set(self._by_metric)
        for f in self._ordered:
            result.update(f.dependencies)
        return result

    def input_metrics(self) -> set[MetricKey]:
        """Dependencies no formula computes."""
        return self.formula_metrics() - set(self._by_metric)

    def __iter__(self) -> Iterator[Formula]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, metric: object) -> bool:
        if not isinstance(metric, (MetricKey, str)):
            return False
        try:
            return to_key(metric) in self._by_metric
        except UnknownMetricError:
            return False


def _toposort(by_metric: dict[MetricKey, Formula]) -> tuple[Formula, ...]:
    ts: TopologicalSorter[MetricKey] = TopologicalSorter()
    for metric, f in by_metric.items():
        ts.add(metric)
        for dependency in f.dependencies:
            if dependency in by_metric:
                ts.add(metric, dependency)

    try:
        order = list(ts.static_order())
    except CycleError as e:
        cycle = [m.value for m in e.args[1]]
        logger.error("Formula dependency cycle: %s", " -> ".join(cycle))
        raise FormulaCycleError(cycle) from e

    return tuple(by_metric[m] for m in order)


def default_catalog() -> FormulaCatalog:
    """Catalog of the standard formulas."""
    return FormulaCatalog(standard_formulas())
