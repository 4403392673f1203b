"""Formula engine: evaluates the formula catalog for every component, bottom-up.

Per component:
    leaf       groups mode on the component's rows; outputs are written
    non-leaf   groups mode on its own rows (if any) gives "own" values,
               then hierarchy mode combines own values with the children's
               finalised outputs; hierarchy outputs are written

Children's outputs travel through a HandoffTable, so a parent can only be
computed after every child was put there. run() guarantees this either by
walking the tree in post-order (one worker) or by processing height waves
on a ThreadPoolExecutor, one wave at a time.

Usage:
    engine = FormulaEngine(default_catalog(), store, provider, measures, session)
    summary = engine.run(store.root)
"""

from __future__ import annotations

import concurrent.futures
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

from .exceptions import MissingDependencyError, UndeclaredDependencyError
from .formulas.base import Formula, FormulaMode
from .formulas.catalog import FormulaCatalog
from .formulas.issue_groups import IssueGroupCounter
from .logging_config import get_logger
from .metrics import MetricCatalog as RegistryCatalog
from .metrics import MetricKey, MetricRef, to_key
from .models import Component, IssueGroupRow, IssueImpactGroupRow
from .protocols import ComponentStore, MeasureStore, MetricCatalog, RawDataProvider
from .rating import RatingGrid
from .session import AggregationSession
from .traversal import HandoffTable, height_waves, post_order

logger = get_logger(__name__)

Outputs = dict[MetricKey, Any]


class FormulaContext:
    """What one formula sees while computing one component."""

    def __init__(
        self,
        component: Component,
        formula: Formula,
        mode: FormulaMode,
        computed: Mapping[MetricKey, Any],
        ran: frozenset[MetricKey] | set[MetricKey],
        catalog_outputs: frozenset[MetricKey],
        inputs: Mapping[MetricKey, Any],
        rating_grid: RatingGrid,
        own: Optional[Mapping[MetricKey, Any]] = None,
        children: Sequence[Mapping[MetricKey, Any]] = (),
        strict: bool = True,
    ) -> None:
        self.component = component
        self.formula = formula
        self.mode = mode
        self._computed = computed
        self._ran = ran
        self._catalog_outputs = catalog_outputs
        self._inputs = inputs
        self._rating_grid = rating_grid
        self._own = own or {}
        self._children = children
        self._strict = strict
        self._result: Any = None

    @property
    def rating_grid(self) -> RatingGrid:
        return self._rating_grid

    @property
    def result(self) -> Any:
        return self._result

    def value(self, metric: MetricRef) -> Any:
        """Value of a declared dependency for this component, None when absent."""
        key = to_key(metric)
        if key is self.formula.metric and self.mode is FormulaMode.HIERARCHY:
            return self.own_value()
        if key not in self.formula.dependencies:
            if self._strict:
                logger.error(
                    "%s read undeclared metric %s on %s",
                    self.formula.name,
                    key.value,
                    self.component.key,
                )
                raise UndeclaredDependencyError(self.formula.name, key.value, self.component.key)
            logger.warning(
                "%s read undeclared metric %s on %s, ignored",
                self.formula.name,
                key.value,
                self.component.key,
            )
            return None
        if key in self._catalog_outputs:
            if key not in self._ran:
                logger.error(
                    "%s needs %s which is not computed yet on %s",
                    self.formula.name,
                    key.value,
                    self.component.key,
                )
                raise MissingDependencyError(self.formula.name, key.value, self.component.key)
            return self._computed.get(key)
        return self._inputs.get(key)

    def own_value(self) -> Any:
        """This component's own groups-mode value of the output metric."""
        return self._own.get(self.formula.metric)

    def children_values(self) -> list[Any]:
        """The children's finalised values of the output metric, absent values skipped."""
        metric = self.formula.metric
        return [c[metric] for c in self._children if c.get(metric) is not None]

    def set_value(self, value: Any) -> None:
        self._result = value


@dataclass(frozen=True)
class PassSummary:
    """Outcome of FormulaEngine.run()."""

    components: int
    measures_written: int
    duration_seconds: float
    leak_period_enabled: bool
    workers: int


class FormulaEngine:
    """Computes the formula catalog over a component tree."""

    def __init__(
        self,
        catalog: FormulaCatalog,
        component_store: ComponentStore,
        provider: RawDataProvider,
        sink: MeasureStore,
        session: Optional[AggregationSession] = None,
        metric_catalog: Optional[MetricCatalog] = None,
    ) -> None:
        self.catalog = catalog
        self.store = component_store
        self.provider = provider
        self.sink = sink
        self.session = session or AggregationSession()
        self.metrics = metric_catalog or RegistryCatalog()
        self._handoff: HandoffTable[Outputs] = HandoffTable()
        self._formulas = tuple(
            f for f in catalog if self.session.leak_period_enabled or not f.on_leak
        )

    @property
    def active_formulas(self) -> tuple[Formula, ...]:
        """Formulas evaluated in this pass (leak formulas dropped when there is no leak period)."""
        return self._formulas

    def compute_component(self, component: Component) -> int:
        """Compute and write every active formula for one component.

        All children must have been computed before. Returns the number of
        measures written.
        """
        inputs = self.provider.input_measures(component)
        rows = self.provider.issue_group_rows(component)
        impact_rows = self.provider.issue_impact_group_rows(component)
        if self.store.is_leaf(component):
            outputs = self._run_groups(component, inputs, rows, impact_rows)
        else:
            own: Outputs = {}
            if rows or impact_rows:
                own = self._run_groups(component, inputs, rows, impact_rows)
            children = [
                self._handoff.take(child.key, parent=component.key)
                for child in self.store.children(component)
            ]
            outputs = self._run_hierarchy(component, inputs, own, children)

        for metric, value in outputs.items():
            self.sink.put(component, self.metrics.by_key(metric), value)
        self._handoff.put(component.key, outputs)
        logger.debug("Computed %d measures for %s", len(outputs), component.key)
        return len(outputs)

    def run(self, root: Union[Component, str]) -> PassSummary:
        """Compute the whole tree under root. Any error aborts the pass."""
        if isinstance(root, str):
            root = self.store.get(root)
        workers = self.session.workers
        logger.info(
            "Formula pass started on %s (%d formulas, %d worker(s), leak period %s)",
            root.key,
            len(self._formulas),
            workers,
            "on" if self.session.leak_period_enabled else "off",
        )
        start = time.perf_counter()
        components = 0
        written = 0
        try:
            if workers == 1:
                for component in post_order(self.store, root):
                    written += self.compute_component(component)
                    components += 1
            else:
                with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                    for wave in height_waves(self.store, root):
                        futures = [executor.submit(self.compute_component, c) for c in wave]
                        for future in futures:
                            written += future.result()
                            components += 1
        except Exception:
            logger.error("Formula pass aborted after %d component(s)", components)
            self._handoff.clear()
            raise

        # the root's outputs have no parent to take them
        self._handoff.clear()
        duration = time.perf_counter() - start
        logger.info(
            "Formula pass finished: %d components, %d measures in %.3fs",
            components,
            written,
            duration,
        )
        return PassSummary(
            components=components,
            measures_written=written,
            duration_seconds=duration,
            leak_period_enabled=self.session.leak_period_enabled,
            workers=workers,
        )

    def _run_groups(
        self,
        component: Component,
        inputs: Mapping[MetricKey, Any],
        rows: Sequence[IssueGroupRow],
        impact_rows: Sequence[IssueImpactGroupRow],
    ) -> Outputs:
        counter = IssueGroupCounter(rows, impact_rows)
        return self._evaluate(
            component,
            FormulaMode.GROUPS,
            inputs,
            lambda f, ctx: f.compute(ctx, counter),
        )

    def _run_hierarchy(
        self,
        component: Component,
        inputs: Mapping[MetricKey, Any],
        own: Outputs,
        children: Sequence[Outputs],
    ) -> Outputs:
        return self._evaluate(
            component,
            FormulaMode.HIERARCHY,
            inputs,
            lambda f, ctx: f.compute_hierarchy(ctx),
            own=own,
            children=children,
        )

    def _evaluate(self, component, mode, inputs, invoke, own=None, children=()) -> Outputs:
        computed: Outputs = {}
        ran: set[MetricKey] = set()
        for f in self._formulas:
            ctx = FormulaContext(
                component,
                f,
                mode,
                computed,
                ran,
                self.catalog.outputs,
                inputs,
                self.session.rating_grid,
                own=own,
                children=children,
                strict=self.session.strict_dependencies,
            )
            invoke(f, ctx)
            ran.add(f.metric)
            if ctx.result is not None:
                computed[f.metric] = self.metrics.by_key(f.metric).coerce(ctx.result)
        return computed
