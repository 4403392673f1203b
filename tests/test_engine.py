"""Tests for the formula engine over a whole component tree."""

import logging
from collections import Counter

import pytest

from issue_metrics.config import EngineConfig
from issue_metrics.engine import FormulaContext, FormulaEngine
from issue_metrics.exceptions import (
    MeasureAlreadySetError,
    MissingDependencyError,
    TraversalOrderError,
    UndeclaredDependencyError,
)
from issue_metrics.formulas import FormulaCatalog, FormulaMode, default_catalog, formula
from issue_metrics.formulas.hierarchy import sum_values
from issue_metrics.metrics import MetricKey
from issue_metrics.models import Component, IssueGroupRow, Rating, RuleType, Severity
from issue_metrics.rating import RatingGrid
from issue_metrics.session import AggregationSession
from issue_metrics.store import MeasureRepository, StaticRawDataProvider

ROWS = {
    "src/a.py": [
        IssueGroupRow(RuleType.BUG, Severity.MAJOR, count=2, effort=10.0),
        IssueGroupRow(RuleType.CODE_SMELL, Severity.MINOR, effort=30.0),
    ],
    "src/b.py": [
        IssueGroupRow(RuleType.VULNERABILITY, Severity.CRITICAL, in_leak=True),
        IssueGroupRow(RuleType.CODE_SMELL, Severity.INFO, effort=10.0),
    ],
    # rows attached to the directory itself
    "src": [IssueGroupRow(RuleType.CODE_SMELL, Severity.BLOCKER, effort=5.0)],
}

INPUTS = {
    "prj": {MetricKey.DEVELOPMENT_COST: "900"},
    "src": {MetricKey.DEVELOPMENT_COST: "300"},
}


@pytest.fixture
def provider():
    return StaticRawDataProvider(rows=ROWS, inputs=INPUTS)


def _engine(tree, provider, measures, session=None, catalog=None):
    return FormulaEngine(catalog or default_catalog(), tree, provider, measures, session)


class TestRun:
    def test_counts_roll_up(self, project_tree, provider, measures, leak_session):
        _engine(project_tree, provider, measures, leak_session).run(project_tree.root)
        assert measures.get("src/a.py", MetricKey.VIOLATIONS) == 3
        assert measures.get("src/b.py", MetricKey.VIOLATIONS) == 2
        assert measures.get("src", MetricKey.VIOLATIONS) == 1 + 3 + 2
        assert measures.get("README.md", MetricKey.VIOLATIONS) == 0
        assert measures.get("prj", MetricKey.VIOLATIONS) == 6
        assert measures.get("prj", MetricKey.BLOCKER_VIOLATIONS) == 1

    def test_efforts_and_ratios(self, project_tree, provider, measures, leak_session):
        _engine(project_tree, provider, measures, leak_session).run(project_tree.root)
        assert measures.get("src", MetricKey.TECHNICAL_DEBT) == 45.0
        assert measures.get("src", MetricKey.SQALE_DEBT_RATIO) == 15.0
        assert measures.get("src", MetricKey.SQALE_RATING) is Rating.C
        assert measures.get("prj", MetricKey.SQALE_DEBT_RATIO) == 5.0
        assert measures.get("prj", MetricKey.SQALE_RATING) is Rating.A
        assert measures.get("prj", MetricKey.EFFORT_TO_REACH_MAINTAINABILITY_RATING_A) == 0.0

    def test_leaf_without_development_cost(self, project_tree, provider, measures, leak_session):
        """No development cost: ratio 0, rating A, whole debt to reach A."""
        _engine(project_tree, provider, measures, leak_session).run(project_tree.root)
        assert measures.get("src/a.py", MetricKey.SQALE_DEBT_RATIO) == 0.0
        assert measures.get("src/a.py", MetricKey.SQALE_RATING) is Rating.A
        assert measures.get("src/a.py", MetricKey.EFFORT_TO_REACH_MAINTAINABILITY_RATING_A) == 30.0

    def test_ratings_take_the_worst(self, project_tree, provider, measures, leak_session):
        _engine(project_tree, provider, measures, leak_session).run(project_tree.root)
        assert measures.get("src/a.py", MetricKey.RELIABILITY_RATING) is Rating.C
        assert measures.get("README.md", MetricKey.RELIABILITY_RATING) is Rating.A
        assert measures.get("prj", MetricKey.RELIABILITY_RATING) is Rating.C
        assert measures.get("prj", MetricKey.SECURITY_RATING) is Rating.D

    def test_no_hotspots(self, project_tree, provider, measures, leak_session):
        _engine(project_tree, provider, measures, leak_session).run(project_tree.root)
        assert not measures.has("prj", MetricKey.SECURITY_HOTSPOTS_REVIEWED)
        assert measures.get("prj", MetricKey.SECURITY_REVIEW_RATING) is Rating.A

    def test_leak_measures(self, project_tree, provider, measures, leak_session):
        _engine(project_tree, provider, measures, leak_session).run(project_tree.root)
        assert measures.get("src/b.py", MetricKey.NEW_VIOLATIONS) == 1
        assert measures.get("prj", MetricKey.NEW_VULNERABILITIES) == 1
        assert measures.get("README.md", MetricKey.NEW_VIOLATIONS) == 0

    def test_leak_disabled(self, project_tree, provider, measures, no_leak_session):
        """Leak formulas are skipped entirely."""
        engine = _engine(project_tree, provider, measures, no_leak_session)
        engine.run(project_tree.root)
        assert not any(f.on_leak for f in engine.active_formulas)
        for component in ("src/a.py", "src", "prj"):
            assert not measures.has(component, MetricKey.NEW_VIOLATIONS)
            assert not measures.has(component, MetricKey.NEW_MAINTAINABILITY_RATING)
        assert measures.get("prj", MetricKey.VIOLATIONS) == 6

    def test_summary(self, project_tree, provider, measures, leak_session):
        summary = _engine(project_tree, provider, measures, leak_session).run("prj")
        assert summary.components == 5
        assert summary.measures_written == len(measures)
        assert summary.leak_period_enabled
        assert summary.workers == 1
        assert summary.duration_seconds >= 0

    def test_parallel_matches_sequential(self, project_tree, provider):
        sequential = MeasureRepository()
        _engine(project_tree, provider, sequential).run(project_tree.root)
        parallel = MeasureRepository()
        session = AggregationSession(config=EngineConfig(workers=4))
        summary = _engine(project_tree, provider, parallel, session).run(project_tree.root)
        assert summary.workers == 4
        for key in ("src/a.py", "src/b.py", "src", "README.md", "prj"):
            assert parallel.measures_for(key) == sequential.measures_for(key)

    def test_second_pass_into_same_sink_fails(self, project_tree, provider, measures):
        engine = _engine(project_tree, provider, measures)
        engine.run(project_tree.root)
        with pytest.raises(MeasureAlreadySetError):
            engine.run(project_tree.root)

    def test_formula_error_aborts_pass(self, project_tree, provider, measures):
        def boom(ctx, counter):
            raise RuntimeError("boom")

        catalog = FormulaCatalog([formula(MetricKey.BUGS, boom, sum_values)])
        with pytest.raises(RuntimeError):
            _engine(project_tree, provider, measures, catalog=catalog).run(project_tree.root)
        assert not measures.has("prj", MetricKey.BUGS)


class TestComputeComponent:
    def test_parent_before_children(self, project_tree, provider, measures):
        engine = _engine(project_tree, provider, measures)
        with pytest.raises(TraversalOrderError):
            engine.compute_component(project_tree.get("src"))

    def test_rows_fetched_once_per_component(self, project_tree, provider, measures):
        calls = Counter()

        class CountingProvider:
            def issue_group_rows(self, component):
                calls["rows", component.key] += 1
                return provider.issue_group_rows(component)

            def issue_impact_group_rows(self, component):
                calls["impact_rows", component.key] += 1
                return provider.issue_impact_group_rows(component)

            def input_measures(self, component):
                return provider.input_measures(component)

        _engine(project_tree, CountingProvider(), measures).run(project_tree.root)
        assert measures.get("src", MetricKey.VIOLATIONS) == 6
        assert len(calls) == 2 * 5
        assert set(calls.values()) == {1}

    def test_outputs_coerced(self, project_tree, provider, measures):
        engine = _engine(project_tree, provider, measures)
        engine.compute_component(project_tree.get("src/a.py"))
        assert isinstance(measures.get("src/a.py", MetricKey.BUGS), int)
        assert isinstance(measures.get("src/a.py", MetricKey.TECHNICAL_DEBT), float)
        assert isinstance(measures.get("src/a.py", MetricKey.RELIABILITY_ISSUES), str)


class TestFormulaContext:
    def _context(self, f, strict=True, ran=()):
        return FormulaContext(
            Component("a.py"),
            f,
            FormulaMode.GROUPS,
            computed={},
            ran=set(ran),
            catalog_outputs=frozenset({MetricKey.TECHNICAL_DEBT, MetricKey.SQALE_DEBT_RATIO}),
            inputs={MetricKey.DEVELOPMENT_COST: "10"},
            rating_grid=RatingGrid((0.05, 0.1, 0.2, 0.5)),
            strict=strict,
        )

    def test_undeclared_strict(self):
        f = formula(MetricKey.SQALE_DEBT_RATIO, lambda *_: None, sum_values, [MetricKey.TECHNICAL_DEBT])
        with pytest.raises(UndeclaredDependencyError):
            self._context(f).value(MetricKey.BUGS)

    def test_undeclared_lenient(self, caplog):
        f = formula(MetricKey.SQALE_DEBT_RATIO, lambda *_: None, sum_values, [MetricKey.TECHNICAL_DEBT])
        with caplog.at_level(logging.WARNING, logger="issue_metrics"):
            assert self._context(f, strict=False).value(MetricKey.BUGS) is None
        assert "undeclared" in caplog.text

    def test_missing_dependency(self):
        f = formula(MetricKey.SQALE_DEBT_RATIO, lambda *_: None, sum_values, [MetricKey.TECHNICAL_DEBT])
        with pytest.raises(MissingDependencyError) as exc_info:
            self._context(f).value(MetricKey.TECHNICAL_DEBT)
        assert exc_info.value.component == "a.py"
        assert exc_info.value.metric == "sqale_index"

    def test_inputs_and_computed(self):
        f = formula(
            MetricKey.SQALE_DEBT_RATIO,
            lambda *_: None,
            sum_values,
            [MetricKey.TECHNICAL_DEBT, MetricKey.DEVELOPMENT_COST],
        )
        ctx = self._context(f, ran=[MetricKey.TECHNICAL_DEBT])
        assert ctx.value(MetricKey.TECHNICAL_DEBT) is None
        assert ctx.value("development_cost") == "10"
        assert ctx.rating_grid.thresholds[0] == 0.05
