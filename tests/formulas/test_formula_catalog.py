"""Tests for FormulaCatalog construction and ordering."""

import pytest

from issue_metrics.exceptions import DuplicateFormulaError, FormulaCycleError
from issue_metrics.formulas import Formula, FormulaCatalog, default_catalog, formula
from issue_metrics.formulas.hierarchy import sum_values
from issue_metrics.metrics import REGISTRY, MetricKey


def _noop(*_):
    return None


def _formula(metric, *dependencies):
    return formula(metric, _noop, sum_values, dependencies)


class TestDefaultCatalog:
    @pytest.fixture
    def catalog(self):
        return default_catalog()

    def test_formula_metrics_include_dependencies(self, catalog):
        """Every output and every dependency is a formula metric."""
        metrics = catalog.formula_metrics()
        for f in catalog:
            assert f.metric in metrics
            for dependency in f.dependencies:
                assert dependency in metrics

    def test_inputs_are_never_computed(self, catalog):
        """Input-only metrics are dependencies, never outputs."""
        assert catalog.input_metrics() == {MetricKey.DEVELOPMENT_COST, MetricKey.NEW_DEVELOPMENT_COST}
        for f in catalog:
            assert not REGISTRY[f.metric].input_only

    def test_covers_every_computed_metric(self, catalog):
        """Each registered non-input metric has a formula."""
        computed = {k for k, meta in REGISTRY.items() if not meta.input_only}
        assert catalog.outputs == computed

    def test_dependencies_come_first(self, catalog):
        position = {f.metric: i for i, f in enumerate(catalog)}
        for f in catalog:
            for dependency in f.dependencies:
                if dependency in position:
                    assert position[dependency] < position[f.metric]

    def test_leak_formulas_flagged(self, catalog):
        assert catalog.get(MetricKey.NEW_BUGS).on_leak
        assert catalog.get(MetricKey.NEW_MAINTAINABILITY_RATING).on_leak
        assert not catalog.get(MetricKey.BUGS).on_leak
        assert not catalog.get(MetricKey.EFFORT_TO_REACH_MAINTAINABILITY_RATING_A).on_leak

    def test_lookup(self, catalog):
        assert "bugs" in catalog
        assert MetricKey.DEVELOPMENT_COST not in catalog
        assert "no_such_metric" not in catalog
        assert catalog.get(MetricKey.DEVELOPMENT_COST) is None
        assert catalog.get("bugs").metric is MetricKey.BUGS


class TestConstruction:
    def test_duplicate_output(self):
        with pytest.raises(DuplicateFormulaError):
            FormulaCatalog([_formula(MetricKey.BUGS), _formula(MetricKey.BUGS)])

    def test_cycle(self):
        with pytest.raises(FormulaCycleError) as exc_info:
            FormulaCatalog(
                [
                    _formula(MetricKey.SQALE_DEBT_RATIO, MetricKey.SQALE_RATING),
                    _formula(MetricKey.SQALE_RATING, MetricKey.SQALE_DEBT_RATIO),
                ]
            )
        assert "sqale_rating" in exc_info.value.cycle

    def test_self_dependency_is_a_cycle(self):
        with pytest.raises(FormulaCycleError):
            FormulaCatalog([_formula(MetricKey.BUGS, MetricKey.BUGS)])

    def test_order_follows_dependencies(self):
        catalog = FormulaCatalog(
            [
                _formula(MetricKey.SQALE_RATING, MetricKey.SQALE_DEBT_RATIO),
                _formula(MetricKey.SQALE_DEBT_RATIO, MetricKey.TECHNICAL_DEBT),
                _formula(MetricKey.TECHNICAL_DEBT),
            ]
        )
        assert [f.metric for f in catalog] == [
            MetricKey.TECHNICAL_DEBT,
            MetricKey.SQALE_DEBT_RATIO,
            MetricKey.SQALE_RATING,
        ]

    def test_both_modes_required(self):
        """A formula cannot leave out a mode."""
        with pytest.raises(TypeError):
            Formula(MetricKey.BUGS, False, _noop, None)
        with pytest.raises(TypeError):
            Formula(MetricKey.BUGS, False, compute=_noop)  # type: ignore[call-arg]
