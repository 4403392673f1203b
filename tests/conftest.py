"""Shared test fixtures for issue metrics tests."""

import pytest

from issue_metrics.metrics import MetricCatalog
from issue_metrics.models import Issue, IssueGroupRow, RuleType, Severity
from issue_metrics.session import AggregationSession
from issue_metrics.store import (
    InMemoryComponentStore,
    MeasureRepository,
    SetPeriodClassifier,
    StaticRawDataProvider,
)


@pytest.fixture
def metric_catalog():
    """The registry-backed metric catalog."""
    return MetricCatalog()


@pytest.fixture
def measures():
    """Empty write-once measure repository."""
    return MeasureRepository()


@pytest.fixture
def project_tree():
    """prj -> src -> {a.py, b.py}, prj -> README.md."""
    return InMemoryComponentStore.from_tree(
        {"prj": {"src": {"a.py": {}, "b.py": {}}, "README.md": {}}}
    )


@pytest.fixture
def leak_session():
    """Session with a leak period."""
    return AggregationSession(leak_period_enabled=True)


@pytest.fixture
def no_leak_session():
    """Session without a leak period."""
    return AggregationSession(leak_period_enabled=False)


@pytest.fixture
def empty_provider():
    """Provider with no rows and no input measures anywhere."""
    return StaticRawDataProvider()


@pytest.fixture
def no_new_issues():
    """Classifier with a leak period but no new issues."""
    return SetPeriodClassifier()


@pytest.fixture
def make_issue():
    """Factory for issues with sensible defaults."""
    counter = {"n": 0}

    def _make(rule_type=RuleType.CODE_SMELL, severity=Severity.MAJOR, **kwargs):
        counter["n"] += 1
        kwargs.setdefault("key", f"issue-{counter['n']}")
        return Issue(rule_type=rule_type, severity=severity, **kwargs)

    return _make


@pytest.fixture
def make_row():
    """Factory for issue group rows (CODE_SMELL / INFO / OPEN / count 1 by default)."""

    def _make(rule_type=RuleType.CODE_SMELL, **kwargs):
        return IssueGroupRow(rule_type=rule_type, **kwargs)

    return _make
