"""Tests for the one-call aggregation entry point."""

import pytest

from issue_metrics import aggregate
from issue_metrics.exceptions import ConfigurationError
from issue_metrics.metrics import MetricKey
from issue_metrics.models import IssueGroupRow, RuleType, Severity
from issue_metrics.store import SetPeriodClassifier, StaticRawDataProvider


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """No config files or ISSUE_METRICS_* variables leak in."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    for name in ("LEAK_PERIOD_ENABLED", "WORKERS", "STRICT_DEPENDENCIES", "VERBOSITY"):
        monkeypatch.delenv(f"ISSUE_METRICS_{name}", raising=False)


@pytest.fixture
def logging_calls(monkeypatch):
    """Record setup_logging arguments instead of touching the root logger."""
    calls = []
    monkeypatch.setattr(
        "issue_metrics.logging_config.setup_logging",
        lambda **kwargs: calls.append(kwargs),
    )
    return calls


@pytest.fixture
def provider():
    return StaticRawDataProvider(
        rows={"src/a.py": [IssueGroupRow(RuleType.BUG, Severity.MAJOR, in_leak=True)]}
    )


class TestAggregate:
    """Test config, logging and session wiring."""

    def test_runs_whole_tree(self, project_tree, provider, measures, logging_calls):
        summary = aggregate(project_tree, provider, measures)
        assert summary.components == 5
        assert measures.get("prj", MetricKey.BUGS) == 1
        assert measures.get("prj", MetricKey.NEW_BUGS) == 1

    def test_default_verbosity(self, project_tree, provider, measures, logging_calls):
        aggregate(project_tree, provider, measures)
        assert logging_calls == [{"verbose": False, "quiet": False, "log_file": None}]

    def test_verbose_override(self, project_tree, provider, measures, logging_calls):
        aggregate(project_tree, provider, measures, verbose=True)
        assert logging_calls[0]["verbose"] and not logging_calls[0]["quiet"]

    def test_verbosity_from_env(self, project_tree, provider, measures, logging_calls, monkeypatch):
        monkeypatch.setenv("ISSUE_METRICS_VERBOSITY", "quiet")
        aggregate(project_tree, provider, measures, log_file="pass.log")
        assert logging_calls == [{"verbose": False, "quiet": True, "log_file": "pass.log"}]

    def test_classifier_without_leak_period(self, project_tree, provider, measures, logging_calls):
        summary = aggregate(
            project_tree, provider, measures, classifier=SetPeriodClassifier(enabled=False)
        )
        assert not summary.leak_period_enabled
        assert not measures.has("prj", MetricKey.NEW_BUGS)

    def test_subtree_and_workers(self, project_tree, provider, measures, logging_calls):
        summary = aggregate(project_tree, provider, measures, root="src", workers=2)
        assert summary.components == 3
        assert summary.workers == 2
        assert not measures.has("prj", MetricKey.BUGS)

    def test_invalid_override(self, project_tree, provider, measures, logging_calls):
        with pytest.raises(ConfigurationError):
            aggregate(project_tree, provider, measures, workers=0)
        assert logging_calls == []
        assert len(measures) == 0
