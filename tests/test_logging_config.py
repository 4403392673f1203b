"""Tests for logging setup."""

import logging

import pytest

from issue_metrics.config import EngineConfig, load_config
from issue_metrics.logging_config import configure_logging, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = logging.getLogger("issue_metrics").level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    logging.getLogger("issue_metrics").setLevel(level)


class TestSetupLogging:
    """Test verbosity levels and handlers."""

    def test_default_level(self):
        assert setup_logging().level == logging.WARNING

    def test_verbose(self):
        assert setup_logging(verbose=True).level == logging.DEBUG

    def test_quiet_wins(self):
        assert setup_logging(verbose=True, quiet=True).level == logging.ERROR

    def test_with_log_file(self, tmp_path):
        logger = setup_logging(log_file=str(tmp_path / "pass.log"))
        assert logger.name == "issue_metrics"
        assert logger.level == logging.WARNING


class TestGetLogger:
    """Test logger namespacing."""

    def test_root(self):
        assert get_logger().name == "issue_metrics"

    def test_module_name_kept(self):
        assert get_logger("issue_metrics.engine").name == "issue_metrics.engine"

    def test_bare_name_prefixed(self):
        assert get_logger("engine").name == "issue_metrics.engine"


class TestConfigureLogging:
    """Test that EngineConfig verbosity drives the log level."""

    @pytest.mark.parametrize(
        "verbosity,level",
        [("normal", logging.WARNING), ("verbose", logging.DEBUG), ("quiet", logging.ERROR)],
    )
    def test_levels(self, verbosity, level):
        assert configure_logging(EngineConfig(verbosity=verbosity)).level == level

    def test_from_loaded_config(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ISSUE_METRICS_VERBOSITY", raising=False)
        assert configure_logging(load_config(verbose=True)).level == logging.DEBUG
