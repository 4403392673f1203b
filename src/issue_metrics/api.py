"""Public entry point for hosts that want one call per aggregation pass.

Example:
    >>> from issue_metrics import aggregate
    >>>
    >>> summary = aggregate(store, provider, measures, classifier=classifier)
    >>>
    >>> # With customization
    >>> summary = aggregate(
    ...     store, provider, measures, verbose=True, workers=4
    ... )
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from .config import load_config
from .engine import FormulaEngine, PassSummary
from .formulas import FormulaCatalog, default_catalog
from .logging_config import configure_logging, get_logger
from .models import Component
from .protocols import ComponentStore, MeasureStore, PeriodClassifier, RawDataProvider
from .session import AggregationSession

logger = get_logger(__name__)


def aggregate(
    store: ComponentStore,
    provider: RawDataProvider,
    sink: MeasureStore,
    root: Optional[Union[Component, str]] = None,
    classifier: Optional[PeriodClassifier] = None,
    catalog: Optional[FormulaCatalog] = None,
    config_file: Optional[Path] = None,
    log_file: Optional[str] = None,
    **overrides,
) -> PassSummary:
    """Run the formula engine over a whole tree.

    1. Load configuration (TOML discovery, ISSUE_METRICS_* variables, overrides)
    2. Configure logging from the configured verbosity
    3. Start a session, resolving the leak period against the classifier
    4. Compute every component under root (the store's root by default)

    Args:
        store: Component tree
        provider: Rows and input measures per component
        sink: Receives every computed measure
        root: Component or key to start from
        classifier: Reports whether a leak period exists
        catalog: Formula catalog, default_catalog() when omitted
        config_file: Optional explicit config file path
        log_file: Optional file to copy log records to
        **overrides: Configuration overrides (e.g. verbose=True, workers=4)

    Raises:
        ConfigurationError: If configuration is invalid
        ContractViolationError: If the pass is aborted by a contract violation
    """
    config = load_config(config_file=config_file, **overrides)
    configure_logging(config, log_file=log_file)
    logger.debug("Configuration loaded: %s mode", config.verbosity)

    session = AggregationSession.start(config, classifier)
    engine = FormulaEngine(catalog or default_catalog(), store, provider, sink, session)
    if root is None:
        root = store.root  # type: ignore[attr-defined]
    return engine.run(root)
