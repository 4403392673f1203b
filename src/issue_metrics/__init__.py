"""
Issue Metrics - hierarchical issue measures for a component tree

Turns per-issue classification (status, resolution, severity, rule type,
impacts) into counting measures, efforts, ratios and A..E ratings attached
to every file, directory and project of a component tree.

Two engines share the domain model:
    IssueCountingVisitor  one post-order walk, tallies merged child to parent
    FormulaEngine         declarative formula catalog, groups and hierarchy modes
"""

__version__ = "0.1.0"

from .accumulator import IssueCountingVisitor
from .api import aggregate
from .config import EngineConfig, RatingConfig, load_config
from .logging_config import configure_logging, setup_logging
from .engine import FormulaContext, FormulaEngine, PassSummary
from .formulas import Formula, FormulaCatalog, FormulaMode, IssueGroupCounter, default_catalog
from .metrics import MetricCatalog, MetricKey, MetricMeta, ValueType
from .models import (
    Component,
    ImpactSeverity,
    Issue,
    IssueGroupRow,
    IssueImpactGroupRow,
    IssueStatus,
    Qualifier,
    Rating,
    RuleType,
    Severity,
    SoftwareQuality,
)
from .rating import RatingGrid, rating_for_severity, security_review_rating
from .session import AggregationSession
from .store import (
    InMemoryComponentStore,
    MeasureRepository,
    SetPeriodClassifier,
    StaticRawDataProvider,
)
from .traversal import HandoffTable, crawl, height_waves, post_order

__all__ = [
    "AggregationSession",
    "Component",
    "EngineConfig",
    "Formula",
    "FormulaCatalog",
    "FormulaContext",
    "FormulaEngine",
    "FormulaMode",
    "HandoffTable",
    "ImpactSeverity",
    "InMemoryComponentStore",
    "Issue",
    "IssueCountingVisitor",
    "IssueGroupCounter",
    "IssueGroupRow",
    "IssueImpactGroupRow",
    "IssueStatus",
    "MeasureRepository",
    "MetricCatalog",
    "MetricKey",
    "MetricMeta",
    "PassSummary",
    "Qualifier",
    "Rating",
    "RatingConfig",
    "RatingGrid",
    "RuleType",
    "SetPeriodClassifier",
    "Severity",
    "SoftwareQuality",
    "StaticRawDataProvider",
    "ValueType",
    "aggregate",
    "crawl",
    "configure_logging",
    "default_catalog",
    "height_waves",
    "load_config",
    "post_order",
    "rating_for_severity",
    "security_review_rating",
    "setup_logging",
]
