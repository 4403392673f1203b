"""Aggregation session: the per-pass context handed to both engines.

The session combines the engine configuration (intent) with what the
period classifier reports at pass start (fact) so that no engine reads
process-wide state. Build a fresh session for every pass.

Example:
    >>> session = AggregationSession.start(load_config(), classifier)
    >>> session.leak_period_enabled
    True
    >>> session.rating_grid.to_rating(0.125)
    <Rating.C: 3>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Optional

from .config import DEFAULT_CONFIG, EngineConfig
from .rating import RatingGrid

if TYPE_CHECKING:
    from .protocols import PeriodClassifier


@dataclass(frozen=True)
class AggregationSession:
    """Immutable context of one aggregation pass.

    Attributes:
        config: Engine configuration
        leak_period_enabled: True when leak-period measures are computed in
            this pass (configured AND reported available by the classifier)
    """

    config: EngineConfig = field(default_factory=lambda: DEFAULT_CONFIG)
    leak_period_enabled: bool = True

    @classmethod
    def start(
        cls,
        config: Optional[EngineConfig] = None,
        classifier: Optional[PeriodClassifier] = None,
    ) -> AggregationSession:
        """Resolve the leak flag once, at pass start."""
        config = config or DEFAULT_CONFIG
        enabled = config.leak_period_enabled
        if classifier is not None:
            enabled = enabled and classifier.is_enabled()
        return cls(config=config, leak_period_enabled=enabled)

    @cached_property
    def rating_grid(self) -> RatingGrid:
        """Maintainability rating grid for this pass."""
        return self.config.ratings.grid

    @property
    def workers(self) -> int:
        return self.config.effective_workers

    @property
    def strict_dependencies(self) -> bool:
        return self.config.strict_dependencies
