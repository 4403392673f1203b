"""Rating grids: ratios and severities to A..E letter ratings.

Two variants share the Rating ordinal:

    ratio     four ascending thresholds t1 < t2 < t3 < t4
              ratio <= t1 -> A, <= t2 -> B, <= t3 -> C, <= t4 -> D, else E
    discrete  fixed severity table, INFO -> A ... BLOCKER -> E

Both are pure functions. Negative ratios are valid input and rate A.

Example:
    >>> grid = RatingGrid((0.05, 0.1, 0.2, 0.5))
    >>> grid.to_rating(0.125)
    <Rating.C: 3>
"""

from __future__ import annotations

from typing import Optional, Sequence

from .exceptions import InvalidConfigError
from .models import Rating, Severity

DEFAULT_MAINTAINABILITY_GRID = (0.05, 0.1, 0.2, 0.5)

# Applied to the share of hotspots NOT reviewed, in percent:
# >= 80% reviewed -> A, >= 70% -> B, >= 50% -> C, >= 30% -> D, else E
SECURITY_REVIEW_GRID = (20.0, 30.0, 50.0, 70.0)

_RATING_BY_SEVERITY = {
    Severity.INFO: Rating.A,
    Severity.MINOR: Rating.B,
    Severity.MAJOR: Rating.C,
    Severity.CRITICAL: Rating.D,
    Severity.BLOCKER: Rating.E,
}

_BANDED = (Rating.A, Rating.B, Rating.C, Rating.D)


class RatingGrid:
    """Four ascending thresholds mapping a ratio to a rating."""

    __slots__ = ("_thresholds",)

    def __init__(self, thresholds: Sequence[float]) -> None:
        values = tuple(float(t) for t in thresholds)
        if len(values) != 4:
            raise InvalidConfigError("rating_grid", list(thresholds), "expected exactly 4 thresholds")
        if any(b <= a for a, b in zip(values, values[1:])):
            raise InvalidConfigError(
                "rating_grid", list(thresholds), "thresholds must be strictly ascending"
            )
        self._thresholds = values

    @property
    def thresholds(self) -> tuple[float, float, float, float]:
        return self._thresholds  # type: ignore[return-value]

    def to_rating(self, ratio: float) -> Rating:
        for rating, upper in zip(_BANDED, self._thresholds):
            if ratio <= upper:
                return rating
        return Rating.E

    def threshold_for(self, rating: Rating) -> float:
        """Upper bound of a rating's band. E has no upper bound."""
        if rating is Rating.E:
            raise ValueError("Rating E has no upper threshold")
        return self._thresholds[rating - 1]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RatingGrid):
            return NotImplemented
        return self._thresholds == other._thresholds

    def __hash__(self) -> int:
        return hash(self._thresholds)

    def __repr__(self) -> str:
        return f"RatingGrid({list(self._thresholds)})"


def to_rating(ratio: float, thresholds: Sequence[float]) -> Rating:
    """Rate a ratio against four ascending thresholds."""
    return RatingGrid(thresholds).to_rating(ratio)


def worst(a: Rating, b: Rating) -> Rating:
    """Ordinally larger of two ratings."""
    return Rating.worst(a, b)


def rating_for_severity(severity: Optional[Severity]) -> Rating:
    """Discrete variant: rating of the most severe remaining issue, A when none."""
    if severity is None:
        return Rating.A
    return _RATING_BY_SEVERITY[severity]


_SECURITY_REVIEW = RatingGrid(SECURITY_REVIEW_GRID)


def security_review_rating(percent_reviewed: Optional[float]) -> Rating:
    """Rating of the share of reviewed hotspots. No hotspots at all rates A."""
    if percent_reviewed is None:
        return Rating.A
    return _SECURITY_REVIEW.to_rating(100.0 - percent_reviewed)
