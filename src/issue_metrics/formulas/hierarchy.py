"""Hierarchy-mode combiners: fold a component's own value with its children's values."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Union

from ..models import Rating

if TYPE_CHECKING:
    from ..engine import FormulaContext

EMPTY_DISTRIBUTION_KEYS = ("total", "HIGH", "MEDIUM", "LOW")


def sum_values(ctx: FormulaContext) -> None:
    """Own value (0 when absent) plus the sum of the children's values."""
    own = ctx.own_value() or 0
    ctx.set_value(own + sum(ctx.children_values()))


def worst_rating(ctx: FormulaContext) -> None:
    """Worst of own and children ratings. Without children values nothing is set."""
    children = ctx.children_values()
    if not children:
        return
    ratings = [Rating.of(v) for v in children]
    own = ctx.own_value()
    if own is not None:
        ratings.append(Rating.of(own))
    ctx.set_value(Rating.worst(*ratings))


def sum_distributions(ctx: FormulaContext) -> None:
    """Element-wise sum of own and children impact distributions."""
    total = dict.fromkeys(EMPTY_DISTRIBUTION_KEYS, 0)
    parts = [ctx.own_value(), *ctx.children_values()]
    for part in parts:
        if part is None:
            continue
        for key, count in _parse_distribution(part).items():
            total[key] = total.get(key, 0) + count
    ctx.set_value(json.dumps(total))


def _parse_distribution(value: Union[str, dict]) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    return json.loads(value)
