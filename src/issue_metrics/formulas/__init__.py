"""Declarative formulas computed per component by the formula engine."""

from .base import Formula, FormulaMode, formula
from .catalog import FormulaCatalog, default_catalog
from .issue_groups import IssueGroupCounter
from .standard import debt_ratio, parse_development_cost, percent_reviewed, standard_formulas

__all__ = [
    "Formula",
    "FormulaCatalog",
    "FormulaMode",
    "IssueGroupCounter",
    "debt_ratio",
    "default_catalog",
    "formula",
    "parse_development_cost",
    "percent_reviewed",
    "standard_formulas",
]
