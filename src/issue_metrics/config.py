"""Configuration loading and management for the issue metrics engine.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in EngineConfig)
    2. Global config (~/.issue-metrics.toml)
    3. Project config (./issue-metrics.toml)
    4. Explicit config file
    5. Environment variables (ISSUE_METRICS_* prefix)
    6. Keyword overrides

Example:
    >>> config = load_config(leak_period_enabled=False)
    >>> config.leak_period_enabled
    False
    >>> config.ratings.maintainability_grid
    (0.05, 0.1, 0.2, 0.5)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError
from .rating import DEFAULT_MAINTAINABILITY_GRID, RatingGrid

Verbosity = Literal["quiet", "normal", "verbose"]

_ENV_PREFIX = "ISSUE_METRICS_"


@dataclass(frozen=True)
class RatingConfig:
    """Rating thresholds.

    Attributes:
        maintainability_grid: Debt ratio thresholds (fractions, not percents)
            for the A/B/C/D bands of the maintainability ratings. Also drives
            effort_to_reach_maintainability_rating_a through the A threshold.
    """

    maintainability_grid: tuple[float, ...] = DEFAULT_MAINTAINABILITY_GRID

    def __post_init__(self) -> None:
        """Validate the grid (RatingGrid raises InvalidConfigError)."""
        object.__setattr__(
            self, "maintainability_grid", tuple(float(t) for t in self.maintainability_grid)
        )
        RatingGrid(self.maintainability_grid)
        if self.maintainability_grid[0] < 0:
            raise InvalidConfigError(
                "maintainability_grid", list(self.maintainability_grid), "thresholds must be >= 0"
            )

    @property
    def grid(self) -> RatingGrid:
        return RatingGrid(self.maintainability_grid)


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for an aggregation pass.

    Attributes:
        leak_period_enabled: Compute leak-period ("new_*") measures. The pass
            also requires the period classifier to report a leak period.
        workers: Parallel workers for the formula engine (None = sequential).
        strict_dependencies: Raise when a formula reads an undeclared metric.
            When False the read is logged and returns None.
        verbosity: Logging verbosity level.
        ratings: Rating thresholds.
    """

    leak_period_enabled: bool = True
    workers: Optional[int] = None
    strict_dependencies: bool = True
    verbosity: Verbosity = "normal"
    ratings: RatingConfig = field(default_factory=RatingConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError(
                "verbosity", self.verbosity, "expected quiet, normal or verbose"
            )

    @property
    def effective_workers(self) -> int:
        return self.workers or 1


DEFAULT_CONFIG = EngineConfig()


def load_config(config_file: Optional[Path] = None, **overrides) -> EngineConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from the host pipeline)

    Returns:
        Validated EngineConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".issue-metrics.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "issue-metrics.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update(overrides)

    ratings = merged.pop("ratings", None)
    if ratings is not None:
        if isinstance(ratings, dict):
            try:
                merged["ratings"] = RatingConfig(**ratings)
            except TypeError as e:
                raise ConfigurationError(f"Invalid [ratings] config: {e}")
        elif isinstance(ratings, RatingConfig):
            merged["ratings"] = ratings
        else:
            raise InvalidConfigError("ratings", ratings, "expected a table")

    try:
        return EngineConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from ISSUE_METRICS_* environment variables.

    Supported environment variables:
        ISSUE_METRICS_LEAK_PERIOD_ENABLED: bool (true/false/1/0)
        ISSUE_METRICS_WORKERS: int
        ISSUE_METRICS_STRICT_DEPENDENCIES: bool
        ISSUE_METRICS_VERBOSITY: quiet/normal/verbose

    Returns:
        Dict of field_name -> parsed_value for any ISSUE_METRICS_* vars found.
    """
    type_hints = get_type_hints(EngineConfig)

    result: dict[str, Any] = {}

    for field_name in EngineConfig.__dataclass_fields__:
        env_key = f"{_ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types that cannot come from the environment (nested
    tables such as ratings).
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli is not available
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
