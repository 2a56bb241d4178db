"""
Configuration classes for the butterfly rates engine.
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from butterfly_rates.exceptions import ConfigError
from butterfly_rates.models import OptionSide

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegSpec:
    """
    One multi-leg butterfly column: strike gap and middle-leg ratio.

    Attributes:
        gap: Distance in points between the bought base leg and the sold middle leg
        ratio: Number of middle contracts sold per base contract bought
    """
    gap: int
    ratio: float

    def __post_init__(self) -> None:
        if self.gap <= 0:
            raise ConfigError("gap", self.gap, "must be positive")
        if self.ratio <= 0:
            raise ConfigError("ratio", self.ratio, "must be positive")

    @property
    def label(self) -> str:
        """Column label such as 'gap100x1.33'."""
        return f"gap{self.gap}x{self.ratio:g}"


DEFAULT_GAPS: Tuple[int, ...] = (50, 100, 150, 200)

DEFAULT_CALL_LEGS: Tuple[LegSpec, ...] = (
    LegSpec(50, 2.0),
    LegSpec(100, 2.0),
    LegSpec(100, 1.33),
    LegSpec(150, 1.5),
    LegSpec(150, 2.0),
    LegSpec(200, 2.0),
    LegSpec(250, 1.5),
)

DEFAULT_PUT_LEGS: Tuple[LegSpec, ...] = (
    LegSpec(50, 1.33),
    LegSpec(100, 1.5),
    LegSpec(100, 1.33),
    LegSpec(150, 1.5),
    LegSpec(150, 2.0),
    LegSpec(200, 2.0),
    LegSpec(250, 2.0),
)

# Scalar fields that must hold a number before range checks
NUMERIC_FIELDS: Tuple[str, ...] = (
    "max_value_percent",
    "best_trade_max_value",
    "best_trade_limit",
    "max_rate_fraction",
    "band_size",
    "near_atm_bands",
    "good_gap_max",
)


@dataclass
class ButterflyConfig:
    """
    Configuration for chain building and strategy ranking.

    Attributes:
        gaps: Gaps priced for the 1-2-1 matrix and the ranker (default: 50/100/150/200)
        call_legs: Gap/ratio legs for the CALL multi-leg matrix
        put_legs: Gap/ratio legs for the PUT multi-leg matrix
        max_value_percent: Upper value% bound for ranked strategies (default: 20)
        best_trade_max_value: Value% bound for the best-trades shortlist (default: 15)
        best_trade_limit: Maximum number of best trades returned (default: 8)
        max_rate_fraction: Rate must stay below this fraction of the first leg premium (default: 0.5)
        band_size: Strike points per distance band from ATM (default: 50)
        near_atm_bands: Bands from ATM still considered near the money (default: 2)
        good_gap_max: Largest gap considered liquid enough (default: 100)
    """
    gaps: Tuple[int, ...] = DEFAULT_GAPS
    call_legs: Tuple[LegSpec, ...] = DEFAULT_CALL_LEGS
    put_legs: Tuple[LegSpec, ...] = DEFAULT_PUT_LEGS
    max_value_percent: float = 20.0
    best_trade_max_value: float = 15.0
    best_trade_limit: int = 8
    max_rate_fraction: float = 0.5
    band_size: int = 50
    near_atm_bands: int = 2
    good_gap_max: int = 100

    def __post_init__(self) -> None:
        try:
            self.gaps = tuple(int(g) for g in self.gaps)
        except (TypeError, ValueError) as e:
            raise ConfigError("gaps", self.gaps, "expected a list of integer gaps") from e
        self.call_legs = _coerce_legs("call_legs", self.call_legs)
        self.put_legs = _coerce_legs("put_legs", self.put_legs)
        self._validate()

    def _validate(self) -> None:
        """Validate configuration parameters."""
        for name in NUMERIC_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(name, value, "must be a number")

        if not self.gaps:
            raise ConfigError("gaps", self.gaps, "at least one gap is required")
        if any(g <= 0 for g in self.gaps):
            raise ConfigError("gaps", self.gaps, "gaps must be positive")
        if len(set(self.gaps)) != len(self.gaps):
            raise ConfigError("gaps", self.gaps, "gaps must be unique")
        if self.max_value_percent <= 0:
            raise ConfigError("max_value_percent", self.max_value_percent, "must be positive")
        if self.best_trade_max_value <= 0:
            raise ConfigError("best_trade_max_value", self.best_trade_max_value, "must be positive")
        if self.best_trade_limit < 1:
            raise ConfigError("best_trade_limit", self.best_trade_limit, "must be at least 1")
        if not 0 < self.max_rate_fraction <= 1:
            raise ConfigError("max_rate_fraction", self.max_rate_fraction, "must be in (0, 1]")
        if self.band_size < 1:
            raise ConfigError("band_size", self.band_size, "must be at least 1")
        if self.near_atm_bands < 0:
            raise ConfigError("near_atm_bands", self.near_atm_bands, "must be non-negative")
        if self.good_gap_max < 1:
            raise ConfigError("good_gap_max", self.good_gap_max, "must be at least 1")

    def legs_for(self, side: OptionSide) -> Tuple[LegSpec, ...]:
        """Return the multi-leg table for a side."""
        return self.call_legs if side is OptionSide.CALL else self.put_legs


def _coerce_legs(field_name: str, legs: Any) -> Tuple[LegSpec, ...]:
    try:
        items = list(legs)
    except TypeError as e:
        raise ConfigError(field_name, legs, "expected a list of legs") from e
    return tuple(_coerce_leg(field_name, leg) for leg in items)


def _coerce_leg(
    field_name: str,
    leg: Union[LegSpec, Dict[str, Any], Tuple[Any, Any]],
) -> LegSpec:
    if isinstance(leg, LegSpec):
        return leg
    if isinstance(leg, dict):
        missing = {"gap", "ratio"} - set(leg)
        if missing:
            raise ConfigError(field_name, leg, f"missing {', '.join(sorted(missing))}")
        gap, ratio = leg["gap"], leg["ratio"]
    else:
        try:
            gap, ratio = leg
        except (TypeError, ValueError) as e:
            raise ConfigError(field_name, leg, "expected a mapping with gap and ratio") from e

    try:
        return LegSpec(int(gap), float(ratio))
    except (TypeError, ValueError) as e:
        raise ConfigError(field_name, leg, "gap and ratio must be numbers") from e


def load_config(file_path: Union[str, Path]) -> ButterflyConfig:
    """
    Load a ButterflyConfig from a YAML file.

    The file holds a mapping of ButterflyConfig field names; omitted fields keep
    their defaults.

    Args:
        file_path: Path to YAML file

    Returns:
        Validated ButterflyConfig

    Raises:
        ConfigError: If the file is missing, malformed or holds unknown keys
    """
    path = Path(file_path)
    if not path.exists():
        raise ConfigError("file", str(file_path), "file not found")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError("file", str(file_path), f"invalid YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("file", str(file_path), "top level must be a mapping")

    known = {f.name for f in fields(ButterflyConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError("file", str(file_path), f"unknown keys: {', '.join(sorted(unknown))}")

    logger.debug(f"Loaded config overrides from {path}: {sorted(data)}")
    return ButterflyConfig(**data)


def resolve_config(config: Optional[ButterflyConfig]) -> ButterflyConfig:
    """Return the given config or the defaults."""
    return config if config is not None else ButterflyConfig()
