"""
Ranking system for butterfly strategies.

Scans every side x gap x strike combination at or out of the money, keeps the
plausibly priced ones, classifies them and sorts by value% (cheapest first).
"""

import logging
import math
from typing import Any, List, Mapping, Optional, Sequence

import pandas as pd

from butterfly_rates.chain import find_atm_strike
from butterfly_rates.config import ButterflyConfig, resolve_config
from butterfly_rates.models import ButterflyStrategy, OptionSide
from butterfly_rates.normalizer import index_chain, normalize_chain
from butterfly_rates.pricer import calculate_value_percent, leg_strikes, price_butterfly
from butterfly_rates.rules import (
    get_alert_type,
    get_detailed_recommendation,
    get_recommendation,
)

logger = logging.getLogger(__name__)

SIDES = (OptionSide.CALL, OptionSide.PUT)


def format_strike(strike: float) -> str:
    """Render a strike without a trailing '.0' for whole numbers."""
    if float(strike).is_integer():
        return str(int(strike))
    return f"{strike}"


def strike_combo_label(strikes: Sequence[float]) -> str:
    """Label such as '24000 - 24050 - 24100'."""
    return " - ".join(format_strike(s) for s in strikes)


def distance_in_bands(strike: float, atm_strike: float, band_size: int = 50) -> int:
    """Distance from ATM in whole bands, rounding halves up."""
    return int(math.floor(abs(strike - atm_strike) / band_size + 0.5))


def find_best_strategies(
    raw_data: Optional[Sequence[Mapping[str, Any]]],
    spot_price: Optional[float],
    max_value_percent: Optional[float] = None,
    config: Optional[ButterflyConfig] = None,
) -> List[ButterflyStrategy]:
    """
    Find ATM/OTM butterfly strategies within a value% ceiling.

    A combination is kept when:
    - CALL lower strike >= ATM, or PUT upper strike <= ATM
    - all three strikes exist and are priceable
    - 0 < rate < max_rate_fraction * first leg premium
    - 0 < value% <= max_value_percent

    Args:
        raw_data: Raw chain records
        spot_price: Current underlying price
        max_value_percent: Value% ceiling (default: config, 20)
        config: Configuration

    Returns:
        Strategies sorted by value% ascending, then distance from ATM
    """
    config = resolve_config(config)
    if max_value_percent is None:
        max_value_percent = config.max_value_percent

    records = normalize_chain(raw_data)
    if not records or not spot_price:
        return []

    strikes = sorted(r.strike for r in records if r.strike > 0)
    atm_strike = find_atm_strike(strikes, spot_price)
    if atm_strike is None:
        return []

    chain = index_chain(records)
    strategies = []
    priced = 0

    for side in SIDES:
        for gap in config.gaps:
            for base in strikes:
                if side is OptionSide.CALL and base < atm_strike:
                    continue
                if side is OptionSide.PUT and base > atm_strike:
                    continue

                lower, middle, upper = leg_strikes(base, gap, side)
                if lower not in chain or middle not in chain or upper not in chain:
                    continue

                result = price_butterfly(lower, middle, upper, chain, side)
                if result is None:
                    continue
                priced += 1

                if not 0 < result.rate < result.first_leg_premium * config.max_rate_fraction:
                    logger.debug(
                        f"Rejected {side.value} {strike_combo_label((lower, middle, upper))}: "
                        f"rate {result.rate:.2f} vs premium {result.first_leg_premium:.2f}"
                    )
                    continue

                value_percent = calculate_value_percent(result.rate, result.first_leg_premium)
                if not 0 < value_percent <= max_value_percent:
                    continue

                distance = distance_in_bands(lower, atm_strike, config.band_size)

                strategies.append(ButterflyStrategy(
                    type=side,
                    strike_combo=strike_combo_label((lower, middle, upper)),
                    strikes=(lower, middle, upper),
                    gap=gap,
                    first_leg_premium=result.first_leg_premium,
                    butterfly_rate=result.rate,
                    value_percent=value_percent,
                    distance_from_atm=distance,
                    recommendation=get_recommendation(value_percent),
                    detailed_recommendation=get_detailed_recommendation(
                        value_percent, distance, gap,
                        config.near_atm_bands, config.good_gap_max,
                    ),
                    is_near_atm=distance <= config.near_atm_bands,
                    has_good_gap=gap <= config.good_gap_max,
                    alert_type=get_alert_type(
                        value_percent, distance, gap,
                        config.near_atm_bands, config.good_gap_max,
                    ),
                ))

    strategies.sort(key=lambda s: (s.value_percent, s.distance_from_atm))

    logger.info(
        f"Ranked {len(strategies)} strategies from {priced} priced combinations "
        f"(ATM {format_strike(atm_strike)}, max value {max_value_percent}%)"
    )
    return strategies


def find_best_trades(
    raw_data: Optional[Sequence[Mapping[str, Any]]],
    spot_price: Optional[float],
    config: Optional[ButterflyConfig] = None,
) -> List[ButterflyStrategy]:
    """
    Shortlist cheap, near-the-money, narrow-gap butterflies.

    Keeps strategies with value% <= 15, distance <= 2 bands and gap <= 100,
    capped at 8 entries.
    """
    config = resolve_config(config)
    strategies = find_best_strategies(
        raw_data, spot_price, config.best_trade_max_value, config
    )

    best = [
        s for s in strategies
        if s.value_percent <= config.best_trade_max_value
        and s.distance_from_atm <= config.near_atm_bands
        and s.gap <= config.good_gap_max
    ]
    return best[:config.best_trade_limit]


def strategies_to_frame(strategies: Sequence[ButterflyStrategy]) -> pd.DataFrame:
    """Tabulate strategies, one row each, in ranking order."""
    columns = [
        "rank", "type", "strike_combo", "lower", "middle", "upper", "gap",
        "first_leg_premium", "butterfly_rate", "value_percent", "distance_from_atm",
        "recommendation", "detailed_recommendation", "alert_type",
    ]
    rows = [
        {
            "rank": i,
            "type": s.type.value,
            "strike_combo": s.strike_combo,
            "lower": s.strikes[0],
            "middle": s.strikes[1],
            "upper": s.strikes[2],
            "gap": s.gap,
            "first_leg_premium": round(s.first_leg_premium, 2),
            "butterfly_rate": round(s.butterfly_rate, 2),
            "value_percent": round(s.value_percent, 2),
            "distance_from_atm": s.distance_from_atm,
            "recommendation": s.recommendation,
            "detailed_recommendation": s.detailed_recommendation,
            "alert_type": s.alert_type or "",
        }
        for i, s in enumerate(strategies, start=1)
    ]
    return pd.DataFrame.from_records(rows, columns=columns)


def format_csv_output(strategies: Sequence[ButterflyStrategy]) -> str:
    """Format strategies as CSV."""
    return strategies_to_frame(strategies).to_csv(index=False)


def format_strategy_report(
    strategies: Sequence[ButterflyStrategy],
    spot_price: Optional[float],
    title: str = "BUTTERFLY STRATEGIES",
) -> str:
    """
    Format a human-readable ranking report.

    Args:
        strategies: Ranked strategies
        spot_price: Current underlying price
        title: Report heading

    Returns:
        Formatted report string
    """
    if not strategies:
        return f"No butterfly strategies found (spot {spot_price})"

    lines = [
        "=" * 70,
        title,
        f"Spot: {spot_price:.2f}" if spot_price else "Spot: n/a",
        "=" * 70,
    ]

    for i, s in enumerate(strategies, start=1):
        alert = f" [{s.alert_type}]" if s.alert_type else ""
        lines.append(
            f"#{i:<3} {s.type.value:<4} {s.strike_combo:<28} gap {s.gap:<4} "
            f"rate {s.butterfly_rate:8.2f}  value {s.value_percent:6.2f}%  "
            f"ATM+{s.distance_from_atm}  {s.recommendation}/{s.detailed_recommendation}{alert}"
        )

    lines.append("=" * 70)
    lines.append(f"Total strategies: {len(strategies)}")
    return "\n".join(lines)
