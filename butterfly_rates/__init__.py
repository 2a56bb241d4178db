"""
Butterfly Rates

Prices 1-2-1 and ratio butterfly spreads across an index options chain and
ranks the cheapest at-the-money/out-of-the-money combinations.

Usage as library:
    from butterfly_rates import OptionSide, build_chain, find_best_trades

    rows = build_chain(raw_chain, spot_price, OptionSide.CALL)
    for trade in find_best_trades(raw_chain, spot_price):
        print(trade.strike_combo, f"{trade.value_percent:.1f}%")

Usage as CLI:
    python -m butterfly_rates chain.json
    python -m butterfly_rates chain.json --best
    python -m butterfly_rates chain.json --chain put --csv put_chain.csv
"""

from butterfly_rates.config import ButterflyConfig, LegSpec, load_config
from butterfly_rates.models import (
    ButterflyData,
    ButterflyResult,
    ButterflyStrategy,
    GapValue,
    MultiButterflyRow,
    OptionSide,
    StrikeRecord,
)
from butterfly_rates.normalizer import normalize_chain
from butterfly_rates.pricer import calculate_value_percent, price_butterfly, price_ratio_spread
from butterfly_rates.chain import build_chain, build_multi_chain, find_atm_strike
from butterfly_rates.ranking import find_best_strategies, find_best_trades
from butterfly_rates.rules import (
    get_alert_type,
    get_detailed_recommendation,
    get_recommendation,
)
from butterfly_rates.screener import ButterflyScreener, ScreenResult, screen_snapshot

__version__ = "1.0.0"

__all__ = [
    "ButterflyConfig",
    "LegSpec",
    "load_config",
    "ButterflyData",
    "ButterflyResult",
    "ButterflyStrategy",
    "GapValue",
    "MultiButterflyRow",
    "OptionSide",
    "StrikeRecord",
    "normalize_chain",
    "calculate_value_percent",
    "price_butterfly",
    "price_ratio_spread",
    "build_chain",
    "build_multi_chain",
    "find_atm_strike",
    "find_best_strategies",
    "find_best_trades",
    "get_alert_type",
    "get_detailed_recommendation",
    "get_recommendation",
    "ButterflyScreener",
    "ScreenResult",
    "screen_snapshot",
]
