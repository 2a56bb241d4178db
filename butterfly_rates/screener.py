"""
Main screener module for butterfly rates.

Provides both a class-based API and a simple function interface.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from butterfly_rates.analysis import StrikeAnalysis, analyze_chain, format_analysis_report
from butterfly_rates.chain import build_chain, build_multi_chain
from butterfly_rates.config import ButterflyConfig
from butterfly_rates.models import ButterflyData, ButterflyStrategy, MultiButterflyRow, OptionSide
from butterfly_rates.ranking import (
    find_best_strategies,
    find_best_trades,
    format_csv_output,
    format_strategy_report,
)
from butterfly_rates.snapshot import ChainSnapshot, SnapshotSource, filter_expiry, parse_snapshot

logger = logging.getLogger(__name__)


@dataclass
class ScreenResult:
    """Result from one screening pass over a snapshot."""

    spot_price: Optional[float]
    expiry: Optional[str]
    stale: bool
    call_chain: List[ButterflyData]
    put_chain: List[ButterflyData]
    call_multi_chain: List[MultiButterflyRow]
    put_multi_chain: List[MultiButterflyRow]
    strategies: List[ButterflyStrategy]
    best_trades: List[ButterflyStrategy]
    analysis: List[StrikeAnalysis] = field(default_factory=list)

    def chain_for(self, side: OptionSide) -> List[ButterflyData]:
        """1-2-1 matrix for a side."""
        return self.call_chain if side is OptionSide.CALL else self.put_chain

    def to_report(self) -> str:
        """Generate human-readable report."""
        parts = [
            format_strategy_report(self.best_trades, self.spot_price, title="BEST BUTTERFLY TRADES"),
            "",
            format_strategy_report(self.strategies, self.spot_price),
        ]
        if self.stale:
            parts.insert(0, "WARNING: snapshot is stale")
        return "\n".join(parts)

    def to_analysis_report(self) -> str:
        """Generate the open-interest activity report."""
        return format_analysis_report(self.analysis)

    def to_csv(self) -> str:
        """Generate CSV output of the ranked strategies."""
        return format_csv_output(self.strategies)

    def to_json(self) -> str:
        """Serialize the result to JSON."""
        return json.dumps({
            "spot_price": self.spot_price,
            "expiry": self.expiry,
            "stale": self.stale,
            "call_chain": [row.to_dict() for row in self.call_chain],
            "put_chain": [row.to_dict() for row in self.put_chain],
            "call_multi_chain": [row.to_dict() for row in self.call_multi_chain],
            "put_multi_chain": [row.to_dict() for row in self.put_multi_chain],
            "strategies": [s.to_dict() for s in self.strategies],
            "best_trades": [s.to_dict() for s in self.best_trades],
            "analysis": [row.to_dict() for row in self.analysis],
        }, indent=2)


@dataclass
class ButterflyScreener:
    """
    Screener for butterfly trades over a snapshot source.

    Example usage:
        screener = ButterflyScreener(source=FileSnapshotSource("chain.json"))
        result = screener.screen()
        print(result.to_report())
    """

    source: SnapshotSource
    config: ButterflyConfig = field(default_factory=ButterflyConfig)
    expiry: Optional[str] = None

    def screen(self, max_value_percent: Optional[float] = None) -> ScreenResult:
        """
        Run the screening process on the source's current snapshot.

        Args:
            max_value_percent: Value% ceiling for ranked strategies (overrides config)

        Returns:
            ScreenResult with matrices and ranked strategies
        """
        snapshot = self.source.get_snapshot()
        return screen_chain(snapshot, self.config, self.expiry, max_value_percent)


def screen_chain(
    snapshot: ChainSnapshot,
    config: Optional[ButterflyConfig] = None,
    expiry: Optional[str] = None,
    max_value_percent: Optional[float] = None,
) -> ScreenResult:
    """Compute every view of a snapshot."""
    if config is None:
        config = ButterflyConfig()

    if expiry is None and snapshot.expiry_dates:
        expiry = snapshot.expiry_dates[0]

    chain = filter_expiry(snapshot.chain, expiry)
    spot = snapshot.spot_price

    logger.info(f"Screening {len(chain)} records (spot {spot}, expiry {expiry})")
    if snapshot.stale:
        logger.warning("Screening a stale snapshot")

    return ScreenResult(
        spot_price=spot,
        expiry=expiry,
        stale=snapshot.stale,
        call_chain=build_chain(chain, spot, OptionSide.CALL, config=config),
        put_chain=build_chain(chain, spot, OptionSide.PUT, config=config),
        call_multi_chain=build_multi_chain(chain, spot, OptionSide.CALL, config=config),
        put_multi_chain=build_multi_chain(chain, spot, OptionSide.PUT, config=config),
        strategies=find_best_strategies(chain, spot, max_value_percent, config),
        best_trades=find_best_trades(chain, spot, config),
        analysis=analyze_chain(chain),
    )


def screen_snapshot(
    payload: Any,
    expiry: Optional[str] = None,
    max_value_percent: Optional[float] = None,
    config: Optional[ButterflyConfig] = None,
) -> ScreenResult:
    """
    Simple function interface to screen a decoded feed payload.

    Args:
        payload: Decoded JSON payload (see snapshot.parse_snapshot)
        expiry: Expiry to screen (default: first listed expiry)
        max_value_percent: Value% ceiling for ranked strategies
        config: Configuration

    Returns:
        ScreenResult

    Example:
        result = screen_snapshot(json.load(open("chain.json")))
        print(result.to_report())
    """
    return screen_chain(parse_snapshot(payload), config, expiry, max_value_percent)
