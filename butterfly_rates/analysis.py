"""
Open-interest analysis for a normalized chain.

Classifies each side of each strike by price/OI change (long buildup, short
covering, ...) and flags strikes with outsized OI change, volume or open
interest relative to the rest of the chain.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Literal, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from butterfly_rates.models import StrikeRecord
from butterfly_rates.normalizer import normalize_chain

logger = logging.getLogger(__name__)

BuildupSignal = Literal[
    "LONG_BUILDUP", "SHORT_BUILDUP", "SHORT_COVERING", "LONG_UNWINDING", "NEUTRAL",
]

OI_CHANGE_PERCENTILE = 0.85
VOLUME_PERCENTILE = 0.85
OI_PERCENTILE = 0.90

HIGH_OI_CHANGE = "High OI Change"
HEAVY_VOLUME = "Heavy Volume"
FRESH_POSITION = "Fresh Position"
SMART_MONEY = "Smart Money"


@dataclass(frozen=True)
class ChainThresholds:
    """Chain-wide thresholds above which a strike is highlighted."""
    oi_change: float
    volume: float
    oi: float


@dataclass
class StrikeAnalysis:
    """Buildup signals and highlights for one strike."""
    strike: float
    call_signal: BuildupSignal
    put_signal: BuildupSignal
    call_highlights: List[str] = field(default_factory=list)
    put_highlights: List[str] = field(default_factory=list)

    @property
    def is_high_oi_change(self) -> bool:
        return HIGH_OI_CHANGE in self.call_highlights or HIGH_OI_CHANGE in self.put_highlights

    @property
    def is_high_volume(self) -> bool:
        return HEAVY_VOLUME in self.call_highlights or HEAVY_VOLUME in self.put_highlights

    @property
    def is_fresh_position(self) -> bool:
        return FRESH_POSITION in self.call_highlights or FRESH_POSITION in self.put_highlights

    @property
    def is_smart_money_active(self) -> bool:
        return SMART_MONEY in self.call_highlights or SMART_MONEY in self.put_highlights

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "strike": self.strike,
            "call_signal": self.call_signal,
            "put_signal": self.put_signal,
            "call_highlights": list(self.call_highlights),
            "put_highlights": list(self.put_highlights),
        }


def get_buildup_signal(
    price_change: Optional[float],
    oi_change: Optional[float],
) -> BuildupSignal:
    """
    Classify a contract by the direction of its price and OI change.

    Missing values count as zero.
    """
    pc = price_change or 0.0
    oi = oi_change or 0.0

    if pc > 0 and oi > 0:
        return "LONG_BUILDUP"
    if pc < 0 and oi > 0:
        return "SHORT_BUILDUP"
    if pc > 0 and oi < 0:
        return "SHORT_COVERING"
    if pc < 0 and oi < 0:
        return "LONG_UNWINDING"
    return "NEUTRAL"


def _percentile(values: Iterable[float], p: float) -> float:
    """Value at index floor(n * p) of the sorted positive values, 0 if none."""
    arr = np.array([v for v in values if v > 0], dtype=float)
    if arr.size == 0:
        return 0.0
    arr.sort()
    idx = min(int(np.floor(arr.size * p)), arr.size - 1)
    return float(arr[idx])


def compute_thresholds(records: Sequence[StrikeRecord]) -> ChainThresholds:
    """Compute highlight thresholds across both sides of the chain."""
    oi_changes = [abs(v or 0.0) for r in records for v in (r.call_oi_change, r.put_oi_change)]
    volumes = [v or 0.0 for r in records for v in (r.call_volume, r.put_volume)]
    ois = [v or 0.0 for r in records for v in (r.call_oi, r.put_oi)]

    return ChainThresholds(
        oi_change=_percentile(oi_changes, OI_CHANGE_PERCENTILE),
        volume=_percentile(volumes, VOLUME_PERCENTILE),
        oi=_percentile(ois, OI_PERCENTILE),
    )


def _highlights(
    oi_change: Optional[float],
    volume: Optional[float],
    oi: Optional[float],
    signal: BuildupSignal,
    thresholds: ChainThresholds,
) -> List[str]:
    high_oi_change = abs(oi_change or 0.0) > thresholds.oi_change
    heavy_volume = (volume or 0.0) > thresholds.volume

    highlights = []
    if high_oi_change:
        highlights.append(HIGH_OI_CHANGE)
    if heavy_volume:
        highlights.append(HEAVY_VOLUME)
    if high_oi_change and heavy_volume:
        highlights.append(FRESH_POSITION)
    if (oi or 0.0) > thresholds.oi and signal != "NEUTRAL":
        highlights.append(SMART_MONEY)
    return highlights


def analyze_chain(raw_data: Optional[Sequence[Mapping[str, Any]]]) -> List[StrikeAnalysis]:
    """
    Analyze open-interest activity across a chain.

    Args:
        raw_data: Raw chain records

    Returns:
        One StrikeAnalysis per strike, ascending
    """
    records = normalize_chain(raw_data)
    if not records:
        return []

    thresholds = compute_thresholds(records)
    logger.debug(f"Chain thresholds: {thresholds}")

    results = []
    for r in records:
        call_signal = get_buildup_signal(r.call_change, r.call_oi_change)
        put_signal = get_buildup_signal(r.put_change, r.put_oi_change)
        results.append(StrikeAnalysis(
            strike=r.strike,
            call_signal=call_signal,
            put_signal=put_signal,
            call_highlights=_highlights(
                r.call_oi_change, r.call_volume, r.call_oi, call_signal, thresholds
            ),
            put_highlights=_highlights(
                r.put_oi_change, r.put_volume, r.put_oi, put_signal, thresholds
            ),
        ))

    return results


def format_analysis_report(results: Sequence[StrikeAnalysis]) -> str:
    """
    Format the strikes that carry at least one highlight.

    Args:
        results: Output of analyze_chain

    Returns:
        Formatted report string
    """
    flagged = [r for r in results if r.call_highlights or r.put_highlights]
    if not flagged:
        return f"No open-interest highlights across {len(results)} strikes"

    lines = [
        "=" * 70,
        "OPEN INTEREST ACTIVITY",
        "=" * 70,
    ]
    for r in flagged:
        lines.append(f"{r.strike:>10g}  CE {r.call_signal:<15} {', '.join(r.call_highlights)}".rstrip())
        lines.append(f"{'':>10}  PE {r.put_signal:<15} {', '.join(r.put_highlights)}".rstrip())

    lines.append("=" * 70)
    lines.append(f"Highlighted strikes: {len(flagged)} of {len(results)}")
    return "\n".join(lines)


def analysis_to_frame(results: Sequence[StrikeAnalysis]) -> pd.DataFrame:
    """Tabulate analysis rows; highlight lists are joined with '; '."""
    columns = ["strike", "call_signal", "put_signal", "call_highlights", "put_highlights"]
    rows = [
        {
            "strike": r.strike,
            "call_signal": r.call_signal,
            "put_signal": r.put_signal,
            "call_highlights": "; ".join(r.call_highlights),
            "put_highlights": "; ".join(r.put_highlights),
        }
        for r in results
    ]
    return pd.DataFrame.from_records(rows, columns=columns)
