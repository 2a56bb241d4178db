"""
Butterfly chain builder.

Builds the per-strike rate/value matrices shown for one option side: the
standard 1-2-1 matrix over the configured gaps and the multi-leg ratio matrix
over the configured gap/ratio legs.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from butterfly_rates.config import ButterflyConfig, LegSpec, resolve_config
from butterfly_rates.models import (
    ButterflyData,
    GapValue,
    LegValue,
    MultiButterflyRow,
    OptionSide,
    StrikeRecord,
)
from butterfly_rates.normalizer import index_chain, normalize_chain
from butterfly_rates.pricer import (
    calculate_value_percent,
    leg_strikes,
    price_butterfly,
    price_ratio_spread,
)

logger = logging.getLogger(__name__)


def gap_label(gap: int) -> str:
    """Matrix column label for a gap, e.g. 'gap50'."""
    return f"gap{gap}"


def find_atm_strike(strikes: Iterable[float], spot_price: float) -> Optional[float]:
    """
    Find the strike closest to the spot price.

    Strikes are scanned in ascending order and the first minimum wins, so an
    exact tie resolves to the lower strike. This holds for both sides; the PUT
    matrix does not flip the tie to the higher strike even though it is
    displayed in descending order.

    Returns:
        ATM strike or None if there are no strikes
    """
    ordered = sorted(strikes)
    if not ordered:
        return None
    return min(ordered, key=lambda s: abs(s - spot_price))


def is_atm_or_otm(strike: float, atm_strike: float, side: OptionSide) -> bool:
    """
    Check whether a strike is at or out of the money.

    CALL strikes at or above ATM and PUT strikes at or below ATM qualify.
    """
    if side is OptionSide.CALL:
        return strike >= atm_strike
    return strike <= atm_strike


def display_strikes(records: Sequence[StrikeRecord], side: OptionSide) -> List[float]:
    """Positive strikes, ascending for CALL and descending for PUT."""
    strikes = sorted(r.strike for r in records if r.strike > 0)
    if side is OptionSide.PUT:
        strikes.reverse()
    return strikes


def strike_premium(record: StrikeRecord, side: OptionSide) -> float:
    """Mid of bid/ask when both are quoted, else LTP, else 0."""
    quote = record.quote(side)
    if quote.bid is not None and quote.ask is not None:
        return (quote.bid + quote.ask) / 2
    if quote.ltp is not None:
        return quote.ltp
    return 0.0


def build_chain(
    raw_data: Optional[Sequence[Mapping[str, Any]]],
    spot_price: Optional[float],
    side: OptionSide,
    gaps: Optional[Sequence[int]] = None,
    config: Optional[ButterflyConfig] = None,
) -> List[ButterflyData]:
    """
    Build the 1-2-1 butterfly matrix for one side.

    Args:
        raw_data: Raw chain records
        spot_price: Current underlying price
        side: CALL or PUT
        gaps: Gaps to price (default: config gaps, 50/100/150/200)
        config: Configuration

    Returns:
        One ButterflyData per strike in display order; gap entries with a
        non-positive rate are left out
    """
    config = resolve_config(config)
    if gaps is None:
        gaps = config.gaps

    records = normalize_chain(raw_data)
    if not records or not spot_price:
        return []

    strikes = display_strikes(records, side)
    atm_strike = find_atm_strike(strikes, spot_price)
    if atm_strike is None:
        return []

    chain = index_chain(records)
    rows = []

    for strike in strikes:
        record = chain[strike]
        quote = record.quote(side)

        gap_values = {}
        for gap in gaps:
            lower, middle, upper = leg_strikes(strike, gap, side)
            result = price_butterfly(lower, middle, upper, chain, side)
            if result is None or result.rate <= 0:
                continue
            gap_values[gap_label(gap)] = GapValue(
                rate=result.rate,
                value=calculate_value_percent(result.rate, result.first_leg_premium),
            )

        rows.append(ButterflyData(
            strike=strike,
            premium=strike_premium(record, side),
            bid=quote.bid if quote.bid is not None else 0.0,
            ask=quote.ask if quote.ask is not None else 0.0,
            is_atm=strike == atm_strike,
            gaps=gap_values,
        ))

    logger.debug(f"Built {side.value} chain: {len(rows)} strikes, ATM {atm_strike}")
    return rows


def build_multi_chain(
    raw_data: Optional[Sequence[Mapping[str, Any]]],
    spot_price: Optional[float],
    side: OptionSide,
    legs: Optional[Sequence[LegSpec]] = None,
    config: Optional[ButterflyConfig] = None,
) -> List[MultiButterflyRow]:
    """
    Build the multi-leg ratio butterfly matrix for one side.

    Each leg buys the row strike and sells `ratio` contracts `gap` points
    away (above for CALL, below for PUT). Leg values are kept whatever
    their sign.

    Args:
        raw_data: Raw chain records
        spot_price: Current underlying price
        side: CALL or PUT
        legs: Gap/ratio legs (default: the side's configured legs)
        config: Configuration

    Returns:
        One MultiButterflyRow per strike in display order
    """
    config = resolve_config(config)
    if legs is None:
        legs = config.legs_for(side)

    records = normalize_chain(raw_data)
    if not records or not spot_price:
        return []

    strikes = display_strikes(records, side)
    atm_strike = find_atm_strike(strikes, spot_price)
    if atm_strike is None:
        return []

    chain = index_chain(records)
    rows = []

    for strike in strikes:
        quote = chain[strike].quote(side)

        leg_values = {}
        for leg in legs:
            middle = strike + leg.gap if side is OptionSide.CALL else strike - leg.gap
            result = price_ratio_spread(strike, middle, chain, side, leg.ratio)
            if result is None:
                continue
            middle_bid = chain[middle].quote(side).sell_price
            leg_values[leg.label] = LegValue(
                rate=result.rate,
                value=calculate_value_percent(result.rate, result.first_leg_premium),
                ratio=leg.ratio,
                first_ask=result.first_leg_premium,
                middle_bid=middle_bid,
            )

        rows.append(MultiButterflyRow(
            strike=strike,
            bid=quote.bid if quote.bid is not None else 0.0,
            ask=quote.ask if quote.ask is not None else 0.0,
            ltp=quote.ltp if quote.ltp is not None else 0.0,
            is_atm=strike == atm_strike,
            is_itm=not is_atm_or_otm(strike, atm_strike, side),
            legs=leg_values,
        ))

    logger.debug(f"Built {side.value} multi-leg chain: {len(rows)} strikes, {len(legs)} legs")
    return rows


def chain_to_frame(rows: Sequence[ButterflyData], gaps: Optional[Sequence[int]] = None) -> pd.DataFrame:
    """
    Flatten a 1-2-1 matrix into a DataFrame.

    Columns: strike, bid, ask, premium, is_atm, then <label>_rate and
    <label>_value per gap (NaN where a gap is absent).
    """
    if gaps is None:
        gaps = ButterflyConfig().gaps

    records = []
    for row in rows:
        record = {
            "strike": row.strike,
            "bid": row.bid,
            "ask": row.ask,
            "premium": row.premium,
            "is_atm": row.is_atm,
        }
        for gap in gaps:
            label = gap_label(gap)
            gv = row.gaps.get(label)
            record[f"{label}_rate"] = gv.rate if gv else None
            record[f"{label}_value"] = gv.value if gv else None
        records.append(record)

    columns = ["strike", "bid", "ask", "premium", "is_atm"]
    for gap in gaps:
        columns += [f"{gap_label(gap)}_rate", f"{gap_label(gap)}_value"]

    return pd.DataFrame.from_records(records, columns=columns)
