"""
Butterfly pricing.

One leg-pricing routine serves both the standard 1-2-1 butterfly and the
two-leg ratio variant used by the multi-leg matrix. Bought legs are priced at
the ask and the sold middle leg at the bid, each falling back to the last
traded price.
"""

import logging
from typing import Mapping, Optional, Tuple

from butterfly_rates.models import ButterflyResult, OptionSide, StrikeRecord

logger = logging.getLogger(__name__)

ChainIndex = Mapping[float, StrikeRecord]

STANDARD_RATIO = 2.0


def leg_strikes(base: float, gap: float, side: OptionSide) -> Tuple[float, float, float]:
    """
    Derive (lower, middle, upper) strikes from a base strike and gap.

    CALL butterflies build upward from the base, PUT butterflies downward.
    """
    if side is OptionSide.CALL:
        return base, base + gap, base + 2 * gap
    return base - 2 * gap, base - gap, base


def calculate_value_percent(rate: float, first_leg_premium: float) -> float:
    """
    Calculate rate as a percentage of the first leg premium.

    Returns:
        (rate / premium) * 100, or 0 when the premium is not positive
    """
    if first_leg_premium <= 0:
        return 0.0
    return (rate / first_leg_premium) * 100


def _price_legs(
    first: float,
    middle: float,
    wing: Optional[float],
    chain: ChainIndex,
    side: OptionSide,
    ratio: float,
) -> Optional[ButterflyResult]:
    """
    Price bought `first` (+ optional bought `wing`) against `ratio` sold `middle`.

    Returns None when a strike or a required price is unavailable.
    """
    first_record = chain.get(first)
    middle_record = chain.get(middle)
    wing_record = chain.get(wing) if wing is not None else None

    if first_record is None or middle_record is None:
        return None
    if wing is not None and wing_record is None:
        return None

    first_ask = first_record.quote(side).buy_price
    middle_bid = middle_record.quote(side).sell_price
    if first_ask is None or middle_bid is None:
        return None

    rate = first_ask - ratio * middle_bid

    if wing_record is not None:
        wing_ask = wing_record.quote(side).buy_price
        if wing_ask is None:
            return None
        rate += wing_ask

    return ButterflyResult(rate=rate, first_leg_premium=first_ask)


def price_butterfly(
    lower: float,
    middle: float,
    upper: float,
    chain: ChainIndex,
    side: OptionSide,
) -> Optional[ButterflyResult]:
    """
    Price a standard 1-2-1 butterfly.

    rate = lower_ask - 2 * middle_bid + upper_ask

    The first leg is the lower strike for CALL and the upper strike for PUT.

    Args:
        lower: Lower strike
        middle: Middle (sold) strike
        upper: Upper strike
        chain: Strike -> StrikeRecord index
        side: CALL or PUT

    Returns:
        ButterflyResult, or None if any strike or price is missing
    """
    if side is OptionSide.CALL:
        return _price_legs(lower, middle, upper, chain, side, STANDARD_RATIO)
    return _price_legs(upper, middle, lower, chain, side, STANDARD_RATIO)


def price_ratio_spread(
    base: float,
    middle: float,
    chain: ChainIndex,
    side: OptionSide,
    ratio: float,
) -> Optional[ButterflyResult]:
    """
    Price a two-leg ratio butterfly.

    rate = base_ask - ratio * middle_bid

    Args:
        base: Bought strike (lower for CALL, upper for PUT)
        middle: Sold strike
        chain: Strike -> StrikeRecord index
        side: CALL or PUT
        ratio: Middle contracts sold per base contract

    Returns:
        ButterflyResult, or None if a strike or price is missing
    """
    return _price_legs(base, middle, None, chain, side, ratio)
